"""Problem Details (RFC 9457) error taxonomy for the keyset paginator."""

import math
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field
from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


class ProblemDetail(BaseModel):
    """Problem Details as defined in RFC 9457."""

    type: str = Field(default="about:blank", description="A URI reference that identifies the problem type")
    title: str = Field(description="A short, human-readable summary of the problem type")
    status: int = Field(description="The HTTP status code")
    detail: Optional[str] = Field(default=None, description="A human-readable explanation specific to this occurrence")
    instance: Optional[str] = Field(default=None, description="A URI reference that identifies the specific occurrence")

    # Allow additional properties for extensions
    model_config = {"extra": "allow"}


class ProblemDetailException(Exception):
    """Base exception for Problem Details responses."""

    def __init__(
        self,
        status: int,
        title: str,
        detail: Optional[str] = None,
        type_uri: str = "about:blank",
        instance: Optional[str] = None,
        **extensions: Any
    ):
        self.status = status
        self.title = title
        self.detail = detail
        self.type_uri = type_uri
        self.instance = instance
        self.extensions = extensions
        super().__init__(detail or title)

    def to_problem_detail(self, request: Optional[Request] = None) -> ProblemDetail:
        return build_problem_detail(
            self.status,
            self.title,
            detail=self.detail,
            type_uri=self.type_uri,
            instance=self.instance,
            request=request,
            **self.extensions
        )

    def to_response(self, request: Optional[Request] = None) -> JSONResponse:
        """Convert to JSONResponse with Problem Details format."""
        return problem_response(self.to_problem_detail(request))


def build_problem_detail(
    status: int,
    title: str,
    detail: Optional[str] = None,
    type_uri: str = "about:blank",
    instance: Optional[str] = None,
    request: Optional[Request] = None,
    **extensions: Any
) -> ProblemDetail:
    """Build a ProblemDetail, defaulting the instance to the request path."""
    if instance is None and request:
        instance = str(request.url.path)
    return ProblemDetail(
        type=type_uri,
        title=title,
        status=status,
        detail=detail,
        instance=instance,
        **extensions
    )


def problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(
        status_code=problem.status,
        content=jsonable_encoder(problem.model_dump(exclude_none=True)),
        headers={"Content-Type": "application/problem+json"}
    )


def _json_safe(value: Any) -> Any:
    # Problem Details bodies are strict JSON, which has no NaN or Infinity.
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {k: _json_safe(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_json_safe(v) for v in value]
    return value


class PaginatorError(ProblemDetailException):
    """Base class of every error raised by the paginator.

    Subclasses pick an HTTP status and title. ``info`` holds structured
    diagnostics about the failure; it is only exposed to clients when
    ``expose_info`` is set, since server-side failures may leak row data.
    """

    status_code: int = 500
    error_title: str = "Paginator Error"
    expose_info: bool = False

    def __init__(
        self,
        detail: Optional[str] = None,
        *,
        info: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
        **extensions: Any
    ):
        self.info: Dict[str, Any] = dict(info or {})
        self.cause = cause
        if self.expose_info and self.info:
            extensions.setdefault("info", _json_safe(jsonable_encoder(self.info)))
        super().__init__(
            status=self.status_code,
            title=self.error_title,
            detail=detail or self.get_default_message(self.info),
            **extensions
        )
        if cause is not None:
            self.__cause__ = cause

    @classmethod
    def get_default_message(cls, info: Dict[str, Any]) -> str:
        return "Paginator error"


class ConfigurationError(PaginatorError):
    """A problem was found with a paginator's sort configuration.

    Typically a mistake by whoever declared the paginator: an unknown column
    type or direction, a malformed column identifier, or a row value that does
    not match the type its sort descriptor declares.
    """

    status_code = 500
    error_title = "Internal Server Error"

    @classmethod
    def get_default_message(cls, info: Dict[str, Any]) -> str:
        return "Configuration error"


class InvalidCursorError(PaginatorError):
    """A cursor supplied by a client could not be consumed.

    The cursor was altered in transit, was never valid, or belongs to another
    query, sort, or set of query arguments. Cursor contents are not encrypted,
    but clients must treat them as opaque.
    """

    status_code = 400
    error_title = "Invalid Cursor"
    expose_info = True

    @classmethod
    def get_default_message(cls, info: Dict[str, Any]) -> str:
        return "Invalid cursor"


class UnknownSortError(PaginatorError):
    """The requested sort name is not declared on the paginator."""

    status_code = 400
    error_title = "Unknown Sort"
    expose_info = True

    @classmethod
    def get_default_message(cls, info: Dict[str, Any]) -> str:
        msg = "Unknown sort"
        if "sort" in info:
            msg += f": '{info['sort']}'"
        return msg


class QueryExecutionError(PaginatorError):
    """The query executor failed while fetching a page or counting rows."""

    status_code = 500
    error_title = "Internal Server Error"

    @classmethod
    def get_default_message(cls, info: Dict[str, Any]) -> str:
        return "Query execution failed"


def create_problem_response(
    status: int,
    title: str,
    detail: Optional[str] = None,
    type_uri: str = "about:blank",
    instance: Optional[str] = None,
    request: Optional[Request] = None,
    **extensions: Any
) -> JSONResponse:
    """Create a Problem Details response."""
    return problem_response(build_problem_detail(
        status,
        title,
        detail=detail,
        type_uri=type_uri,
        instance=instance,
        request=request,
        **extensions
    ))
