"""Sort descriptors: user declarations of one sort column, and their normalized form."""

import logging
import math
import re
from collections.abc import Mapping, Sequence
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Optional, Tuple, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from ..errors.problem_details import (
    ConfigurationError,
    InvalidCursorError,
    PaginatorError
)

logger = logging.getLogger(__name__)

# At most one dot, separating an optional table name from the column name.
COLUMN_PATTERN = re.compile(r"^(?:[^.]+\.)?[^.]+$")

_PATH_SEGMENT = re.compile(r"[^.\[\]]+")


class ColumnType(str, Enum):
    """Value types a sort column may hold."""

    STRING = "string"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    DATE = "date"


class SortDirection(str, Enum):
    """Sort directions.

    ``asc`` and ``desc`` sort nulls first. ``desc-nulls-last`` sorts values
    in descending order but places nulls after them.
    """

    ASCENDING = "asc"
    DESCENDING = "desc"
    DESCENDING_NULLS_LAST = "desc-nulls-last"


class ValidationCase(Enum):
    """Which side of the wire a validated value came from."""

    # Extracted from a server-side row while minting a cursor.
    CONFIGURATION = "configuration"
    # Read from a client-supplied cursor.
    CURSOR = "cursor"


def get_error_class(case: ValidationCase) -> Type[PaginatorError]:
    """Pick the error class to raise for a value validation failure."""
    if case is ValidationCase.CONFIGURATION:
        return ConfigurationError
    if case is ValidationCase.CURSOR:
        return InvalidCursorError
    raise TypeError(f"Unknown validation case {case!r}")


class ValidationResult(BaseModel):
    """Outcome of a custom cursor value validator."""

    model_config = ConfigDict(frozen=True)

    valid: bool
    message: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(valid=True)

    @classmethod
    def fail(cls, message: Optional[str] = None) -> "ValidationResult":
        return cls(valid=False, message=message)

    @classmethod
    def coerce(cls, result: Any) -> "ValidationResult":
        """Accept a ValidationResult, a bool, or a failure message string."""
        if isinstance(result, cls):
            return result
        if isinstance(result, bool):
            return cls(valid=result)
        if isinstance(result, str):
            return cls.fail(result)
        raise ConfigurationError(
            "Custom validator returned an unsupported result",
            info={"result": repr(result)}
        )


ValidatorFunction = Callable[[Any], Union[ValidationResult, bool, str]]


class SortDescriptor(BaseModel):
    """A sort column as declared by a paginator.

    Anything left unset is defaulted by ``normalize``. Unknown types and
    directions are accepted here and rejected during normalization, so that
    the failure surfaces as a ConfigurationError.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    column: str
    column_type: Union[ColumnType, str, None] = None
    nullable: Optional[bool] = None
    direction: Union[SortDirection, str, None] = None
    value_path: Optional[str] = None
    validator: Optional[ValidatorFunction] = None


SortDescriptorLike = Union[str, Mapping, SortDescriptor, "NormalizedSortDescriptor"]


def validate_column(column: str) -> str:
    """Check a ``column`` or ``table.column`` identifier."""
    if isinstance(column, str) and COLUMN_PATTERN.match(column):
        return column
    raise ConfigurationError(f"Invalid column identifier '{column}'")


def get_path(obj: Any, path: str) -> Any:
    """Read a dotted/indexed path (``a.b[0].c``) from nested rows.

    Mappings are read by key, sequences by index and anything else by item
    access or attribute. Missing segments yield None.
    """
    for segment in _PATH_SEGMENT.findall(path):
        if obj is None:
            return None
        obj = _get_segment(obj, segment)
    return obj


def _get_segment(obj: Any, segment: str) -> Any:
    if isinstance(obj, Mapping):
        return obj.get(segment)
    if isinstance(obj, Sequence) and not isinstance(obj, (str, bytes)):
        if not segment.isdigit():
            return None
        index = int(segment)
        return obj[index] if index < len(obj) else None
    try:
        return obj[segment]
    except (KeyError, IndexError, TypeError):
        return getattr(obj, segment, None)


class NormalizedSortDescriptor(BaseModel):
    """A fully defaulted, validated sort descriptor."""

    model_config = ConfigDict(frozen=True)

    column: str
    column_type: ColumnType = ColumnType.STRING
    nullable: bool = False
    direction: SortDirection = SortDirection.ASCENDING
    value_path: str
    validator: Optional[ValidatorFunction] = None

    @property
    def column_parts(self) -> Tuple[Optional[str], str]:
        """The (table, column) parts of the column identifier."""
        table, _, column = self.column.rpartition(".")
        return (table or None, column)

    @property
    def order(self) -> str:
        """Sort order for value terms."""
        if self.direction is SortDirection.ASCENDING:
            return "asc"
        return "desc"

    @property
    def nulls_first(self) -> bool:
        return self.direction is not SortDirection.DESCENDING_NULLS_LAST

    @property
    def null_order(self) -> str:
        """Sort order for the ``column IS NULL`` placement term."""
        return "desc" if self.nulls_first else "asc"

    @property
    def operator(self) -> str:
        """Inequality selecting values past a boundary value."""
        return ">" if self.direction is SortDirection.ASCENDING else "<"

    def check_type(self, value: Any) -> bool:
        """Check a non-null value against the column type. Never raises."""
        column_type = self.column_type
        if column_type is ColumnType.STRING:
            return isinstance(value, str)
        if column_type is ColumnType.INTEGER:
            return isinstance(value, int) and not isinstance(value, bool)
        if column_type is ColumnType.FLOAT:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return False
            try:
                return math.isfinite(value)
            except OverflowError:
                # Integer outside the double range.
                return False
        if column_type is ColumnType.BOOLEAN:
            return isinstance(value, bool)
        if column_type is ColumnType.DATE:
            if isinstance(value, (date, datetime)):
                return True
            return isinstance(value, str) and _parse_date(value) is not None
        return False

    def validate_value(self, value: Any, case: ValidationCase) -> Any:
        """Validate a boundary value, raising the error class for ``case``."""
        error_class = get_error_class(case)
        if value is None:
            if not self.nullable:
                raise error_class(
                    "Cursor value is null, but column is not nullable",
                    info={"value": None, "column": self.column}
                )
        elif not self.check_type(value):
            raise error_class(
                "Cursor value does not match its column type",
                info={"value": value, "column_type": self.column_type.value}
            )

        if self.validator is None:
            return value
        result = ValidationResult.coerce(self.validator(value))
        if result.valid:
            return value
        raise error_class(
            result.message or "Invalid cursor value",
            info={"value": value}
        )

    def extract(self, row: Any) -> Any:
        """Read and validate this descriptor's value from a fetched row."""
        value = get_path(row, self.value_path)
        return self.validate_value(value, ValidationCase.CONFIGURATION)

    def to_query_value(self, value: Any) -> Any:
        """Convert a validated cursor value to the form compared in queries."""
        if self.column_type is ColumnType.DATE and isinstance(value, str):
            return _parse_date(value)
        return value


def _parse_date(value: str) -> Union[date, datetime, None]:
    try:
        if len(value) == 10:
            return date.fromisoformat(value)
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def _parse_enum(enum_class, value, default, label):
    if value is None:
        return default
    try:
        return enum_class(value)
    except ValueError:
        raise ConfigurationError(f"Unknown {label} '{value}'")


def normalize(raw: SortDescriptorLike) -> NormalizedSortDescriptor:
    """Normalize a user-declared sort descriptor.

    Accepts a bare column identifier, a mapping of descriptor fields, or a
    SortDescriptor. Raises ConfigurationError for anything malformed.
    """
    if isinstance(raw, NormalizedSortDescriptor):
        return raw
    if isinstance(raw, str):
        raw = SortDescriptor(column=raw)
    elif isinstance(raw, Mapping):
        try:
            raw = SortDescriptor.model_validate(dict(raw))
        except ValidationError as e:
            raise ConfigurationError(
                "Invalid sort descriptor",
                info={"descriptor": {k: repr(v) for k, v in raw.items()}},
                cause=e
            )
    elif not isinstance(raw, SortDescriptor):
        raise ConfigurationError(
            f"Invalid sort descriptor of type '{type(raw).__name__}'"
        )

    column = validate_column(raw.column)
    descriptor = NormalizedSortDescriptor(
        column=column,
        column_type=_parse_enum(ColumnType, raw.column_type, ColumnType.STRING, "column type"),
        nullable=bool(raw.nullable),
        direction=_parse_enum(SortDirection, raw.direction, SortDirection.ASCENDING, "sort direction"),
        value_path=raw.value_path or column,
        validator=raw.validator
    )
    logger.debug(
        f"Normalized sort descriptor {descriptor.column} "
        f"({descriptor.column_type.value}, {descriptor.direction.value}, "
        f"nullable={descriptor.nullable})"
    )
    return descriptor
