"""Cursor encoding, decoding and argument fingerprints."""

import base64
import binascii
import hashlib
import json
import math
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict
from pydantic_core import PydanticSerializationError, to_json, to_jsonable_python

from ..errors.problem_details import ConfigurationError, InvalidCursorError


class Cursor(BaseModel):
    """A decoded cursor.

    On the wire the fields use abbreviated keys (``q``, ``s``, ``a``, ``v``)
    to keep cursors short enough for query strings.
    """

    model_config = ConfigDict(frozen=True)

    query: str
    sort: str
    args_hash: Optional[str] = None
    values: Optional[List[Any]] = None

    @classmethod
    def from_object(cls, obj: Dict[str, Any]) -> "Cursor":
        """Create a Cursor from its abbreviated object form."""
        return cls(
            query=obj["q"],
            sort=obj["s"],
            args_hash=obj.get("a"),
            values=obj.get("v")
        )

    @staticmethod
    def validate_object(value: Any) -> Dict[str, Any]:
        """Check the structure of a parsed cursor object.

        Raises:
            InvalidCursorError: If a field is missing or has the wrong type
        """
        if not isinstance(value, dict):
            raise InvalidCursorError(
                "Cursor is not object-like",
                info={"cursor": value}
            )

        if not isinstance(value.get("q"), str):
            raise InvalidCursorError(
                "Cursor 'q' is not a string",
                info={"q": value.get("q")}
            )

        if not isinstance(value.get("s"), str):
            raise InvalidCursorError(
                "Cursor 's' is not a string",
                info={"s": value.get("s")}
            )

        if "a" in value and not isinstance(value["a"], str):
            raise InvalidCursorError(
                "Cursor 'a' is not a string",
                info={"a": value["a"]}
            )

        if "v" in value and not isinstance(value["v"], list):
            raise InvalidCursorError(
                "Cursor 'v' is not an array",
                info={"v": value["v"]}
            )

        return value

    def to_object(self) -> Dict[str, Any]:
        """Convert to the abbreviated object form."""
        obj: Dict[str, Any] = {"q": self.query, "s": self.sort}
        if self.args_hash is not None:
            obj["a"] = self.args_hash
        if self.values is not None:
            obj["v"] = self.values
        return obj

    def serialize(self) -> str:
        return encode_cursor(self)


def encode_cursor(cursor: Cursor) -> str:
    """Encode a cursor as an opaque, URL-safe string.

    The cursor is JSON in unpadded base64url. It is not encrypted or signed.
    """
    cursor_bytes = to_json(cursor.to_object())
    return base64.urlsafe_b64encode(cursor_bytes).decode("ascii").rstrip("=")


def decode_cursor(cursor: str) -> Cursor:
    """Decode a cursor string produced by ``encode_cursor``.

    Raises:
        InvalidCursorError: If the cursor is malformed
    """
    try:
        padded = cursor + "=" * (-len(cursor) % 4)
        cursor_bytes = base64.urlsafe_b64decode(padded.encode("ascii"))
        obj = json.loads(
            cursor_bytes.decode("utf-8"),
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float
        )
    except (ValueError, TypeError, RecursionError, binascii.Error) as e:
        # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
        raise InvalidCursorError(
            "Cursor contains invalid JSON",
            info={"cursor": cursor},
            cause=e
        )
    return Cursor.from_object(Cursor.validate_object(obj))


def compute_args_hash(args: Any, vary_args: Sequence[str] = ()) -> Optional[str]:
    """Fingerprint the arguments a paginated query was built from.

    Keys listed in ``vary_args`` do not affect results and are dropped first.
    Returns None when there are no arguments.

    Raises:
        ConfigurationError: If the arguments cannot be serialized to JSON
    """
    if args is None:
        return None
    if isinstance(args, BaseModel):
        args = args.model_dump()
    if vary_args and isinstance(args, Mapping):
        args = {k: v for k, v in args.items() if k not in vary_args}
    try:
        jsonable = to_jsonable_python(_canonicalize(args))
    except PydanticSerializationError as e:
        raise ConfigurationError(
            "Paginator args are not serializable",
            info={"args": repr(args)},
            cause=e
        )
    canonical = json.dumps(jsonable, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _canonicalize(value: Any) -> Any:
    # Set iteration order varies between processes.
    if isinstance(value, Mapping):
        return {str(k): _canonicalize(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((_canonicalize(v) for v in value), key=repr)
    if isinstance(value, (list, tuple)):
        return [_canonicalize(v) for v in value]
    return value


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-finite number {name} in cursor")


def _parse_finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Number {text} in cursor is out of range")
    return value
