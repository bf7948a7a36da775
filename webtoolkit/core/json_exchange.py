from __future__ import annotations

import collections.abc
import dataclasses
import json
import logging
import types
import typing
from typing import Any, BinaryIO, Optional, Tuple, Type, TypeVar, Union

import typing_extensions
from pydantic import BaseModel, RootModel, TypeAdapter, ValidationError
from pydantic.errors import PydanticUserError

from webtoolkit.core.config import DEFAULT_MAX_JSON_BYTES
from webtoolkit.core.errors import (
    BodyTooLargeError,
    EmptyBodyError,
    JSONDecodeFailure,
    JSONTypeError,
    MalformedJSONError,
    MultiplePayloadsError,
    PayloadEncodeError,
    UnclassifiedJSONError,
    UnknownFieldError,
)
from webtoolkit.core.streams import LimitedReader, ReadLimitExceeded, as_stream
from webtoolkit.utils.json_safe import dumps_strict

log = logging.getLogger("webtoolkit.json")

T = TypeVar("T")

_WHITESPACE = " \t\n\r"

# pydantic error types that mean "wrong JSON type" but do not end in "_type".
_TYPE_ERRORS = frozenset({"int_from_float", "is_instance_of", "none_required"})

_LITERALS = ("true", "false", "null")

_SEQUENCE_ORIGINS = (
    list,
    tuple,
    set,
    frozenset,
    collections.abc.Sequence,
    collections.abc.MutableSequence,
    collections.abc.Set,
    collections.abc.MutableSet,
)
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


def read_json(
    body: Union[bytes, BinaryIO],
    target: Type[T],
    *,
    max_bytes: int = DEFAULT_MAX_JSON_BYTES,
    allow_unknown_fields: bool = False,
) -> T:
    """Decode exactly one JSON value from body into an instance of target.

    target is anything pydantic can validate: a BaseModel subclass, a
    dataclass, a TypedDict, builtin containers.

    Raises one JSONDecodeFailure subclass per failure:
    - BodyTooLargeError: more than max_bytes in the body
    - EmptyBodyError: nothing but whitespace
    - MalformedJSONError: syntax error (offset) or truncated value (unexpected EOF)
    - UnknownFieldError: key not declared by target (unless allowed)
    - JSONTypeError: value of the wrong JSON type (field path, else offset)
    - MultiplePayloadsError: anything after the first value
    - UnclassifiedJSONError: any other validation failure

    Validation is strict: no "1" -> 1 coercion.

    """

    if int(max_bytes) <= 0:
        max_bytes = DEFAULT_MAX_JSON_BYTES

    reader = LimitedReader(as_stream(body), max_bytes)
    try:
        raw = reader.readall()
    except ReadLimitExceeded as e:
        raise BodyTooLargeError(max_bytes) from e
    finally:
        reader.close()

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise MalformedJSONError(e.start) from e

    start = _skip_whitespace(text, 0)
    if start >= len(text):
        raise EmptyBodyError()

    try:
        value, end = json.JSONDecoder().raw_decode(text, start)
    except json.JSONDecodeError as e:
        if _truncated(text, e):
            raise MalformedJSONError(None) from e
        raise MalformedJSONError(e.pos) from e

    if not allow_unknown_fields:
        unknown = find_unknown_field(value, target)
        if unknown is not None:
            raise UnknownFieldError(unknown)

    try:
        adapter: TypeAdapter = TypeAdapter(target)
    except PydanticUserError as e:
        raise UnclassifiedJSONError(str(e)) from e

    try:
        result = adapter.validate_json(text[start:end], strict=True)
    except ValidationError as e:
        raise _classify_validation_error(e, end) from e

    if _skip_whitespace(text, end) < len(text):
        raise MultiplePayloadsError()

    return result


def encode_json(payload: Any) -> bytes:
    """Serialize payload for the wire, raising PayloadEncodeError on failure."""

    try:
        return dumps_strict(payload)
    except (TypeError, ValueError) as e:
        raise PayloadEncodeError(f"cannot encode JSON payload: {e}") from e


def _skip_whitespace(text: str, pos: int) -> int:
    n = len(text)
    while pos < n and text[pos] in _WHITESPACE:
        pos += 1
    return pos


def _truncated(text: str, err: json.JSONDecodeError) -> bool:
    """True when err was caused by input ending inside a value."""

    if err.pos >= len(text) or err.msg.startswith("Unterminated string"):
        return True
    # json reports a cut-off literal at its first character.
    rest = text[err.pos :]
    return rest == "-" or any(lit != rest and lit.startswith(rest) for lit in _LITERALS)


def _classify_validation_error(exc: ValidationError, offset: int) -> JSONDecodeFailure:
    """Map the first pydantic error to a decode failure category."""

    errors = exc.errors(include_url=False)
    if not errors:
        return UnclassifiedJSONError(str(exc))

    first = errors[0]
    etype = str(first.get("type", ""))
    path = ".".join(str(p) for p in first.get("loc", ()))

    if etype == "extra_forbidden":
        return UnknownFieldError(path)
    if etype.endswith("_type") or etype in _TYPE_ERRORS:
        return JSONTypeError(path or None, offset)

    msg = str(first.get("msg", "validation failed"))
    log.debug("json_validation_unclassified", extra={"error_type": etype})
    return UnclassifiedJSONError(f"{path}: {msg}" if path else msg)


def find_unknown_field(value: Any, target: Any, _path: Tuple[Any, ...] = ()) -> Optional[str]:
    """Return the dotted path of the first key target does not declare, or None.

    Walks nested models, dataclasses, TypedDicts, sequences, mappings and unions.
    Types without a declared field set accept any key.

    """

    tp = _strip_annotated(target)
    origin = typing.get_origin(tp)

    if origin is Union or (hasattr(types, "UnionType") and origin is types.UnionType):
        first_hit: Optional[str] = None
        for arg in typing.get_args(tp):
            if arg is type(None):
                continue
            hit = find_unknown_field(value, arg, _path)
            if hit is None:
                return None
            first_hit = first_hit or hit
        return first_hit

    if origin in _SEQUENCE_ORIGINS and isinstance(value, list):
        args = typing.get_args(tp)
        for i, item in enumerate(value):
            if origin is tuple and args and args[-1] is not Ellipsis:
                if i >= len(args):
                    break
                item_tp = args[i]
            else:
                item_tp = args[0] if args else Any
            hit = find_unknown_field(item, item_tp, _path + (i,))
            if hit is not None:
                return hit
        return None

    if origin in _MAPPING_ORIGINS and isinstance(value, dict):
        args = typing.get_args(tp)
        if len(args) == 2:
            for k, v in value.items():
                hit = find_unknown_field(v, args[1], _path + (k,))
                if hit is not None:
                    return hit
        return None

    if not isinstance(value, dict) or not isinstance(tp, type):
        return None

    if issubclass(tp, RootModel):
        root = tp.model_fields.get("root")
        return find_unknown_field(value, root.annotation, _path) if root else None

    if issubclass(tp, BaseModel):
        declared = {}
        for name, info in tp.model_fields.items():
            declared[name] = info.annotation
            if info.alias:
                declared[info.alias] = info.annotation
            if isinstance(info.validation_alias, str):
                declared[info.validation_alias] = info.annotation
    elif dataclasses.is_dataclass(tp):
        try:
            hints = typing.get_type_hints(tp, include_extras=True)
        except (NameError, TypeError):
            hints = {}
        declared = {f.name: hints.get(f.name, Any) for f in dataclasses.fields(tp)}
    elif typing_extensions.is_typeddict(tp):
        # Required/NotRequired wrappers are stripped by get_type_hints.
        try:
            hints = typing_extensions.get_type_hints(tp)
        except (NameError, TypeError):
            hints = {}
        keys = set(tp.__required_keys__) | set(tp.__optional_keys__)
        declared = {k: hints.get(k, Any) for k in keys}
    else:
        return None

    for key, item in value.items():
        if key not in declared:
            return ".".join(str(p) for p in _path + (key,))
        hit = find_unknown_field(item, declared[key], _path + (key,))
        if hit is not None:
            return hit
    return None


def _strip_annotated(tp: Any) -> Any:
    while typing.get_origin(tp) is typing.Annotated:
        tp = typing.get_args(tp)[0]
    return tp
