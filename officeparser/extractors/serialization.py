"""
JSON round trip for the document tree.

Every dataclass is written as a dict with a ``_type`` marker naming the
class, so node metadata variants and nested chart data come back as the
same classes. Attachment payloads are already base64 text and pass
through unchanged.
"""

import types
import typing
from dataclasses import fields, is_dataclass

from officeparser.extractors.data_types import OfficeParserAST

# Type marker key used for serialization/deserialization
_TYPE_KEY = "_type"

# Registry mapping type names to classes (populated lazily)
_TYPE_REGISTRY: dict[str, type] = {}


def _serialize_for_json(value: typing.Any) -> typing.Any:
    if is_dataclass(value) and not isinstance(value, type):
        result = {
            _TYPE_KEY: type(value).__name__,
        }
        for item in fields(value):
            result[item.name] = _serialize_for_json(getattr(value, item.name))
        return result
    if isinstance(value, dict):
        return {str(key): _serialize_for_json(val) for key, val in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize_for_json(item) for item in value]
    return value


def serialize_ast(ast: OfficeParserAST) -> dict:
    """JSON-compatible dict for ``ast``; see :func:`deserialize_ast`."""
    return _serialize_for_json(ast)


def _get_type_registry() -> dict[str, type]:
    if _TYPE_REGISTRY:
        return _TYPE_REGISTRY

    from officeparser.extractors import data_types

    for name in dir(data_types):
        obj = getattr(data_types, name)
        if isinstance(obj, type) and is_dataclass(obj):
            _TYPE_REGISTRY[name] = obj

    return _TYPE_REGISTRY


def _unwrap_optional(tp: typing.Any) -> typing.Any:
    """``X`` for ``X | None``; other types unchanged."""
    if typing.get_origin(tp) in (typing.Union, types.UnionType):
        args = [arg for arg in typing.get_args(tp) if arg is not type(None)]
        if len(args) == 1:
            return args[0]
    return tp


def _deserialize_value(value: typing.Any, expected_type: typing.Any) -> typing.Any:
    if value is None:
        return None

    expected_type = _unwrap_optional(expected_type)

    if isinstance(value, dict) and _TYPE_KEY in value:
        return _deserialize_dataclass(value)

    origin = typing.get_origin(expected_type)

    if origin is list and isinstance(value, list):
        args = typing.get_args(expected_type)
        item_type = args[0] if args else typing.Any
        return [_deserialize_value(item, item_type) for item in value]

    if origin is dict and isinstance(value, dict):
        args = typing.get_args(expected_type)
        value_type = args[1] if len(args) > 1 else typing.Any
        return {key: _deserialize_value(val, value_type) for key, val in value.items()}

    registry = _get_type_registry()
    if isinstance(expected_type, type) and expected_type.__name__ in registry:
        if isinstance(value, dict):
            return _deserialize_dataclass(value, expected_type)

    return value


def _deserialize_dataclass(data: dict, expected_class: type | None = None) -> typing.Any:
    registry = _get_type_registry()

    type_name = data.get(_TYPE_KEY)
    if type_name and type_name in registry:
        cls = registry[type_name]
    elif expected_class is not None:
        cls = expected_class
    else:
        return data

    field_types = typing.get_type_hints(cls)
    kwargs = {}
    for item in fields(cls):
        if item.name in data:
            kwargs[item.name] = _deserialize_value(
                data[item.name], field_types.get(item.name, typing.Any)
            )
    return cls(**kwargs)


def deserialize_ast(data: dict) -> OfficeParserAST:
    """
    Rebuild an :class:`OfficeParserAST` from the output of :func:`serialize_ast`.

    Raises:
        ValueError: If ``data`` does not describe a document tree.
    """
    if not isinstance(data, dict):
        raise ValueError("Serialized document tree must be a dict")
    result = _deserialize_dataclass(data, OfficeParserAST)
    if not isinstance(result, OfficeParserAST):
        raise ValueError(f"Expected {OfficeParserAST.__name__}, got {data.get(_TYPE_KEY)}")
    return result
