import enum
import typing
from dataclasses import fields, is_dataclass

# Type marker key written for every serialized dataclass
_TYPE_KEY = "_type"


def _serialize_for_json(value: typing.Any) -> typing.Any:
    if isinstance(value, enum.Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        result = {
            _TYPE_KEY: type(value).__name__,
        }
        for item in fields(value):
            result[item.name] = _serialize_for_json(getattr(value, item.name))
        return result
    if isinstance(value, dict):
        return {str(key): _serialize_for_json(val) for key, val in value.items()}
    if isinstance(value, set):
        return [_serialize_for_json(item) for item in sorted(value)]
    if isinstance(value, (list, tuple)):
        return [_serialize_for_json(item) for item in value]
    return value


def serialize_extraction(value: typing.Any) -> dict:
    """
    Turn an extraction result into JSON-ready data.

    Dataclasses become dicts tagged with their class name under "_type",
    enums become their value and tuples become lists.
    """
    serialized = _serialize_for_json(value)
    if isinstance(serialized, dict):
        return serialized
    return {"value": serialized}
