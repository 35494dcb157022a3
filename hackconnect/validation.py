"""
Explicit payload validation.

``validate`` turns a raw mapping into either ``Valid(value)`` or
``Invalid(errors)``; ``require_valid`` is the service-side shortcut that
raises ``BadRequest`` for the invalid case.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, List, Mapping, Type, TypeVar, Union
from pydantic import BaseModel, ValidationError

from .errors import BadRequest

T = TypeVar("T", bound=BaseModel)


@dataclass(frozen=True)
class Valid(Generic[T]):
    value: T


@dataclass(frozen=True)
class Invalid:
    errors: List[str] = field(default_factory=list)


ValidationResult = Union[Valid[T], Invalid]


def format_errors(errors: List[Mapping[str, Any]]) -> List[str]:
    """Render pydantic error dicts as ``field: message`` strings."""
    messages = []
    for error in errors:
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = error.get("msg", "Invalid value")
        messages.append(f"{location}: {message}" if location else message)
    return messages


def validate(schema: Type[T], data: Any) -> ValidationResult:
    if not isinstance(data, Mapping):
        return Invalid(["Request body must be a JSON object"])
    try:
        return Valid(schema.model_validate(dict(data)))
    except ValidationError as exc:
        return Invalid(format_errors(exc.errors()))


def require_valid(schema: Type[T], data: Any) -> T:
    result = validate(schema, data)
    if isinstance(result, Invalid):
        raise BadRequest("; ".join(result.errors), details=result.errors)
    return result.value
