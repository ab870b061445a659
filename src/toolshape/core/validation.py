"""Schema validation for serialized result payloads."""

import logging
from typing import Any, Optional

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from .exceptions import SchemaViolation

logger = logging.getLogger(__name__)


def _adapter_for(schema: Any) -> TypeAdapter:
    return TypeAdapter(schema)


def validate_payload(schema: Any, payload: Any, name: Optional[str] = None) -> Any:
    """
    Validate a camelCase payload against a model or a discriminated union.

    Returns the validated model instance. Any mismatch, including a payload
    that carries fields from two action variants, raises SchemaViolation.
    """
    label = name or getattr(schema, "__name__", "result")
    try:
        return _adapter_for(schema).validate_python(payload)
    except PydanticValidationError as e:
        errors = [
            {"loc": list(err["loc"]), "type": err["type"], "msg": err["msg"]}
            for err in e.errors()
        ]
        logger.warning(f"Payload rejected by {label}: {len(errors)} error(s)")
        raise SchemaViolation(label, errors) from e


def is_valid(schema: Any, payload: Any) -> bool:
    try:
        validate_payload(schema, payload)
    except SchemaViolation:
        return False
    return True
