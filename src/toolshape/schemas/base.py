"""
Base models shared by every tool schema.

Serialized payloads use camelCase keys, reject unknown keys and omit optional
fields that were never set. Compact models are derived from their canonical
model so that every compact field either exists on the canonical model or is
an explicitly declared surrogate.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, create_model
from pydantic.alias_generators import to_camel


class ShapeModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    def dump(self) -> dict[str, Any]:
        """Serialized payload: camelCase keys, unset optionals left out."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CompactModel(ShapeModel):
    """Marker base for compact projections. Compact results are never compacted again."""


def derive_compact_model(
    source: type[ShapeModel],
    *,
    drop: tuple[str, ...],
    add: Optional[dict[str, Any]] = None,
    name: Optional[str] = None,
) -> type[CompactModel]:
    """
    Build the compact model for `source`.

    `drop` names the heavy fields (Python names) the compact form leaves out.
    `add` declares surrogate fields as `name: (annotation, default)` pairs,
    exactly as pydantic.create_model expects them.
    """
    unknown = [field for field in drop if field not in source.model_fields]
    if unknown:
        raise ValueError(f"{source.__name__} has no fields named {unknown}")

    fields: dict[str, Any] = {}
    for field_name, info in source.model_fields.items():
        if field_name in drop:
            continue
        if info.is_required():
            default: Any = ...
        elif info.default_factory is not None:
            default = Field(default_factory=info.default_factory)
        else:
            default = info.default
        fields[field_name] = (info.annotation, default)

    for field_name, spec in (add or {}).items():
        if field_name in source.model_fields:
            raise ValueError(
                f"Surrogate {field_name!r} would shadow a field of {source.__name__}"
            )
        fields[field_name] = spec

    model_name = name or f"{source.__name__}Compact"
    return create_model(model_name, __base__=CompactModel, **fields)


def heavy_field_aliases(source: type[ShapeModel], compact: type[CompactModel]) -> set[str]:
    """Serialized names of the canonical fields a compact model leaves out."""
    return {
        info.alias or field_name
        for field_name, info in source.model_fields.items()
        if field_name not in compact.model_fields
    }


# --- Entries shared across tool families ---


class Diagnostic(ShapeModel):
    """One located finding from a linter, type checker or compiler."""

    file: str
    line: int
    column: Optional[int] = None
    end_line: Optional[int] = None
    end_column: Optional[int] = None
    code: Optional[str] = None
    severity: str = "error"
    message: str
    fixable: Optional[bool] = None


class Package(ShapeModel):
    name: str
    version: str


class FailedTest(ShapeModel):
    test: str
    message: Optional[str] = None
    file: Optional[str] = None
    line: Optional[int] = None
