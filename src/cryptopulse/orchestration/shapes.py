"""Shapes — typed field sets for step and workflow boundaries.

Manifesto:
    Every step declares what it reads and what it contributes.  Declaring
    those as pydantic models gives two checks from one definition: a
    build-time compatibility pass over the whole chain (field names and
    types only, no data) and a run-time validation of the actual values
    crossing each boundary.

ARCHITECTURE
────────────
::

    Shape (pydantic BaseModel, strict, frozen, extra ignored)
      ├── shape_fields(shape)          → {name: annotation}
      ├── required_fields(shape)       → names without defaults
      ├── check_compatible(avail, s)   → (missing, mismatched)   build time
      ├── validate_input(s, fields)    → Shape instance          run time
      └── validate_output(s, partial)  → validated partial dict  run time

Example::

    class PriceInput(Shape):
        ids: str
        vs_currencies: str

    class PriceOutput(Shape):
        prices: dict[str, dict[str, float]]
"""

from __future__ import annotations

import types
from collections.abc import Collection, Mapping
from typing import Any, Union, get_args, get_origin

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from cryptopulse.core.errors import SchemaError


class Shape(BaseModel):
    """Base class for step and workflow input/output shapes."""

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)


def shape_fields(shape: type[Shape]) -> dict[str, Any]:
    """Map field name to its declared annotation."""
    return {name: info.annotation for name, info in shape.model_fields.items()}


def required_fields(shape: type[Shape]) -> list[str]:
    """Names of fields that have no default."""
    return [name for name, info in shape.model_fields.items() if info.is_required()]


def strip_optional(annotation: Any) -> Any:
    """Reduce ``X | None`` to ``X``; other annotations are returned as-is."""
    origin = get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return annotation


def type_name(annotation: Any) -> str:
    """Readable name for an annotation (``dict[str, float]``, ``bool | None``)."""
    if isinstance(annotation, type) and not get_args(annotation):
        return annotation.__name__
    return repr(annotation).replace("typing.", "")


def check_compatible(
    available: Mapping[str, Any],
    shape: type[Shape],
    guaranteed: Collection[str] | None = None,
) -> tuple[list[str], dict[str, tuple[str, str]]]:
    """Check a shape against the fields known to exist upstream.

    Args:
        available: Field name → annotation of everything produced so far
        shape: The shape that must be satisfied
        guaranteed: Names among *available* that are always present.
            Defaults to all of them; a required field whose only source
            is an optional upstream field counts as missing.

    Returns:
        ``(missing, mismatched)`` where *missing* lists required fields
        nobody is guaranteed to produce and *mismatched* maps a field to
        ``(wanted_type, upstream_type)`` when both sides declare it with
        different types.
    """
    missing: list[str] = []
    mismatched: dict[str, tuple[str, str]] = {}

    present = set(available) if guaranteed is None else set(guaranteed)

    for name, info in shape.model_fields.items():
        if info.is_required() and name not in present:
            missing.append(name)
            continue
        if name not in available:
            continue
        wanted = strip_optional(info.annotation)
        have = strip_optional(available[name])
        if wanted != have:
            mismatched[name] = (type_name(wanted), type_name(have))

    return missing, mismatched


def _schema_error(where: str, exc: PydanticValidationError) -> SchemaError:
    errors = exc.errors(include_url=False)
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}" for err in errors
    )
    first_field = str(errors[0]["loc"][0]) if errors and errors[0]["loc"] else None
    return SchemaError(f"{where}: {details}", errors=errors, field=first_field, cause=exc)


def validate_input(shape: type[Shape], fields: Mapping[str, Any], *, where: str) -> Shape:
    """Validate the part of *fields* that *shape* declares.

    Extra keys are ignored so a step can run against the full accumulated
    context.

    Raises:
        SchemaError: A required field is absent or a value has the wrong type.
    """
    relevant = {name: fields[name] for name in shape.model_fields if name in fields}
    try:
        return shape.model_validate(relevant)
    except PydanticValidationError as exc:
        raise _schema_error(where, exc) from exc


def validate_output(shape: type[Shape], partial: Mapping[str, Any], *, where: str) -> dict[str, Any]:
    """Validate a step's returned fields against its output shape.

    Only keys the step actually returned are kept, so an optional output
    field the step left out is not merged into the context.

    Raises:
        SchemaError: The step returned an undeclared key, omitted a required
            one, or returned a value of the wrong type.
    """
    undeclared = sorted(set(partial) - set(shape.model_fields))
    if undeclared:
        raise SchemaError(
            f"{where}: undeclared output fields: {', '.join(undeclared)}",
            field=undeclared[0],
        )
    try:
        model = shape.model_validate(dict(partial))
    except PydanticValidationError as exc:
        raise _schema_error(where, exc) from exc
    return model.model_dump(include=set(partial))


def describe_shape(shape: type[Shape]) -> list[tuple[str, str, bool]]:
    """``(name, type, required)`` rows for display."""
    return [
        (name, type_name(info.annotation), info.is_required())
        for name, info in shape.model_fields.items()
    ]
