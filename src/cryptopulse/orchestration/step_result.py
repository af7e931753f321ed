"""Step Result — envelope for step execution outcomes.

Manifesto:
    A step handler may return a plain dict, an instance of its output shape,
``None``, or a ``StepResult``.  The runner coerces all of them through
``StepResult.from_value`` so it only has one thing to inspect: either a
successful partial output or a signaled failure.

ARCHITECTURE
────────────
::

    StepResult
      ├── .ok(output)                 → success, output merged into context
      ├── .fail(error, category)      → fatal failure, the run aborts
      └── .from_value(any)            → coerce plain returns

Example::

    def fetch(data, ctx):
        if not data.ids:
            return StepResult.fail("no asset ids", category=ErrorCategory.VALIDATION)
        return StepResult.ok(output={"prices": {...}})
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel

from cryptopulse.core.errors import ErrorCategory


@dataclass(frozen=True)
class StepResult:
    """What one handler call produced.

    ``output`` holds the fields merged into the context on success; a failed
    result carries ``error`` and an ``error_category`` name instead.
    """

    success: bool
    output: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    error_category: str | None = None

    def __post_init__(self):
        # failures always carry a message; categories are stored by name
        if not (self.success or self.error):
            object.__setattr__(self, "error", "step reported failure")
        category = self.error_category
        if isinstance(category, ErrorCategory):
            object.__setattr__(self, "error_category", category.value)

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def ok(cls, output: Mapping[str, Any] | None = None) -> StepResult:
        """Success carrying ``output`` (empty when omitted)."""
        return cls(success=True, output=dict(output or {}))

    @classmethod
    def fail(
        cls,
        error: str,
        category: ErrorCategory | str = ErrorCategory.INTERNAL,
    ) -> StepResult:
        """Fatal failure; the runner turns it into ``StepFailedError``."""
        return cls(success=False, error=error, error_category=category)

    @classmethod
    def from_value(cls, value: Any) -> StepResult:
        """Coerce a handler's return value into a StepResult.

        ========== ===========================================================
        Type       Behaviour
        ========== ===========================================================
        StepResult Returned as-is.
        BaseModel  ``ok(output=value.model_dump(exclude_unset=True))``
        Mapping    ``ok(output=dict(value))``
        None       ``ok()`` with empty output.
        other      ``TypeError``
        ========== ===========================================================
        """
        match value:
            case StepResult():
                return value
            case None:
                return cls.ok()
            case BaseModel():
                return cls.ok(value.model_dump(exclude_unset=True))
            case Mapping():
                return cls.ok(value)
        raise TypeError(
            f"Step handlers must return a mapping, a shape instance, None or StepResult; "
            f"got {type(value).__name__}"
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging."""
        data: dict[str, Any] = {"success": self.success, "output": self.output}
        if not self.success:
            data.update(error=self.error, error_category=self.error_category)
        return data

    def __repr__(self) -> str:
        if self.success:
            return f"StepResult.ok(fields={sorted(self.output)})"
        return f"StepResult.fail({self.error!r}, category={self.error_category})"
