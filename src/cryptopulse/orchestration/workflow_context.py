"""
Workflow Context - accumulated state passed step-to-step.

Every step reads a WorkflowContext and returns only the fields it adds or
changes.  The runner folds those fields into a NEW context with
:func:`merge_context`; the previous context is never mutated.

Design Principles:
- Additive: a merge keeps every existing field unless the partial output
  names it again
- Immutable: steps return updates, the runner creates the new context
- Serializable: ``to_dict`` / ``from_dict`` for logging and debugging

Example:
    ctx = WorkflowContext.create("crypto-twitter-workflow", {"ids": "bitcoin"})
    ctx = ctx.merge("fetch-crypto-prices", {"prices": {"bitcoin": {"usd": 1.0}}})
    ctx.get("ids")       # "bitcoin" (still present)
    ctx.history          # ["fetch-crypto-prices"]
"""

from __future__ import annotations

import copy
import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from cryptopulse.core.errors import SchemaError

_MISSING = object()


def merge_context(fields: Mapping[str, Any], partial: Mapping[str, Any]) -> dict[str, Any]:
    """Fold a step's partial output into the accumulated fields.

    Pure: neither argument is modified.  Keys in *partial* override
    same-named keys in *fields*; all other keys are retained.  Applying
    merges one step at a time is equivalent to folding the whole history.
    """
    merged = copy.deepcopy(dict(fields))
    merged.update(copy.deepcopy(dict(partial)))
    return merged


@dataclass(frozen=True)
class WorkflowContext:
    """
    Immutable context that flows through workflow steps.

    Attributes:
        run_id: Unique identifier for this workflow run
        workflow_name: Name of the workflow being executed
        fields: Accumulated field values
        history: Ids of the steps merged so far, in order
        started_at: When this workflow run began
        metadata: Additional metadata (caller info, etc.)
    """

    run_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    workflow_name: str = ""
    fields: dict[str, Any] = field(default_factory=dict)
    history: tuple[str, ...] = ()
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = field(default_factory=dict)

    # =========================================================================
    # Factories
    # =========================================================================

    @classmethod
    def create(
        cls,
        workflow_name: str,
        fields: Mapping[str, Any] | None = None,
        run_id: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> WorkflowContext:
        """Create the initial context of a run."""
        return cls(
            run_id=run_id or str(uuid.uuid4()),
            workflow_name=workflow_name,
            fields=copy.deepcopy(dict(fields or {})),
            metadata=dict(metadata or {}),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkflowContext:
        """Deserialize from dictionary."""
        started_at = data.get("started_at")
        if isinstance(started_at, str):
            started_at = datetime.fromisoformat(started_at)

        return cls(
            run_id=data.get("run_id", str(uuid.uuid4())),
            workflow_name=data.get("workflow_name", ""),
            fields=data.get("fields", {}),
            history=tuple(data.get("history", ())),
            started_at=started_at or datetime.now(UTC),
            metadata=data.get("metadata", {}),
        )

    # =========================================================================
    # Accessors (read-only)
    # =========================================================================

    def get(self, key: str, default: Any = None) -> Any:
        """Get a field value."""
        return self.fields.get(key, default)

    def require(self, key: str) -> Any:
        """Get a field value that must be present."""
        value = self.fields.get(key, _MISSING)
        if value is _MISSING:
            raise SchemaError(f"Context has no field '{key}'", field=key)
        return value

    def has(self, key: str) -> bool:
        """Check if a field is present."""
        return key in self.fields

    def snapshot(self) -> dict[str, Any]:
        """Deep copy of the current fields."""
        return copy.deepcopy(self.fields)

    # =========================================================================
    # Merge (returns new context)
    # =========================================================================

    def merge(self, step_id: str, partial: Mapping[str, Any]) -> WorkflowContext:
        """Create a new context with a step's output merged in."""
        return WorkflowContext(
            run_id=self.run_id,
            workflow_name=self.workflow_name,
            fields=merge_context(self.fields, partial),
            history=(*self.history, step_id),
            started_at=self.started_at,
            metadata=dict(self.metadata),
        )

    # =========================================================================
    # Serialization
    # =========================================================================

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "run_id": self.run_id,
            "workflow_name": self.workflow_name,
            "fields": self.fields,
            "history": list(self.history),
            "started_at": self.started_at.isoformat(),
            "metadata": self.metadata,
        }

    def __repr__(self) -> str:
        return (
            f"WorkflowContext(run_id={self.run_id!r}, "
            f"workflow={self.workflow_name!r}, "
            f"fields={sorted(self.fields)})"
        )
