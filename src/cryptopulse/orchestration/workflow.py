"""Workflow — named, ordered chain of typed steps.

Manifesto:
    The Workflow is the blueprint: it declares what runs and in which order,
never how (that is WorkflowRunner's job).  Because every step declares its
input and output shapes, the whole chain can be type-checked once, when the
workflow is assembled, instead of discovering a missing field halfway
through a run that already made network calls.

ARCHITECTURE
────────────
::

    Workflow(name, steps, input_shape, output_shape)
      ├── __post_init__       ── unique ids + chain validation
      ├── .build(...)         ── keyword factory
      └── .available_fields() ── cumulative field map at any point

    WorkflowBuilder(name, input, output)
      .then(step) ... .commit()  → Workflow

Chain validation walks the steps in order with a running map of
field → type, seeded from the workflow input shape.  Each step's input shape
must be satisfiable from that map; its output shape is then added to it.
After the last step the workflow output shape must be satisfiable too.
Any gap raises ``ChainValidationError`` before a run is ever attempted.

Example::

    workflow = (
        WorkflowBuilder("crypto-twitter-workflow", input=RunInput, output=RunOutput)
        .then(fetch_prices)
        .then(fetch_posts)
        .commit()
    )
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from cryptopulse.core.errors import ChainValidationError, WorkflowError
from cryptopulse.orchestration.shapes import Shape, check_compatible, required_fields, shape_fields
from cryptopulse.orchestration.step_types import Step

# Pseudo step id used when the workflow output shape cannot be satisfied
OUTPUT_STEP_ID = "<workflow-output>"


@dataclass(frozen=True)
class Workflow:
    """
    A named workflow with ordered steps.

    Attributes:
        name: Unique workflow name (e.g., "crypto-twitter-workflow")
        steps: Ordered steps to execute
        input_shape: What the caller must supply
        output_shape: What the final context must contain
        description: Human-readable description
    """

    name: str
    steps: tuple[Step, ...]
    input_shape: type[Shape]
    output_shape: type[Shape]
    description: str = ""

    def __post_init__(self):
        """Validate workflow structure."""
        object.__setattr__(self, "steps", tuple(self.steps))
        self._validate_steps()
        self._validate_chain()

    @classmethod
    def build(
        cls,
        name: str,
        steps: list[Step] | tuple[Step, ...],
        input_shape: type[Shape],
        output_shape: type[Shape],
        description: str = "",
    ) -> Workflow:
        """Assemble and validate a workflow."""
        return cls(
            name=name,
            steps=tuple(steps),
            input_shape=input_shape,
            output_shape=output_shape,
            description=description,
        )

    def _validate_steps(self) -> None:
        """Validate the step list is non-empty and ids are unique."""
        if not self.steps:
            raise WorkflowError(f"Workflow '{self.name}' has no steps")

        seen: set[str] = set()
        for step in self.steps:
            if step.id in seen:
                raise WorkflowError(f"Duplicate step id: {step.id}")
            seen.add(step.id)

    def _validate_chain(self) -> None:
        """Type-check the linear pipeline once, at assembly time."""
        available = shape_fields(self.input_shape)
        # optional fields may never be merged, so only required ones count as present
        guaranteed = set(required_fields(self.input_shape))

        for step in self.steps:
            missing, mismatched = check_compatible(available, step.input_shape, guaranteed)
            if missing or mismatched:
                raise ChainValidationError(step.id, missing, mismatched).with_context(
                    workflow=self.name, step=step.id
                )
            available.update(shape_fields(step.output_shape))
            guaranteed.update(required_fields(step.output_shape))

        missing, mismatched = check_compatible(available, self.output_shape, guaranteed)
        if missing or mismatched:
            raise ChainValidationError(OUTPUT_STEP_ID, missing, mismatched).with_context(
                workflow=self.name
            )

    # =========================================================================
    # Accessors
    # =========================================================================

    def available_fields(self, before_step: str | None = None) -> dict[str, Any]:
        """Field → type map known to exist before *before_step* runs.

        With no argument, returns the map after the last step.
        """
        available = shape_fields(self.input_shape)
        for step in self.steps:
            if step.id == before_step:
                return available
            available.update(shape_fields(step.output_shape))
        if before_step is not None:
            raise WorkflowError(f"Unknown step: {before_step}")
        return available

    def get_step(self, step_id: str) -> Step | None:
        """Get step by id."""
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    def step_ids(self) -> list[str]:
        """Get ordered list of step ids."""
        return [s.id for s in self.steps]

    def to_dict(self) -> dict[str, Any]:
        """Describe the workflow for display."""
        return {
            "name": self.name,
            "description": self.description,
            "input": sorted(shape_fields(self.input_shape)),
            "output": sorted(shape_fields(self.output_shape)),
            "steps": [
                {
                    "id": s.id,
                    "description": s.description,
                    "reads": s.reads(),
                    "writes": s.writes(),
                }
                for s in self.steps
            ],
        }

    def __repr__(self) -> str:
        return f"Workflow({self.name!r}, steps={len(self.steps)})"


@dataclass
class WorkflowBuilder:
    """Fluent assembly: ``WorkflowBuilder(...).then(a).then(b).commit()``."""

    name: str
    input: type[Shape]
    output: type[Shape]
    description: str = ""
    steps: list[Step] = field(default_factory=list)

    def then(self, step: Step) -> WorkflowBuilder:
        """Append a step."""
        self.steps.append(step)
        return self

    def commit(self) -> Workflow:
        """Validate the chain and freeze it into a Workflow."""
        return Workflow.build(
            name=self.name,
            steps=self.steps,
            input_shape=self.input,
            output_shape=self.output,
            description=self.description,
        )
