"""Step Types — the unit of work in a workflow.

A Step bundles an id, a description, the shapes it reads and writes, and a
handler.  The handler receives the validated input shape and the read-only
context, and returns the fields it contributes.

ARCHITECTURE
────────────
::

    Step(id, description, input_shape, output_shape, handler)
      └── .define(...)       ── keyword factory
    @step(id, description, input=..., output=...)  ── decorator form

    StepHandler  ── (data: Shape, ctx: WorkflowContext) -> Mapping | Shape | StepResult | None

Example::

    class Sum(Shape):
        total: float

    @step("add", "Adds two numbers", input=Pair, output=Sum)
    def add(data: Pair, ctx: WorkflowContext) -> dict:
        return {"total": data.a + data.b}
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from cryptopulse.orchestration.shapes import Shape, required_fields, shape_fields

if TYPE_CHECKING:
    from cryptopulse.orchestration.workflow_context import WorkflowContext


@runtime_checkable
class StepHandler(Protocol):
    """
    Protocol for step handlers.

    Handlers can be:
    - Functions: def my_step(data, ctx) -> dict
    - Callable classes: class MyStep: def __call__(self, data, ctx) -> dict
    """

    def __call__(self, data: Any, ctx: WorkflowContext) -> Any:
        """Execute the step."""
        ...


StepHandlerFn = Callable[[Any, "WorkflowContext"], Any]


@dataclass(frozen=True)
class Step:
    """
    A single step within a workflow.

    Attributes:
        id: Unique id within the workflow (e.g. "fetch-crypto-prices")
        description: Human-readable description
        input_shape: Fields the step reads
        output_shape: Fields the step adds or changes
        handler: The function that performs the work
    """

    id: str
    description: str
    input_shape: type[Shape]
    output_shape: type[Shape]
    handler: StepHandlerFn

    def __post_init__(self):
        if not self.id:
            raise ValueError("Step id must be non-empty")
        if not callable(self.handler):
            raise TypeError(f"Step '{self.id}' handler is not callable")
        for label, shape in (("input", self.input_shape), ("output", self.output_shape)):
            if not (isinstance(shape, type) and issubclass(shape, Shape)):
                raise TypeError(f"Step '{self.id}' {label} shape must be a Shape subclass")

    @classmethod
    def define(
        cls,
        id: str,
        handler: StepHandlerFn,
        *,
        input: type[Shape],
        output: type[Shape],
        description: str = "",
    ) -> Step:
        """Create a step from keyword arguments."""
        return cls(
            id=id,
            description=description or (handler.__doc__ or "").strip().split("\n")[0],
            input_shape=input,
            output_shape=output,
            handler=handler,
        )

    def reads(self) -> list[str]:
        """Names of the fields the step requires."""
        return required_fields(self.input_shape)

    def writes(self) -> list[str]:
        """Names of the fields the step may contribute."""
        return list(shape_fields(self.output_shape))

    def __repr__(self) -> str:
        return f"Step({self.id!r}, reads={self.reads()}, writes={self.writes()})"


def step(
    id: str,
    description: str = "",
    *,
    input: type[Shape],
    output: type[Shape],
) -> Callable[[StepHandlerFn], Step]:
    """Decorator that turns a handler function into a :class:`Step`."""

    def decorator(fn: StepHandlerFn) -> Step:
        return Step.define(id, fn, input=input, output=output, description=description)

    return decorator
