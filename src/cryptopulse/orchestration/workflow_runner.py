"""Workflow Runner — executes a workflow against one live context.

The runner is deliberately small: steps run strictly in order on the
calling thread, each one only after the previous one has fully finished.
For every step it

1. validates the current context against the step's input shape,
2. calls the handler with the validated input and the context,
3. validates the returned fields against the step's output shape,
4. merges them into a new context.

Any validation failure, failed ``StepResult`` or exception raised by a
handler is fatal: the run is marked ABORTED and the error propagates to the
caller unchanged in type.  No later step runs and no partial output is
returned.  Conditions that should *not* stop a run are represented by the
steps themselves as ordinary output fields.

Run state machine::

    CREATED ──start──▶ RUNNING(0) ──advance──▶ RUNNING(1) ... RUNNING(N-1)
                          │                                      │
                          └──────────abort──▶ ABORTED            └──complete──▶ COMPLETED

Example::

    runner = WorkflowRunner()
    result = runner.run(workflow, {"ids": "bitcoin", "vs_currencies": "usd"})
    result.output  # {"summary": "...", "sent": True}
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from cryptopulse.core.errors import CryptoPulseError, StepFailedError, WorkflowError, categorize_error
from cryptopulse.core.logging import LogContext, get_logger
from cryptopulse.orchestration.shapes import validate_input, validate_output
from cryptopulse.orchestration.step_result import StepResult
from cryptopulse.orchestration.step_types import Step
from cryptopulse.orchestration.workflow import Workflow
from cryptopulse.orchestration.workflow_context import WorkflowContext

logger = get_logger(__name__)


class RunState(str, Enum):
    """Lifecycle of a single workflow run."""

    CREATED = "created"
    RUNNING = "running"
    COMPLETED = "completed"
    ABORTED = "aborted"


@dataclass
class WorkflowRun:
    """Ephemeral state of one invocation; strictly forward transitions."""

    workflow_name: str
    run_id: str
    step_count: int
    state: RunState = RunState.CREATED
    step_index: int | None = None
    error: BaseException | None = None

    def start(self) -> None:
        """CREATED → RUNNING(0)."""
        self._require(RunState.CREATED, "start")
        self.state = RunState.RUNNING
        self.step_index = 0

    def advance(self) -> None:
        """RUNNING(k) → RUNNING(k+1) after step k succeeded."""
        self._require(RunState.RUNNING, "advance")
        if self.step_index is None or self.step_index + 1 >= self.step_count:
            raise WorkflowError(f"Run {self.run_id} cannot advance past the last step")
        self.step_index += 1

    def complete(self) -> None:
        """RUNNING(N-1) → COMPLETED after the last step succeeded."""
        self._require(RunState.RUNNING, "complete")
        if self.step_index != self.step_count - 1:
            raise WorkflowError(
                f"Run {self.run_id} cannot complete at step {self.step_index} of {self.step_count}"
            )
        self.state = RunState.COMPLETED

    def abort(self, error: BaseException) -> None:
        """CREATED/RUNNING → ABORTED on any fatal failure."""
        if self.state in (RunState.COMPLETED, RunState.ABORTED):
            raise WorkflowError(f"Run {self.run_id} is already {self.state.value}")
        self.state = RunState.ABORTED
        self.error = error

    def _require(self, state: RunState, action: str) -> None:
        if self.state != state:
            raise WorkflowError(
                f"Run {self.run_id} cannot {action} from state {self.state.value}"
            )


@dataclass
class StepExecution:
    """Record of executing a single step."""

    step_id: str
    status: str  # "completed"
    started_at: datetime
    completed_at: datetime | None = None
    output: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def duration_seconds(self) -> float | None:
        """Calculate step duration."""
        if self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging."""
        return {
            "step_id": self.step_id,
            "status": self.status,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "output_keys": sorted(self.output),
            "error": self.error,
        }


@dataclass
class WorkflowResult:
    """Result of a completed workflow run."""

    workflow_name: str
    run_id: str
    output: dict[str, Any]
    context: WorkflowContext
    run: WorkflowRun
    started_at: datetime
    completed_at: datetime
    step_executions: list[StepExecution] = field(default_factory=list)

    @property
    def duration_seconds(self) -> float:
        """Total workflow duration."""
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def completed_steps(self) -> list[str]:
        """Ids of the steps that ran, in order."""
        return [s.step_id for s in self.step_executions if s.status == "completed"]

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logging/output."""
        return {
            "workflow_name": self.workflow_name,
            "run_id": self.run_id,
            "status": self.run.state.value,
            "output": self.output,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_seconds": self.duration_seconds,
            "step_executions": [s.to_dict() for s in self.step_executions],
        }


class WorkflowRunner:
    """Executes workflows sequentially with context passing.

    The runner keeps no state between runs; one instance can execute any
    number of workflows.  When a run aborts with a ``CryptoPulseError``,
    the error's context carries the run id, the failing step and, in its
    metadata, ``run_state`` and ``step_index``.  Other exceptions propagate
    untouched; the abort is still logged as ``workflow.aborted``.
    """

    def run(
        self,
        workflow: Workflow,
        initial: Mapping[str, Any] | None = None,
        *,
        run_id: str | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> WorkflowResult:
        """
        Execute a workflow.

        Args:
            workflow: The workflow to execute
            initial: Initial context; must satisfy the workflow input shape
            run_id: Optional run id (generated if not provided)
            metadata: Extra metadata stored on the context

        Returns:
            WorkflowResult whose ``output`` holds the workflow output fields

        Raises:
            Whatever fatal error stopped the run, unchanged in type.
        """
        context = WorkflowContext.create(
            workflow_name=workflow.name,
            fields=initial or {},
            run_id=run_id,
            metadata=metadata,
        )
        run = WorkflowRun(
            workflow_name=workflow.name,
            run_id=context.run_id,
            step_count=len(workflow.steps),
        )
        started_at = datetime.now(UTC)
        step_executions: list[StepExecution] = []

        with LogContext(workflow=workflow.name, run_id=context.run_id):
            logger.info("workflow.start", step_count=len(workflow.steps))

            current_step: str | None = None
            try:
                validate_input(
                    workflow.input_shape,
                    context.fields,
                    where=f"workflow '{workflow.name}' input",
                )
                run.start()

                for index, step in enumerate(workflow.steps):
                    if index > 0:
                        run.advance()
                    current_step = step.id
                    step_exec, context = self._execute_step(step, context)
                    step_executions.append(step_exec)

                current_step = None
                output = validate_input(
                    workflow.output_shape,
                    context.fields,
                    where=f"workflow '{workflow.name}' output",
                ).model_dump()
                run.complete()
            except Exception as exc:
                run.abort(exc)
                if isinstance(exc, CryptoPulseError):
                    exc.with_context(
                        workflow=workflow.name,
                        run_id=context.run_id,
                        run_state=run.state.value,
                        step_index=run.step_index,
                    )
                    if current_step:
                        exc.with_context(step=current_step)
                logger.error(
                    "workflow.aborted",
                    step=current_step,
                    step_index=run.step_index,
                    error=str(exc),
                    error_type=type(exc).__name__,
                    category=categorize_error(exc).value,
                )
                raise

            completed_at = datetime.now(UTC)
            logger.info(
                "workflow.complete",
                duration_seconds=(completed_at - started_at).total_seconds(),
                completed_steps=len(step_executions),
            )

        return WorkflowResult(
            workflow_name=workflow.name,
            run_id=context.run_id,
            output=output,
            context=context,
            run=run,
            started_at=started_at,
            completed_at=completed_at,
            step_executions=step_executions,
        )

    # Alias for callers using the execute() name
    execute = run

    def _execute_step(
        self,
        step: Step,
        context: WorkflowContext,
    ) -> tuple[StepExecution, WorkflowContext]:
        """Run one step and return its record plus the merged context."""
        started_at = datetime.now(UTC)
        logger.debug("workflow.step_start", step=step.id)

        data = validate_input(step.input_shape, context.fields, where=f"step '{step.id}' input")
        result = StepResult.from_value(step.handler(data, context))

        if not result.success:
            logger.warning("workflow.step_failed", step=step.id, error=result.error)
            raise StepFailedError(step.id, result.error or "", result.error_category)

        partial = validate_output(step.output_shape, result.output, where=f"step '{step.id}' output")
        new_context = context.merge(step.id, partial)

        step_exec = StepExecution(
            step_id=step.id,
            status="completed",
            started_at=started_at,
            completed_at=datetime.now(UTC),
            output=partial,
        )
        logger.debug(
            "workflow.step_complete",
            step=step.id,
            output_keys=sorted(partial),
            duration_seconds=step_exec.duration_seconds,
        )
        return step_exec, new_context
