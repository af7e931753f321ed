"""
Crypto-pulse Orchestration — typed, sequential workflow engine.

ARCHITECTURE
────────────
::

    Shape                  ─ pydantic model describing a field set
    Step                   ─ id + input/output shapes + handler
    Workflow               ─ ordered steps, chain-validated at assembly
    WorkflowBuilder        ─ .then(step) ... .commit()
    WorkflowContext        ─ immutable accumulated state
    merge_context          ─ additive merge of a step's output
    StepResult             ─ ok / fail envelope
    WorkflowRunner         ─ strictly sequential execution
    WorkflowRun / RunState ─ CREATED → RUNNING(k) → COMPLETED | ABORTED

MODULE MAP (recommended reading order)
──────────────────────────────────────
1. shapes.py            ─ shapes, run-time validation, build-time compatibility
2. workflow_context.py  ─ context + merge
3. step_result.py       ─ StepResult
4. step_types.py        ─ Step + @step
5. workflow.py          ─ Workflow + WorkflowBuilder
6. workflow_runner.py   ─ execution engine
7. llm/                 ─ provider protocol for summarization steps
"""

from cryptopulse.orchestration.shapes import Shape, check_compatible, validate_input, validate_output
from cryptopulse.orchestration.step_result import StepResult
from cryptopulse.orchestration.step_types import Step, StepHandler, step
from cryptopulse.orchestration.workflow import Workflow, WorkflowBuilder
from cryptopulse.orchestration.workflow_context import WorkflowContext, merge_context
from cryptopulse.orchestration.workflow_runner import (
    RunState,
    StepExecution,
    WorkflowResult,
    WorkflowRun,
    WorkflowRunner,
)

__all__ = [
    "Shape",
    "check_compatible",
    "validate_input",
    "validate_output",
    "StepResult",
    "Step",
    "StepHandler",
    "step",
    "Workflow",
    "WorkflowBuilder",
    "WorkflowContext",
    "merge_context",
    "RunState",
    "StepExecution",
    "WorkflowResult",
    "WorkflowRun",
    "WorkflowRunner",
]
