"""Tests for WorkflowContext and merge_context — additive, immutable merging."""

from __future__ import annotations

from datetime import datetime

import pytest

from cryptopulse.core.errors import SchemaError
from cryptopulse.orchestration.workflow_context import WorkflowContext, merge_context


# ---------------------------------------------------------------------------
# merge_context
# ---------------------------------------------------------------------------


class TestMergeContext:
    def test_adds_new_keys(self):
        assert merge_context({"ids": "bitcoin"}, {"prices": {}}) == {"ids": "bitcoin", "prices": {}}

    def test_partial_overrides(self):
        assert merge_context({"reason": "old"}, {"reason": "new"}) == {"reason": "new"}

    def test_retains_every_existing_key(self):
        before = {"ids": "bitcoin", "vs_currencies": "usd", "prices": {"bitcoin": {"usd": 1.0}}}
        after = merge_context(before, {"tweets": []})
        assert set(before) <= set(after)
        for key, value in before.items():
            assert after[key] == value

    def test_inputs_not_mutated(self):
        fields = {"tweets": ["a"]}
        partial = {"reason": "x"}
        merge_context(fields, partial)
        assert fields == {"tweets": ["a"]}
        assert partial == {"reason": "x"}

    def test_result_does_not_alias_inputs(self):
        partial = {"tweets": ["a"]}
        merged = merge_context({}, partial)
        partial["tweets"].append("b")
        assert merged["tweets"] == ["a"]

    def test_sequential_merges_equal_single_fold(self):
        partials = [{"a": 1}, {"b": 2}, {"a": 3, "c": 4}]
        stepwise: dict = {"x": 0}
        for p in partials:
            stepwise = merge_context(stepwise, p)

        folded = {"x": 0}
        for p in partials:
            folded.update(p)
        assert stepwise == folded == {"x": 0, "a": 3, "b": 2, "c": 4}

    def test_empty_partial(self):
        assert merge_context({"a": 1}, {}) == {"a": 1}


# ---------------------------------------------------------------------------
# WorkflowContext
# ---------------------------------------------------------------------------


class TestWorkflowContextCreate:
    def test_create_defaults(self):
        ctx = WorkflowContext.create("wf", {"ids": "bitcoin"})
        assert ctx.workflow_name == "wf"
        assert ctx.fields == {"ids": "bitcoin"}
        assert ctx.history == ()
        assert ctx.run_id
        assert isinstance(ctx.started_at, datetime)

    def test_create_with_run_id_and_metadata(self):
        ctx = WorkflowContext.create("wf", run_id="run-1", metadata={"caller": "cli"})
        assert ctx.run_id == "run-1"
        assert ctx.metadata == {"caller": "cli"}
        assert ctx.fields == {}

    def test_create_copies_fields(self):
        initial = {"tweets": ["a"]}
        ctx = WorkflowContext.create("wf", initial)
        initial["tweets"].append("b")
        assert ctx.fields == {"tweets": ["a"]}

    def test_is_frozen(self):
        ctx = WorkflowContext.create("wf")
        with pytest.raises(AttributeError):
            ctx.run_id = "other"


class TestWorkflowContextAccessors:
    def test_get_and_has(self):
        ctx = WorkflowContext.create("wf", {"ok": False})
        assert ctx.get("ok") is False
        assert ctx.get("missing", "default") == "default"
        assert ctx.has("ok")
        assert not ctx.has("missing")

    def test_require(self):
        ctx = WorkflowContext.create("wf", {"summary": "s"})
        assert ctx.require("summary") == "s"
        with pytest.raises(SchemaError) as exc_info:
            ctx.require("sent")
        assert exc_info.value.field == "sent"

    def test_snapshot_is_a_copy(self):
        ctx = WorkflowContext.create("wf", {"tweets": ["a"]})
        snap = ctx.snapshot()
        snap["tweets"].append("b")
        assert ctx.get("tweets") == ["a"]


class TestWorkflowContextMerge:
    def test_merge_returns_new_context(self):
        ctx = WorkflowContext.create("wf", {"ids": "bitcoin"})
        merged = ctx.merge("fetch-tweets", {"tweets": []})
        assert merged is not ctx
        assert ctx.fields == {"ids": "bitcoin"}
        assert merged.fields == {"ids": "bitcoin", "tweets": []}

    def test_merge_records_history(self):
        ctx = WorkflowContext.create("wf")
        ctx = ctx.merge("a", {"x": 1}).merge("b", {"y": 2})
        assert ctx.history == ("a", "b")

    def test_merge_preserves_identity(self):
        ctx = WorkflowContext.create("wf", run_id="r1", metadata={"k": "v"})
        merged = ctx.merge("a", {})
        assert merged.run_id == "r1"
        assert merged.workflow_name == "wf"
        assert merged.started_at == ctx.started_at
        assert merged.metadata == {"k": "v"}


class TestWorkflowContextSerialization:
    def test_round_trip(self):
        ctx = WorkflowContext.create("wf", {"ids": "bitcoin"}, run_id="r1").merge("a", {"x": 1})
        restored = WorkflowContext.from_dict(ctx.to_dict())
        assert restored.run_id == "r1"
        assert restored.fields == {"ids": "bitcoin", "x": 1}
        assert restored.history == ("a",)
        assert restored.started_at == ctx.started_at

    def test_repr_lists_field_names(self):
        ctx = WorkflowContext.create("wf", {"b": 1, "a": 2}, run_id="r1")
        assert repr(ctx) == "WorkflowContext(run_id='r1', workflow='wf', fields=['a', 'b'])"
