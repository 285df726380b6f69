"""Tests for graph traversal and the workflow execution lifecycle."""

import pytest
from sqlalchemy import delete

from conftest import OTHER_TENANT_ID, make_context, trigger_node
from core.constants import AuditAction, ExecutionStatus, TriggerEvent
from core.exceptions import (
    HttpTargetRejected,
    NoTriggerNode,
    TriggerMismatch,
    UnknownNodeType,
    WorkflowDepthExceeded,
    WorkflowInactive,
    WorkflowNotFound,
)
from db.models.workflow import WorkflowNode

SLACK_HOOK = "https://hooks.slack.com/services/T/B/X"


def big_deal_workflow():
    nodes = [
        trigger_node(),
        {
            "node_id": "cond",
            "type": "CONDITION",
            "config": {"leftValue": "{{value}}", "operator": ">=", "rightValue": "10000"},
        },
        {
            "node_id": "notify",
            "type": "SLACK",
            "config": {"webhookUrl": SLACK_HOOK, "message": "Big deal: {{value}}"},
        },
    ]
    edges = [("trigger", "cond"), ("cond", "notify", "e-true")]
    return nodes, edges


@pytest.mark.integration
class TestConditionBranching:

    async def test_true_branch_runs(self, engine, create_workflow, get_executions, http, audit):
        workflow_id = await create_workflow(*big_deal_workflow())

        execution_id = await engine.execute(workflow_id, make_context({"value": 15000}))

        assert http.json_bodies() == [{"text": "Big deal: 15000", "username": "Workflow Bot"}]
        [execution] = await get_executions(workflow_id)
        assert execution.id == execution_id
        assert execution.status == ExecutionStatus.SUCCESS.value
        assert execution.output == {"value": 15000}
        assert execution.input == {"value": 15000}
        assert execution.error is None
        assert execution.completed_at is not None
        assert audit.actions == [AuditAction.EXECUTION_START.value, AuditAction.EXECUTION_SUCCESS.value]

    async def test_false_branch_skipped(self, engine, create_workflow, get_executions, http):
        workflow_id = await create_workflow(*big_deal_workflow())

        await engine.execute(workflow_id, make_context({"value": 500}))

        assert http.requests == []
        [execution] = await get_executions(workflow_id)
        assert execution.status == ExecutionStatus.SUCCESS.value

    async def test_false_labelled_edge(self, engine, create_workflow, http):
        nodes, _ = big_deal_workflow()
        workflow_id = await create_workflow(nodes, [("trigger", "cond"), ("cond", "notify", "e-false")])

        await engine.execute(workflow_id, make_context({"value": 500}))
        assert len(http.requests) == 1

        http.requests.clear()
        await engine.execute(workflow_id, make_context({"value": 15000}))
        assert http.requests == []

    async def test_source_handle_selects_branch(self, engine, create_workflow, http):
        nodes, _ = big_deal_workflow()
        workflow_id = await create_workflow(nodes, [("trigger", "cond"), ("cond", "notify", "e1", "false")])

        await engine.execute(workflow_id, make_context({"value": 15000}))
        assert http.requests == []

    async def test_outputs_visible_downstream(self, engine, create_workflow, http):
        nodes = [
            trigger_node(),
            {"node_id": "score", "type": "SET_VARIABLE", "config": {"variableName": "tier", "variableValue": "gold"}},
            {"node_id": "notify", "type": "SLACK", "config": {"webhookUrl": SLACK_HOOK, "message": "{{tier}} lead"}},
        ]
        workflow_id = await create_workflow(nodes, [("trigger", "score"), ("score", "notify")])

        context = make_context({"name": "Ada"})
        await engine.execute(workflow_id, context)

        assert http.json_bodies()[0]["text"] == "gold lead"
        assert context.variables["score_output"] == {"tier": "gold"}
        assert context.variables["trigger_output"] == {"name": "Ada"}


@pytest.mark.integration
class TestLoops:

    async def test_foreach_shares_variables_across_iterations(self, engine, create_workflow):
        nodes = [
            trigger_node(),
            {"node_id": "each", "type": "LOOP", "config": {"loopType": "foreach"}},
            {"node_id": "log", "type": "LOG", "config": {"message": "{{loopIndex}}|{{last}}"}},
            {"node_id": "remember", "type": "SET_VARIABLE", "config": {"variableName": "last", "variableValue": "{{loopItem}}"}},
        ]
        workflow_id = await create_workflow(nodes, [("trigger", "each"), ("each", "log"), ("log", "remember")])

        context = make_context([1, 2, 3])
        await engine.execute(workflow_id, context)

        messages = [entry["message"] for entry in context.variables["each_output"]]
        assert messages == ["0|{{last}}", "1|1", "2|2"]
        assert context.variables["last"] == 3
        assert "loopIndex" not in context.variables

    async def test_loop_edges_not_walked_twice(self, engine, create_workflow, http):
        nodes = [
            trigger_node(),
            {"node_id": "each", "type": "LOOP", "config": {"loopType": "foreach"}},
            {"node_id": "notify", "type": "SLACK", "config": {"webhookUrl": SLACK_HOOK, "message": "item {{loopItem}}"}},
        ]
        workflow_id = await create_workflow(nodes, [("trigger", "each"), ("each", "notify")])

        await engine.execute(workflow_id, make_context(["a", "b"]))

        assert [body["text"] for body in http.json_bodies()] == ["item a", "item b"]

    async def test_while_stops_at_max_iterations(self, engine, create_workflow, http):
        nodes = [
            trigger_node(),
            {"node_id": "again", "type": "LOOP", "config": {"loopType": "while", "maxIterations": 3}},
            {"node_id": "notify", "type": "SLACK", "config": {"webhookUrl": SLACK_HOOK, "message": "ping"}},
        ]
        workflow_id = await create_workflow(nodes, [("trigger", "again"), ("again", "notify")])

        await engine.execute(workflow_id, make_context())

        assert len(http.requests) == 3

    async def test_while_condition_false(self, engine, create_workflow, http):
        nodes = [
            trigger_node(),
            {"node_id": "again", "type": "LOOP", "config": {"loopType": "while", "condition": "{{keepGoing}}"}},
            {"node_id": "notify", "type": "SLACK", "config": {"webhookUrl": SLACK_HOOK, "message": "ping"}},
        ]
        workflow_id = await create_workflow(nodes, [("trigger", "again"), ("again", "notify")])

        await engine.execute(workflow_id, make_context({"keepGoing": False}))

        assert http.requests == []


@pytest.mark.integration
class TestExecutionLifecycle:

    async def test_not_found_creates_no_record(self, engine, audit):
        with pytest.raises(WorkflowNotFound):
            await engine.execute("missing", make_context())
        assert audit.entries == []

    async def test_other_tenant_is_not_found(self, engine, create_workflow, get_executions):
        workflow_id = await create_workflow(*big_deal_workflow())

        with pytest.raises(WorkflowNotFound):
            await engine.execute(workflow_id, make_context(tenant_id=OTHER_TENANT_ID))
        assert await get_executions(workflow_id) == []

    async def test_inactive_creates_no_record(self, engine, create_workflow, get_executions):
        workflow_id = await create_workflow(*big_deal_workflow(), active=False)

        with pytest.raises(WorkflowInactive):
            await engine.execute(workflow_id, make_context())
        assert await get_executions(workflow_id) == []

    async def test_trigger_mismatch_recorded(self, engine, create_workflow, get_executions, audit):
        workflow_id = await create_workflow([trigger_node("LEAD_UPDATED")])

        with pytest.raises(TriggerMismatch):
            await engine.execute(workflow_id, make_context(event=TriggerEvent.LEAD_CREATED))

        [execution] = await get_executions(workflow_id)
        assert execution.status == ExecutionStatus.FAILED.value
        assert "LEAD_UPDATED" in execution.error
        assert execution.completed_at is not None
        assert audit.actions == [AuditAction.EXECUTION_START.value, AuditAction.EXECUTION_FAILED.value]
        assert audit.entries[-1]["metadata"]["error"] == execution.error

    async def test_no_trigger_node(self, engine, create_workflow, get_executions):
        workflow_id = await create_workflow([{"node_id": "log", "type": "LOG", "config": {}}])

        with pytest.raises(NoTriggerNode):
            await engine.execute(workflow_id, make_context())

        [execution] = await get_executions(workflow_id)
        assert execution.status == ExecutionStatus.FAILED.value

    async def test_node_failure_recorded(self, engine, create_workflow, get_executions, http):
        nodes = [
            trigger_node(),
            {"node_id": "call", "type": "HTTP_REQUEST", "config": {"url": "http://127.0.0.1:8080/admin"}},
        ]
        workflow_id = await create_workflow(nodes, [("trigger", "call")])

        with pytest.raises(HttpTargetRejected):
            await engine.execute(workflow_id, make_context())

        assert http.requests == []
        [execution] = await get_executions(workflow_id)
        assert execution.status == ExecutionStatus.FAILED.value
        assert execution.error == "Private network targets are not allowed"

    async def test_completion_failure_recorded(self, engine, create_workflow, get_executions, audit, monkeypatch):
        workflow_id = await create_workflow(*big_deal_workflow())

        async def broken_complete(execution_id, output):
            raise RuntimeError("disk full")

        monkeypatch.setattr(engine.recorder, "complete", broken_complete)

        with pytest.raises(RuntimeError):
            await engine.execute(workflow_id, make_context({"value": 1}))

        [execution] = await get_executions(workflow_id)
        assert execution.status == ExecutionStatus.FAILED.value
        assert execution.error == "disk full"
        assert audit.actions == [AuditAction.EXECUTION_START.value, AuditAction.EXECUTION_FAILED.value]

    async def test_unknown_node_type_recorded(self, engine, create_workflow, get_executions):
        nodes = [trigger_node(), {"node_id": "fax", "type": "FAX", "config": {}}]
        workflow_id = await create_workflow(nodes, [("trigger", "fax")])

        with pytest.raises(UnknownNodeType):
            await engine.execute(workflow_id, make_context())

        [execution] = await get_executions(workflow_id)
        assert execution.error == "Unknown node type: FAX"

    async def test_cycle_hits_depth_guard(self, engine, create_workflow, get_executions):
        nodes = [
            trigger_node(),
            {"node_id": "a", "type": "LOG", "config": {"message": "a"}},
            {"node_id": "b", "type": "LOG", "config": {"message": "b"}},
        ]
        workflow_id = await create_workflow(nodes, [("trigger", "a"), ("a", "b"), ("b", "a")])

        with pytest.raises(WorkflowDepthExceeded):
            await engine.execute(workflow_id, make_context())

        [execution] = await get_executions(workflow_id)
        assert execution.status == ExecutionStatus.FAILED.value
        assert "max depth of 50" in execution.error

    async def test_dangling_edge_skipped(self, engine, create_workflow, session_factory, http):
        nodes = [
            trigger_node(),
            {"node_id": "gone", "type": "LOG", "config": {}},
            {"node_id": "notify", "type": "SLACK", "config": {"webhookUrl": SLACK_HOOK, "message": "hi"}},
        ]
        workflow_id = await create_workflow(nodes, [("trigger", "gone"), ("trigger", "notify")])

        async with session_factory() as session:
            await session.execute(delete(WorkflowNode).where(WorkflowNode.node_id == "gone"))
            await session.commit()

        await engine.execute(workflow_id, make_context())
        assert len(http.requests) == 1
