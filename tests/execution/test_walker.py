"""
Unit tests for depth-first traversal, branching and abort-on-failure
"""

import pytest

from services.execution import (
    ExecutionRecorder,
    GraphWalker,
    InMemoryExecutionStore,
    RunStatus,
    StepOutcome,
    StepStatus,
    build_index,
    load_workflow_graph,
)


class ScriptedRunner:
    """Node runner that records visits and fails on demand"""

    def __init__(self, fail=(), condition_results=None, outputs=None):
        self.fail = set(fail)
        self.condition_results = condition_results or {}
        self.outputs = outputs or {}
        self.visited = []
        self.inputs = {}

    async def __call__(self, node, step_input):
        self.visited.append(node.id)
        self.inputs[node.id] = step_input
        if node.id in self.fail:
            return StepOutcome.failure(f"{node.id} exploded")
        if node.type == "condition":
            return StepOutcome.success({"success": True,
                                        "conditionMet": self.condition_results.get(node.id, True)})
        return StepOutcome.success(self.outputs.get(node.id, {"success": True, "node": node.id}))


def _index(nodes, edges):
    return build_index(load_workflow_graph({"id": "wf", "nodes": nodes, "edges": edges}))


def _n(node_id, node_type="ai"):
    return {"id": node_id, "type": node_type}


async def _run(index, runner):
    store = InMemoryExecutionStore()
    recorder = await ExecutionRecorder.create(store, "wf")
    run = await GraphWalker(runner).run(index, recorder)
    return run, store


@pytest.mark.asyncio
async def test_depth_first_preorder():
    """First edge's subtree is finished before the second edge is taken"""
    index = _index(
        [_n("t", "trigger"), _n("a"), _n("b"), _n("a1"), _n("a2")],
        [
            {"from": "t", "to": "a"}, {"from": "t", "to": "b"},
            {"from": "a", "to": "a1"}, {"from": "a", "to": "a2"},
        ],
    )
    runner = ScriptedRunner()

    run, _ = await _run(index, runner)

    assert runner.visited == ["t", "a", "a1", "a2", "b"]
    assert run.status == RunStatus.COMPLETED
    assert [s.node_id for s in run.steps] == runner.visited


@pytest.mark.asyncio
async def test_condition_follows_only_matching_branch():
    index = _index(
        [_n("t", "trigger"), _n("c", "condition"), _n("yes"), _n("no")],
        [
            {"from": "t", "to": "c"},
            {"from": "c", "to": "yes", "sourceHandle": "true"},
            {"from": "c", "to": "no", "sourceHandle": "false"},
        ],
    )

    runner = ScriptedRunner(condition_results={"c": False})
    run, _ = await _run(index, runner)
    assert runner.visited == ["t", "c", "no"]
    assert run.status == RunStatus.COMPLETED

    runner = ScriptedRunner(condition_results={"c": True})
    await _run(index, runner)
    assert runner.visited == ["t", "c", "yes"]


@pytest.mark.asyncio
async def test_condition_without_matching_edge_ends_branch():
    index = _index(
        [_n("t", "trigger"), _n("c", "condition"), _n("plain"), _n("other")],
        [
            {"from": "t", "to": "c"}, {"from": "t", "to": "other"},
            {"from": "c", "to": "plain"},
        ],
    )
    runner = ScriptedRunner()

    run, _ = await _run(index, runner)

    assert runner.visited == ["t", "c", "other"]
    assert run.status == RunStatus.COMPLETED


@pytest.mark.asyncio
async def test_fan_in_node_runs_once():
    """A node reachable through two paths executes on the first visit only"""
    index = _index(
        [_n("t", "trigger"), _n("a"), _n("b"), _n("join")],
        [
            {"from": "t", "to": "a"}, {"from": "t", "to": "b"},
            {"from": "a", "to": "join"}, {"from": "b", "to": "join"},
        ],
    )
    runner = ScriptedRunner()

    run, _ = await _run(index, runner)

    assert runner.visited == ["t", "a", "join", "b"]
    assert len(run.steps) == 4
    # Only 'a' had produced output when join ran
    assert runner.inputs["join"].prior_outputs == ({"success": True, "node": "a"},)


@pytest.mark.asyncio
async def test_cycle_terminates():
    index = _index(
        [_n("t", "trigger"), _n("a"), _n("b")],
        [{"from": "t", "to": "a"}, {"from": "a", "to": "b"}, {"from": "b", "to": "a"}],
    )
    runner = ScriptedRunner()

    run, _ = await _run(index, runner)

    assert runner.visited == ["t", "a", "b"]
    assert run.status == RunStatus.COMPLETED


@pytest.mark.asyncio
async def test_first_failure_aborts_run():
    index = _index(
        [_n("t", "trigger"), _n("a"), _n("a1"), _n("b")],
        [{"from": "t", "to": "a"}, {"from": "t", "to": "b"}, {"from": "a", "to": "a1"}],
    )
    runner = ScriptedRunner(fail={"a"})

    run, store = await _run(index, runner)

    assert runner.visited == ["t", "a"]
    assert run.status == RunStatus.FAILED
    assert run.error == "a exploded"
    assert run.steps[-1].status == StepStatus.FAILED
    assert run.steps[-1].error == "a exploded"

    persisted = await store.get_run(run.run_id)
    assert persisted.status == RunStatus.FAILED
    assert len(persisted.steps) == 2


@pytest.mark.asyncio
async def test_trigger_only_graph_completes():
    runner = ScriptedRunner()
    run, _ = await _run(_index([_n("t", "trigger")], []), runner)
    assert run.status == RunStatus.COMPLETED
    assert len(run.steps) == 1


@pytest.mark.asyncio
async def test_handle_outputs_and_isolation():
    """Handlers see copies keyed by target handle"""
    index = _index(
        [_n("t", "trigger"), _n("a"), _n("c", "condition")],
        [{"from": "t", "to": "a"}, {"from": "a", "to": "c", "targetHandle": "value1"}],
    )

    class MutatingRunner(ScriptedRunner):
        async def __call__(self, node, step_input):
            outcome = await super().__call__(node, step_input)
            for prior in step_input.prior_outputs:
                prior["tampered"] = True
            return outcome

    runner = MutatingRunner(outputs={"a": {"balance": "10"}})
    run, _ = await _run(index, runner)

    assert runner.inputs["c"].handle_outputs == {"value1": {"balance": "10"}}
    assert run.steps[1].output == {"balance": "10"}


@pytest.mark.asyncio
async def test_unexpected_runner_error_fails_run():
    index = _index([_n("t", "trigger"), _n("a")], [{"from": "t", "to": "a"}])

    async def broken_runner(node, step_input):
        raise RuntimeError("store unreachable")

    store = InMemoryExecutionStore()
    recorder = await ExecutionRecorder.create(store, "wf")
    with pytest.raises(RuntimeError):
        await GraphWalker(broken_runner).run(index, recorder)

    persisted = await store.get_run(recorder.run_id)
    assert persisted.status == RunStatus.FAILED
    assert persisted.error == "Execution error: store unreachable"
