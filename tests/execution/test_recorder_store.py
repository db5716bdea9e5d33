"""
Unit tests for run recording and both execution stores
"""

import json

import pytest

from core.config import Settings
from services.execution import (
    ExecutionRecorder,
    InMemoryExecutionStore,
    InvalidRunTransition,
    RedisExecutionStore,
    RunNotFound,
    RunStatus,
    StepOutcome,
    StepRecord,
    create_execution_store,
)
from services.execution.models import ExecutionRun, utc_now

from conftest import make_node


class FakeRedis:
    """In-process stand-in for the handful of redis.asyncio calls the store makes"""

    def __init__(self):
        self.hashes = {}
        self.lists = {}
        self.sets = {}
        self.ttls = {}
        self.closed = False

    async def exists(self, key):
        return int(key in self.hashes or key in self.lists)

    async def hset(self, key, mapping):
        self.hashes.setdefault(key, {}).update(mapping)

    async def hgetall(self, key):
        return dict(self.hashes.get(key, {}))

    async def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)

    async def lrange(self, key, start, end):
        return list(self.lists.get(key, []))

    async def sadd(self, key, member):
        self.sets.setdefault(key, set()).add(member)

    async def srem(self, key, member):
        self.sets.get(key, set()).discard(member)

    async def expire(self, key, ttl):
        self.ttls[key] = ttl

    async def aclose(self):
        self.closed = True


def _step(node_id="t", outcome=None):
    node = make_node("trigger", node_id=node_id, label="Start")
    outcome = outcome or StepOutcome.success({"success": True})
    now = utc_now()
    return StepRecord.from_outcome(node, outcome, now, now)


@pytest.mark.asyncio
async def test_recorder_lifecycle():
    store = InMemoryExecutionStore()
    recorder = await ExecutionRecorder.create(store, "wf-1")
    assert recorder.status == RunStatus.PENDING

    await recorder.start()
    await recorder.record_step(_step())
    await recorder.complete()

    run = await store.get_run(recorder.run_id)
    assert run.status == RunStatus.COMPLETED
    assert run.started_at is not None
    assert run.completed_at is not None
    assert [s.node_id for s in run.steps] == ["t"]
    assert recorder.run.status == RunStatus.COMPLETED


@pytest.mark.asyncio
async def test_status_never_moves_backwards():
    store = InMemoryExecutionStore()
    recorder = await ExecutionRecorder.create(store, "wf-1")

    with pytest.raises(InvalidRunTransition):
        await recorder.complete()

    await recorder.start()
    with pytest.raises(InvalidRunTransition):
        await recorder.start()

    await recorder.fail("boom")
    with pytest.raises(InvalidRunTransition):
        await recorder.complete()
    with pytest.raises(InvalidRunTransition):
        await recorder.record_step(_step())

    run = await store.get_run(recorder.run_id)
    assert run.status == RunStatus.FAILED
    assert run.error == "boom"


@pytest.mark.asyncio
async def test_pending_run_can_fail():
    store = InMemoryExecutionStore()
    recorder = await ExecutionRecorder.create(store, "wf-1")
    await recorder.fail("graph rejected")
    assert (await store.get_run(recorder.run_id)).status == RunStatus.FAILED


@pytest.mark.asyncio
async def test_memory_store_reads_are_copies():
    store = InMemoryExecutionStore()
    run_id = await store.create_run("wf-1")
    await store.set_status(run_id, RunStatus.RUNNING)
    await store.append_step(run_id, _step())

    first = await store.get_run(run_id)
    first.steps.clear()
    second = await store.get_run(run_id)

    assert len(second.steps) == 1
    assert second.to_dict() == (await store.get_run(run_id)).to_dict()


@pytest.mark.asyncio
async def test_memory_store_unknown_run():
    store = InMemoryExecutionStore()
    with pytest.raises(RunNotFound):
        await store.get_run("missing")
    with pytest.raises(RunNotFound):
        await store.append_step("missing", _step())


@pytest.mark.asyncio
async def test_redis_store_round_trip():
    client = FakeRedis()
    store = RedisExecutionStore(client, ttl=120)

    run_id = await store.create_run("wf-1", run_id="run-42")
    await store.set_status(run_id, RunStatus.RUNNING)
    assert "run-42" in client.sets["executions:active"]

    await store.append_step(run_id, _step())
    await store.append_step(run_id, _step("x", StepOutcome.failure("bad amount")))
    await store.finalize_run(run_id, RunStatus.FAILED, "bad amount")

    run = await store.get_run(run_id)
    assert run.run_id == "run-42"
    assert run.workflow_id == "wf-1"
    assert run.status == RunStatus.FAILED
    assert run.error == "bad amount"
    assert run.started_at is not None
    assert [s.node_id for s in run.steps] == ["t", "x"]
    assert run.steps[1].error == "bad amount"
    assert run.steps[1].output is None

    assert client.ttls == {"execution:run-42:state": 120, "execution:run-42:steps": 120}
    assert "run-42" not in client.sets["executions:active"]
    assert json.loads(client.hashes["execution:run-42:state"]["status"]) == "failed"

    await store.close()
    assert client.closed


@pytest.mark.asyncio
async def test_redis_store_unknown_run():
    store = RedisExecutionStore(FakeRedis())
    with pytest.raises(RunNotFound):
        await store.get_run("nope")
    with pytest.raises(RunNotFound):
        await store.set_status("nope", RunStatus.RUNNING)


def test_run_serialization_keys():
    run = ExecutionRun.create("wf-1", "run-1")
    run.steps.append(_step())
    data = run.to_dict()

    assert set(data) == {"runId", "workflowId", "status", "steps", "error",
                         "createdAt", "startedAt", "completedAt"}
    assert data["steps"][0]["nodeLabel"] == "Start"
    assert data["steps"][0]["output"] == {"success": True}
    assert "error" not in data["steps"][0]
    assert ExecutionRun.from_dict(data).to_dict() == data


def test_store_factory():
    assert isinstance(create_execution_store(Settings(redis_enabled=False)), InMemoryExecutionStore)
    store = create_execution_store(Settings(redis_enabled=True, redis_url="redis://localhost:6379/0"))
    assert isinstance(store, RedisExecutionStore)
