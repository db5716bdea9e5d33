"""Persistence for execution runs.

Two backends share the ExecutionStore protocol:
- InMemoryExecutionStore: single-process deployments and tests
- RedisExecutionStore: runs survive restarts and are visible to every worker

Usage:
    from services.execution.store import create_execution_store

    store = create_execution_store(settings)
    run_id = await store.create_run(workflow_id)
"""

import copy
import json
from typing import Dict, Any, List, Optional, Protocol, Union

import redis.asyncio as redis

from core.config import Settings
from core.logging import get_logger
from .exceptions import RunNotFound
from .models import ExecutionRun, RunStatus, StepRecord, utc_now

logger = get_logger(__name__)

DEFAULT_EXECUTION_TTL = 86400  # 24 hours once a run is finished


class ExecutionStore(Protocol):
    """Protocol for run persistence (enables duck typing)."""

    async def create_run(self, workflow_id: Optional[str], run_id: Optional[str] = None) -> str:
        """Create a pending run and return its id."""
        ...

    async def append_step(self, run_id: str, step: StepRecord) -> None:
        """Append one step record to the run's trace."""
        ...

    async def set_status(self, run_id: str, status: RunStatus) -> None:
        """Move a run to a non-terminal status."""
        ...

    async def finalize_run(self, run_id: str, status: RunStatus, error: Optional[str] = None) -> None:
        """Move a run to a terminal status."""
        ...

    async def get_run(self, run_id: str) -> ExecutionRun:
        """Load a run; raises RunNotFound."""
        ...


class InMemoryExecutionStore:
    """Dict-backed store. Reads return copies so callers cannot mutate state."""

    def __init__(self):
        self._runs: Dict[str, ExecutionRun] = {}

    def _require(self, run_id: str) -> ExecutionRun:
        run = self._runs.get(run_id)
        if run is None:
            raise RunNotFound(run_id)
        return run

    async def create_run(self, workflow_id: Optional[str], run_id: Optional[str] = None) -> str:
        run = ExecutionRun.create(workflow_id, run_id)
        self._runs[run.run_id] = run
        logger.debug("Run created", run_id=run.run_id, workflow_id=workflow_id)
        return run.run_id

    async def append_step(self, run_id: str, step: StepRecord) -> None:
        self._require(run_id).steps.append(copy.deepcopy(step))

    async def set_status(self, run_id: str, status: RunStatus) -> None:
        run = self._require(run_id)
        run.status = status
        if status == RunStatus.RUNNING and run.started_at is None:
            run.started_at = utc_now()

    async def finalize_run(self, run_id: str, status: RunStatus, error: Optional[str] = None) -> None:
        run = self._require(run_id)
        run.status = status
        run.error = error
        run.completed_at = utc_now()

    async def get_run(self, run_id: str) -> ExecutionRun:
        return copy.deepcopy(self._require(run_id))


def ensure_str(value: Union[str, bytes, None]) -> Optional[str]:
    """Decode bytes from clients created without decode_responses."""
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode('utf-8')
    return value


class RedisExecutionStore:
    """Redis-backed run store.

    Key schema:
        execution:{id}:state   -> HASH {runId, workflowId, status, error, timestamps}
        execution:{id}:steps   -> LIST [StepRecord JSON]
        executions:active      -> SET {run_ids}
    """

    def __init__(self, client: "redis.Redis", ttl: int = DEFAULT_EXECUTION_TTL):
        self.redis = client
        self.ttl = ttl

    @classmethod
    def from_url(cls, url: str, ttl: int = DEFAULT_EXECUTION_TTL) -> "RedisExecutionStore":
        client = redis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=5,
            socket_connect_timeout=5,
            retry_on_timeout=True,
        )
        return cls(client, ttl)

    async def close(self) -> None:
        await self.redis.aclose()

    @staticmethod
    def _state_key(run_id: str) -> str:
        return f"execution:{run_id}:state"

    @staticmethod
    def _steps_key(run_id: str) -> str:
        return f"execution:{run_id}:steps"

    async def _require(self, run_id: str) -> None:
        if not await self.redis.exists(self._state_key(run_id)):
            raise RunNotFound(run_id)

    async def create_run(self, workflow_id: Optional[str], run_id: Optional[str] = None) -> str:
        run = ExecutionRun.create(workflow_id, run_id)
        mapping = {
            "runId": json.dumps(run.run_id),
            "workflowId": json.dumps(run.workflow_id),
            "status": json.dumps(run.status.value),
            "error": json.dumps(None),
            "createdAt": json.dumps(run.created_at),
            "startedAt": json.dumps(None),
            "completedAt": json.dumps(None),
        }
        await self.redis.hset(self._state_key(run.run_id), mapping=mapping)
        logger.debug("Run created", run_id=run.run_id, workflow_id=workflow_id, backend="redis")
        return run.run_id

    async def append_step(self, run_id: str, step: StepRecord) -> None:
        await self._require(run_id)
        await self.redis.rpush(self._steps_key(run_id), json.dumps(step.to_dict()))

    async def set_status(self, run_id: str, status: RunStatus) -> None:
        await self._require(run_id)
        mapping = {"status": json.dumps(status.value)}
        if status == RunStatus.RUNNING:
            mapping["startedAt"] = json.dumps(utc_now())
            await self.redis.sadd("executions:active", run_id)
        await self.redis.hset(self._state_key(run_id), mapping=mapping)

    async def finalize_run(self, run_id: str, status: RunStatus, error: Optional[str] = None) -> None:
        await self._require(run_id)
        await self.redis.hset(self._state_key(run_id), mapping={
            "status": json.dumps(status.value),
            "error": json.dumps(error),
            "completedAt": json.dumps(utc_now()),
        })
        await self.redis.expire(self._state_key(run_id), self.ttl)
        await self.redis.expire(self._steps_key(run_id), self.ttl)
        await self.redis.srem("executions:active", run_id)
        logger.debug("Run finalized", run_id=run_id, status=status.value, backend="redis")

    async def get_run(self, run_id: str) -> ExecutionRun:
        raw_state = await self.redis.hgetall(self._state_key(run_id))
        if not raw_state:
            raise RunNotFound(run_id)

        data: Dict[str, Any] = {}
        for k, v in raw_state.items():
            key_str = ensure_str(k)
            val_str = ensure_str(v)
            try:
                data[key_str] = json.loads(val_str)
            except (json.JSONDecodeError, TypeError):
                data[key_str] = val_str

        raw_steps: List[Any] = await self.redis.lrange(self._steps_key(run_id), 0, -1)
        data["steps"] = [json.loads(ensure_str(s)) for s in raw_steps]
        return ExecutionRun.from_dict(data)


def create_execution_store(settings: Settings) -> ExecutionStore:
    """Factory function to create the configured store.

    Returns:
        RedisExecutionStore if Redis is enabled and configured,
        InMemoryExecutionStore otherwise
    """
    if settings.use_redis:
        logger.info("Execution store: redis", url=settings.redis_url)
        return RedisExecutionStore.from_url(settings.redis_url, ttl=settings.execution_ttl)
    logger.info("Execution store: memory")
    return InMemoryExecutionStore()
