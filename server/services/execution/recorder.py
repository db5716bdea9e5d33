"""Step trace and run status for a single execution."""

from typing import Optional

from core.logging import get_logger
from .exceptions import InvalidRunTransition
from .models import ExecutionRun, RunStatus, StepRecord, utc_now
from .store import ExecutionStore

logger = get_logger(__name__)


class ExecutionRecorder:
    """Owns one ExecutionRun and mirrors every change to the store.

    Status only moves forward (pending -> running -> completed|failed).
    The local copy is updated after the store accepted the write, so a
    persistence failure never leaves the two out of step.
    """

    def __init__(self, store: ExecutionStore, run: ExecutionRun):
        self.store = store
        self.run = run

    @classmethod
    async def create(cls, store: ExecutionStore, workflow_id: Optional[str],
                     run_id: Optional[str] = None) -> "ExecutionRecorder":
        run_id = await store.create_run(workflow_id, run_id)
        return cls(store, ExecutionRun.create(workflow_id, run_id))

    @property
    def run_id(self) -> str:
        return self.run.run_id

    @property
    def status(self) -> RunStatus:
        return self.run.status

    def _check_transition(self, target: RunStatus) -> None:
        if not self.run.status.can_transition_to(target):
            raise InvalidRunTransition(self.run_id, self.run.status.value, target.value)

    async def start(self) -> None:
        self._check_transition(RunStatus.RUNNING)
        await self.store.set_status(self.run_id, RunStatus.RUNNING)
        self.run.status = RunStatus.RUNNING
        self.run.started_at = utc_now()
        logger.info("Run started", run_id=self.run_id, workflow_id=self.run.workflow_id)

    async def record_step(self, step: StepRecord) -> None:
        if self.run.status != RunStatus.RUNNING:
            raise InvalidRunTransition(self.run_id, self.run.status.value, "record_step")
        await self.store.append_step(self.run_id, step)
        self.run.steps.append(step)

    async def complete(self) -> None:
        self._check_transition(RunStatus.COMPLETED)
        await self.store.finalize_run(self.run_id, RunStatus.COMPLETED)
        self.run.status = RunStatus.COMPLETED
        self.run.completed_at = utc_now()
        logger.info("Run completed", run_id=self.run_id, steps=len(self.run.steps))

    async def fail(self, error: str) -> None:
        self._check_transition(RunStatus.FAILED)
        await self.store.finalize_run(self.run_id, RunStatus.FAILED, error)
        self.run.status = RunStatus.FAILED
        self.run.error = error
        self.run.completed_at = utc_now()
        logger.error("Run failed", run_id=self.run_id, error=error, steps=len(self.run.steps))
