"""Execution run state models.

All models are JSON-serializable for Redis persistence. Run and step
records use the camelCase keys the execution API returns.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, List, Mapping, Optional, Tuple


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class RunStatus(str, Enum):
    """Workflow run states.

    State transitions:
        PENDING -> RUNNING -> COMPLETED
                           -> FAILED
    """
    PENDING = "pending"        # Created, not started
    RUNNING = "running"        # Walker executing nodes
    COMPLETED = "completed"    # Every visited node succeeded
    FAILED = "failed"          # First node failure aborted the run

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED)

    def can_transition_to(self, target: "RunStatus") -> bool:
        return target in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS: Dict[RunStatus, Tuple[RunStatus, ...]] = {
    RunStatus.PENDING: (RunStatus.RUNNING, RunStatus.FAILED),
    RunStatus.RUNNING: (RunStatus.COMPLETED, RunStatus.FAILED),
    RunStatus.COMPLETED: (),
    RunStatus.FAILED: (),
}


class StepStatus(str, Enum):
    """Per-node result."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class StepOutcome:
    """Result of executing one node.

    ``error`` is set iff the step failed.
    """
    status: StepStatus
    output: Dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.status == StepStatus.SUCCESS

    @classmethod
    def success(cls, output: Dict[str, Any]) -> "StepOutcome":
        return cls(status=StepStatus.SUCCESS, output=output)

    @classmethod
    def failure(cls, error: str) -> "StepOutcome":
        return cls(status=StepStatus.FAILED, error=error or "Unknown error")


@dataclass(frozen=True)
class RuntimeIdentity:
    """Who the run acts as on-chain.

    ``signer_address`` is the account remote writes are signed for and the
    default address for lookups. ``credentials`` is opaque and handed to
    the blockchain services as-is.
    """
    signer_address: Optional[str] = None
    credentials: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StepInput:
    """Everything a handler sees besides the node itself."""
    run_id: str
    workflow_id: Optional[str]
    identity: RuntimeIdentity
    prior_outputs: Tuple[Dict[str, Any], ...] = ()
    handle_outputs: Mapping[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def signer(self) -> Optional[str]:
        return self.identity.signer_address


@dataclass
class StepRecord:
    """One entry of a run's step trace."""
    node_id: str
    node_type: str
    node_label: Optional[str]
    status: StepStatus
    started_at: str
    completed_at: str
    output: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def from_outcome(cls, node, outcome: StepOutcome,
                     started_at: str, completed_at: str) -> "StepRecord":
        return cls(
            node_id=node.id,
            node_type=node.type,
            node_label=node.label,
            status=outcome.status,
            started_at=started_at,
            completed_at=completed_at,
            output=outcome.output if outcome.succeeded else None,
            error=outcome.error,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        data = {
            "nodeId": self.node_id,
            "nodeType": self.node_type,
            "nodeLabel": self.node_label,
            "status": self.status.value,
            "startedAt": self.started_at,
            "completedAt": self.completed_at,
        }
        if self.status == StepStatus.SUCCESS:
            data["output"] = self.output
        else:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StepRecord":
        """Create from dict (Redis deserialization)."""
        return cls(
            node_id=data["nodeId"],
            node_type=data["nodeType"],
            node_label=data.get("nodeLabel"),
            status=StepStatus(data["status"]),
            started_at=data["startedAt"],
            completed_at=data["completedAt"],
            output=data.get("output"),
            error=data.get("error"),
        )


@dataclass
class ExecutionRun:
    """Persisted record of one workflow run."""
    run_id: str
    workflow_id: Optional[str]
    status: RunStatus = RunStatus.PENDING
    steps: List[StepRecord] = field(default_factory=list)
    error: Optional[str] = None
    created_at: str = field(default_factory=utc_now)
    started_at: Optional[str] = None
    completed_at: Optional[str] = None

    @classmethod
    def create(cls, workflow_id: Optional[str], run_id: Optional[str] = None) -> "ExecutionRun":
        return cls(run_id=run_id or str(uuid.uuid4()), workflow_id=workflow_id)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to JSON-serializable dict."""
        return {
            "runId": self.run_id,
            "workflowId": self.workflow_id,
            "status": self.status.value,
            "steps": [step.to_dict() for step in self.steps],
            "error": self.error,
            "createdAt": self.created_at,
            "startedAt": self.started_at,
            "completedAt": self.completed_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExecutionRun":
        """Create from dict (Redis deserialization)."""
        return cls(
            run_id=data["runId"],
            workflow_id=data.get("workflowId"),
            status=RunStatus(data["status"]),
            steps=[StepRecord.from_dict(s) for s in data.get("steps", [])],
            error=data.get("error"),
            created_at=data.get("createdAt") or utc_now(),
            started_at=data.get("startedAt"),
            completed_at=data.get("completedAt"),
        )
