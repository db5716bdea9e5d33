"""Execution engine exception hierarchy."""

from typing import Optional


class WorkflowEngineError(Exception):
    """Base exception for all engine errors."""


class InvalidGraph(WorkflowEngineError):
    """Structural defect in a workflow graph, detected before any node runs."""


class NodeConfigError(WorkflowEngineError):
    """A node's settings cannot be used as given."""

    def __init__(self, node_id: Optional[str], message: str):
        self.node_id = node_id
        super().__init__(message)


class MissingConfig(NodeConfigError):
    """A required setting is absent and could not be inferred from upstream outputs."""

    def __init__(self, node_id: Optional[str], field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(node_id, message or f"Missing required field: {field}")


class InvalidConfig(NodeConfigError):
    """A setting is present but malformed."""


class UnsupportedOperation(WorkflowEngineError):
    """A node names an operation the engine does not implement."""

    def __init__(self, operation: str, message: Optional[str] = None):
        self.operation = operation
        super().__init__(message or f"Unsupported operation: {operation}")


class UnsupportedTool(WorkflowEngineError):
    """Unknown external tool server or tool name."""

    def __init__(self, server: Optional[str], tool: Optional[str]):
        self.server = server
        self.tool = tool
        super().__init__(f"Unsupported tool '{tool}' on server '{server}'")


class OperationFailed(WorkflowEngineError):
    """A remote write operation failed on every attempt."""

    def __init__(self, operation: str, attempts: int, cause: BaseException):
        self.operation = operation
        self.attempts = attempts
        self.cause = cause
        super().__init__(f"{operation} failed after {attempts} attempts: {cause}")


class SwapStepFailed(WorkflowEngineError):
    """One sub-step of a multi-step swap failed."""

    def __init__(self, step: str, cause: BaseException):
        self.step = step
        self.cause = cause
        super().__init__(f"Swap step '{step}' failed: {cause}")


class InvalidRunTransition(WorkflowEngineError):
    """Attempt to move a run backwards or out of a terminal state."""

    def __init__(self, run_id: str, current: str, requested: str):
        self.run_id = run_id
        self.current = current
        self.requested = requested
        super().__init__(f"Run {run_id} cannot move from {current} to {requested}")


class RunNotFound(WorkflowEngineError):
    """No execution run with the given id."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Execution run not found: {run_id}")


class WorkflowNotFound(WorkflowEngineError):
    """The graph source has no workflow with the given id."""

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow not found: {workflow_id}")
