"""Execution engine package.

Workflow execution with:
- Typed graph validation before any side effect
- Depth-first traversal with an explicit stack
- Condition branching on sourceHandle
- Bounded fixed-delay retry for remote writes
- Step trace persisted to memory or Redis
"""

from .exceptions import (
    WorkflowEngineError,
    InvalidGraph,
    NodeConfigError,
    MissingConfig,
    InvalidConfig,
    UnsupportedOperation,
    UnsupportedTool,
    OperationFailed,
    SwapStepFailed,
    InvalidRunTransition,
    RunNotFound,
    WorkflowNotFound,
)
from .models import (
    RunStatus,
    StepStatus,
    StepOutcome,
    RuntimeIdentity,
    StepInput,
    StepRecord,
    ExecutionRun,
)
from .graph import GraphIndex, build_index, load_workflow_graph
from .context import ExecutionContext
from .retry import RetryPolicy, with_retry, is_nonce_error
from .resolvers import (
    extract_numeric_value,
    resolve_amount,
    resolve_chain,
)
from .conditions import (
    evaluate_comparison,
    normalize_operator,
    select_branch_edges,
    get_available_operators,
    OPERATORS,
)
from .store import (
    ExecutionStore,
    InMemoryExecutionStore,
    RedisExecutionStore,
    create_execution_store,
)
from .recorder import ExecutionRecorder
from .walker import GraphWalker

__all__ = [
    # Errors
    "WorkflowEngineError",
    "InvalidGraph",
    "NodeConfigError",
    "MissingConfig",
    "InvalidConfig",
    "UnsupportedOperation",
    "UnsupportedTool",
    "OperationFailed",
    "SwapStepFailed",
    "InvalidRunTransition",
    "RunNotFound",
    "WorkflowNotFound",
    # Models
    "RunStatus",
    "StepStatus",
    "StepOutcome",
    "RuntimeIdentity",
    "StepInput",
    "StepRecord",
    "ExecutionRun",
    # Graph
    "GraphIndex",
    "build_index",
    "load_workflow_graph",
    "ExecutionContext",
    # Retry
    "RetryPolicy",
    "with_retry",
    "is_nonce_error",
    # Resolvers
    "extract_numeric_value",
    "resolve_amount",
    "resolve_chain",
    # Conditions
    "evaluate_comparison",
    "normalize_operator",
    "select_branch_edges",
    "get_available_operators",
    "OPERATORS",
    # Store
    "ExecutionStore",
    "InMemoryExecutionStore",
    "RedisExecutionStore",
    "create_execution_store",
    # Recorder / walker
    "ExecutionRecorder",
    "GraphWalker",
]
