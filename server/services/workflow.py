"""Workflow Service - Facade for workflow execution.

This is a thin facade that delegates to specialized modules:
- GraphSource: Loads the persisted graph
- build_index: Validates structure once, before any run exists
- NodeExecutor: Single node execution
- GraphWalker: Depth-first traversal
- ExecutionRecorder / ExecutionStore: Step trace and run status

Runs started with ``start_execution`` are fire-and-forget; callers poll
``get_execution_details``.
"""

import asyncio
from typing import Dict, Any, Optional, Set, Union

from core.logging import get_logger
from models.workflow import WorkflowGraph
from services.execution import (
    ExecutionRecorder,
    ExecutionStore,
    GraphIndex,
    GraphWalker,
    RuntimeIdentity,
    build_index,
    load_workflow_graph,
)
from services.graph_source import GraphSource
from services.node_executor import NodeExecutor

logger = get_logger(__name__)


class WorkflowService:
    """Workflow execution service.

    Thin facade delegating to specialized modules for:
    - Graph loading and validation (GraphSource, build_index)
    - Node execution (NodeExecutor)
    - Traversal (GraphWalker)
    - Persistence (ExecutionStore)
    """

    def __init__(
        self,
        graph_source: GraphSource,
        store: ExecutionStore,
        node_executor: NodeExecutor,
    ):
        self.graph_source = graph_source
        self.store = store
        self._node_executor = node_executor
        self._walker = GraphWalker(node_executor.execute)
        # Strong references keep background runs from being garbage collected
        self._tasks: Set[asyncio.Task] = set()

    # =========================================================================
    # GRAPH PREPARATION
    # =========================================================================

    async def prepare(self, workflow_id: str) -> GraphIndex:
        """Load and validate a workflow. Raises WorkflowNotFound or InvalidGraph."""
        graph = await self.graph_source.load_graph(workflow_id)
        return build_index(graph)

    # =========================================================================
    # EXECUTION
    # =========================================================================

    async def start_execution(self, workflow_id: str,
                              identity: Optional[RuntimeIdentity] = None) -> str:
        """Validate the workflow, create a run and start it in the background.

        Returns:
            The run id, immediately. An invalid graph raises before any run
            is created.
        """
        index = await self.prepare(workflow_id)
        recorder = await ExecutionRecorder.create(self.store, workflow_id)

        task = asyncio.create_task(self._run_in_background(index, recorder, identity))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

        logger.info("Execution started", run_id=recorder.run_id, workflow_id=workflow_id)
        return recorder.run_id

    async def execute_workflow(self, workflow_id: str,
                               identity: Optional[RuntimeIdentity] = None) -> Dict[str, Any]:
        """Run a stored workflow to completion and return the run record."""
        index = await self.prepare(workflow_id)
        return await self._execute_index(index, workflow_id, identity)

    async def execute_graph(self, graph: Union[Dict[str, Any], WorkflowGraph],
                            identity: Optional[RuntimeIdentity] = None) -> Dict[str, Any]:
        """Run a graph document that is not stored in the graph source."""
        index = build_index(load_workflow_graph(graph))
        return await self._execute_index(index, index.graph.id, identity)

    async def _execute_index(self, index: GraphIndex, workflow_id: Optional[str],
                             identity: Optional[RuntimeIdentity]) -> Dict[str, Any]:
        recorder = await ExecutionRecorder.create(self.store, workflow_id)
        run = await self._walker.run(index, recorder, identity)
        return run.to_dict()

    async def _run_in_background(self, index: GraphIndex, recorder: ExecutionRecorder,
                                 identity: Optional[RuntimeIdentity]) -> None:
        try:
            await self._walker.run(index, recorder, identity)
        except Exception as e:
            # The walker already marked the run failed; nobody awaits this task
            logger.error("Background execution crashed", run_id=recorder.run_id,
                         error=str(e), exc_info=True)

    async def wait_for_pending(self) -> None:
        """Wait until every background run has finished."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # =========================================================================
    # READ PATH
    # =========================================================================

    async def get_execution_details(self, run_id: str) -> Dict[str, Any]:
        """Current persisted record of a run. Raises RunNotFound."""
        run = await self.store.get_run(run_id)
        return run.to_dict()
