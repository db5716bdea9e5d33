"""Depth-first graph walker.

Traverses a validated graph from its trigger with an explicit stack:
- each node's output is stored in the ExecutionContext before its children run
- condition nodes follow only the edge whose sourceHandle matches the result
- every other node follows all outgoing edges, in edge order, depth-first
- the first failed step aborts the run
"""

import copy
import time
from typing import Awaitable, Callable, Dict, List, Optional

from constants import CONDITION_NODE_TYPE
from core.logging import get_logger, log_execution_time, run_context
from .conditions import select_branch_edges
from .context import ExecutionContext
from .graph import GraphIndex
from .models import (
    ExecutionRun,
    RuntimeIdentity,
    StepInput,
    StepOutcome,
    StepRecord,
    utc_now,
)
from .recorder import ExecutionRecorder

logger = get_logger(__name__)

NodeRunner = Callable[[object, StepInput], Awaitable[StepOutcome]]


class GraphWalker:
    """Drives one run through a graph.

    The walker holds no per-run state; each call to ``run`` creates its own
    ExecutionContext, so a single walker can serve concurrent runs.
    """

    def __init__(self, node_runner: NodeRunner):
        """Initialize walker.

        Args:
            node_runner: Async callable executing one node
                         Signature: async def run(node, step_input) -> StepOutcome
        """
        self.node_runner = node_runner

    async def run(self, index: GraphIndex, recorder: ExecutionRecorder,
                  identity: Optional[RuntimeIdentity] = None) -> ExecutionRun:
        """Execute the graph and return the final run record."""
        identity = identity or RuntimeIdentity()
        ctx = ExecutionContext(recorder.run_id)
        start_time = time.time()

        with run_context(recorder.run_id, recorder.run.workflow_id):
            await recorder.start()
            logger.info("Starting workflow execution", node_count=len(index.node_by_id),
                        trigger=index.trigger.id)

            try:
                failure = await self._walk(index, recorder, ctx, identity)
            except Exception as e:
                logger.error("Execution aborted by unexpected error", error=str(e), exc_info=True)
                if not recorder.status.is_terminal:
                    await recorder.fail(f"Execution error: {e}")
                raise

            if failure is None:
                await recorder.complete()
            else:
                await recorder.fail(failure)

            log_execution_time(logger, "workflow_run", start_time, time.time(),
                               status=recorder.status.value, steps=len(recorder.run.steps))
        return recorder.run

    async def _walk(self, index: GraphIndex, recorder: ExecutionRecorder,
                    ctx: ExecutionContext, identity: RuntimeIdentity) -> Optional[str]:
        """Visit nodes until the stack drains or a step fails.

        Returns:
            The failure message of the first failed step, or None
        """
        stack: List[str] = [index.trigger.id]

        while stack:
            node_id = stack.pop()
            if ctx.has(node_id):
                logger.info("Node already executed in this run, skipping revisit",
                            run_id=recorder.run_id, node_id=node_id)
                continue

            node = index.node_by_id[node_id]
            step_input = self._build_step_input(index, ctx, recorder, identity, node_id)

            logger.info("Executing node", run_id=recorder.run_id, node_id=node_id,
                        node_type=node.type, label=node.display_name,
                        prior_outputs=len(step_input.prior_outputs))
            started_at = utc_now()
            outcome = await self.node_runner(node, step_input)
            completed_at = utc_now()

            if outcome.succeeded:
                ctx.set(node_id, outcome.output)
            await recorder.record_step(StepRecord.from_outcome(node, outcome, started_at, completed_at))

            if not outcome.succeeded:
                logger.error("Node failed, aborting run", run_id=recorder.run_id,
                             node_id=node_id, node_type=node.type, error=outcome.error)
                return outcome.error

            next_edges = self._next_edges(index, node, outcome)
            # Reversed so the first edge is popped, and fully explored, first
            for edge in reversed(next_edges):
                stack.append(edge.target)

        return None

    def _next_edges(self, index: GraphIndex, node, outcome: StepOutcome) -> list:
        edges = index.outgoing(node.id)
        if node.type != CONDITION_NODE_TYPE:
            return list(edges)

        condition_met = bool(outcome.output.get("conditionMet"))
        selected = select_branch_edges(edges, condition_met)
        if selected:
            logger.info("Condition branch selected", node_id=node.id,
                        condition_met=condition_met, target=selected[0].target)
        else:
            logger.info("No edge for condition branch, branch ends", node_id=node.id,
                        condition_met=condition_met)
        return selected

    def _build_step_input(self, index: GraphIndex, ctx: ExecutionContext,
                          recorder: ExecutionRecorder, identity: RuntimeIdentity,
                          node_id: str) -> StepInput:
        """Collect upstream outputs for a node.

        Handlers receive copies, so nothing they do can alter the context.
        """
        incoming = index.incoming(node_id)
        prior_outputs = ctx.outputs_for(edge.source for edge in incoming)

        handle_outputs: Dict[str, dict] = {}
        for edge in incoming:
            if edge.target_handle and ctx.has(edge.source):
                handle_outputs[edge.target_handle] = ctx.get(edge.source)

        return StepInput(
            run_id=recorder.run_id,
            workflow_id=recorder.run.workflow_id,
            identity=identity,
            prior_outputs=tuple(copy.deepcopy(prior_outputs)),
            handle_outputs=copy.deepcopy(handle_outputs),
        )
