"""Node Executor - Single node execution with handler dispatch.

Uses a registry pattern for clean handler dispatch without if-else chains.
Handler exceptions never escape: they become failed StepOutcomes that the
walker reports and aborts on.
"""

import asyncio
import time
from functools import partial
from typing import Dict, Callable, Optional

from core.logging import get_logger
from constants import EXTERNAL_TOOL_NODE_TYPES
from services.execution.exceptions import WorkflowEngineError
from services.execution.models import StepInput, StepOutcome
from services.execution.retry import RetryPolicy
from services.handlers import (
    handle_trigger, handle_transfer, handle_swap, handle_condition,
    handle_ai, handle_external_tool, handle_staking,
)
from services.protocols import (
    ChatCompletionService,
    ExternalToolService,
    StakingService,
    SwapService,
    TransferService,
)

logger = get_logger(__name__)

# Node type -> collaborator attribute the handler cannot run without
_REQUIRED_SERVICES = {
    'transfer': 'transfer_service',
    'swap': 'swap_service',
    'staking': 'staking_service',
    'ai': 'chat_service',
    'external-tool': 'tool_service',
    'mcp': 'tool_service',
}


class NodeExecutor:
    """Executes individual workflow nodes using registry-based dispatch."""

    def __init__(
        self,
        transfer_service: Optional[TransferService] = None,
        swap_service: Optional[SwapService] = None,
        staking_service: Optional[StakingService] = None,
        chat_service: Optional[ChatCompletionService] = None,
        tool_service: Optional[ExternalToolService] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        self.transfer_service = transfer_service
        self.swap_service = swap_service
        self.staking_service = staking_service
        self.chat_service = chat_service
        self.tool_service = tool_service
        self.retry_policy = retry_policy or RetryPolicy()
        self._handlers = self._build_handler_registry()

    def _build_handler_registry(self) -> Dict[str, Callable]:
        """Build handler registry with service dependencies bound via partial."""
        registry = {
            'trigger': handle_trigger,
            'condition': handle_condition,
            # Blockchain writes
            'transfer': partial(handle_transfer, transfer_service=self.transfer_service,
                                retry_policy=self.retry_policy),
            'swap': partial(handle_swap, swap_service=self.swap_service,
                            retry_policy=self.retry_policy),
            'staking': partial(handle_staking, staking_service=self.staking_service,
                               retry_policy=self.retry_policy),
            # AI
            'ai': partial(handle_ai, chat_service=self.chat_service),
        }

        for node_type in EXTERNAL_TOOL_NODE_TYPES:
            registry[node_type] = partial(handle_external_tool, tool_service=self.tool_service)

        return registry

    @property
    def supported_types(self):
        return frozenset(self._handlers)

    async def execute(self, node, step_input: StepInput) -> StepOutcome:
        """Execute a single workflow node."""
        start_time = time.time()
        handler = self._handlers.get(node.type)
        if handler is None:
            logger.error("No handler for node type", node_id=node.id, node_type=node.type)
            return StepOutcome.failure(f"Unknown node type: {node.type}")

        service_attr = _REQUIRED_SERVICES.get(node.type)
        if service_attr and getattr(self, service_attr) is None:
            logger.error("Service not configured", node_id=node.id, node_type=node.type,
                         service=service_attr)
            return StepOutcome.failure(f"No {service_attr} configured for {node.type} nodes")

        try:
            output = await handler(node, step_input)
        except asyncio.CancelledError:
            raise
        except WorkflowEngineError as e:
            logger.error("Node execution failed", node_id=node.id, node_type=node.type,
                         error_type=type(e).__name__, error=str(e))
            return StepOutcome.failure(str(e))
        except Exception as e:
            logger.error("Node execution error", node_id=node.id, node_type=node.type,
                         error=str(e), exc_info=True)
            return StepOutcome.failure(f"{node.type} node execution failed: {e}")

        logger.info("Node completed", node_id=node.id, node_type=node.type,
                    run_id=step_input.run_id,
                    execution_time=round(time.time() - start_time, 4))
        return StepOutcome.success(output)
