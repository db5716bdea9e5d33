"""Trigger node handler."""

from typing import Dict, Any
from core.logging import get_logger
from services.execution.models import StepInput

logger = get_logger(__name__)


async def handle_trigger(node, step_input: StepInput) -> Dict[str, Any]:
    """Entry point of every run. Takes no settings and always succeeds."""
    logger.info("Workflow triggered", node_id=node.id, run_id=step_input.run_id,
                workflow_id=step_input.workflow_id)
    return {
        "success": True,
        "message": "Workflow triggered manually",
    }
