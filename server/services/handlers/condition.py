"""Condition node handler - numeric comparison that selects a branch."""

from typing import Dict, Any

from constants import CONDITION_LEFT_HANDLE, CONDITION_RIGHT_HANDLE
from core.logging import get_logger
from services.execution.conditions import evaluate_comparison, normalize_operator
from services.execution.models import StepInput
from services.execution.resolvers import extract_numeric_value, resolve_chain

logger = get_logger(__name__)


async def handle_condition(node, step_input: StepInput) -> Dict[str, Any]:
    """Compare two operands.

    Operands come from ``leftValue``/``rightValue`` unless an upstream node
    is wired to the ``value1``/``value2`` input, in which case the numeric
    projection of that node's output is used. The walker reads
    ``conditionMet`` to pick the outgoing edge.
    """
    config = node.config
    value1 = config.left_value
    value2 = config.right_value

    if CONDITION_LEFT_HANDLE in step_input.handle_outputs:
        value1 = extract_numeric_value(step_input.handle_outputs[CONDITION_LEFT_HANDLE])
    if CONDITION_RIGHT_HANDLE in step_input.handle_outputs:
        value2 = extract_numeric_value(step_input.handle_outputs[CONDITION_RIGHT_HANDLE])

    operator = normalize_operator(config.operator)
    condition_met = evaluate_comparison(value1, operator, value2)

    logger.info("Condition evaluated", node_id=node.id, run_id=step_input.run_id,
                value1=value1, operator=operator, value2=value2, condition_met=condition_met)

    result = {
        "success": True,
        "conditionMet": condition_met,
        "value1": value1,
        "operator": operator,
        "value2": value2,
        "message": f"Condition {'met' if condition_met else 'not met'}: {value1} {operator} {value2}",
    }

    # Carry chain context through so downstream nodes can still infer it
    chain = resolve_chain(None, step_input.prior_outputs)
    if chain:
        result["chain"] = chain
    return result
