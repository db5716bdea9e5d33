"""Numeric comparison for condition nodes and branch selection.

Supported operators:
- ==  (alias ===): Equal
- !=  (alias !==): Not equal
- >:  Greater than
- >=: Greater than or equal
- <:  Less than
- <=: Less than or equal

Both operands are coerced to float before comparing. An operand that does
not parse becomes NaN, which makes every comparison false except ``!=``.
"""

import math
import operator as op
from typing import Any, Callable, Dict, Optional, Sequence

from constants import CONDITION_FALSE_HANDLE, CONDITION_TRUE_HANDLE
from core.logging import get_logger
from models.workflow import Edge
from .exceptions import UnsupportedOperation
from .resolvers import parse_float

logger = get_logger(__name__)

DEFAULT_OPERATOR = "=="

_COMPARATORS: Dict[str, Callable[[float, float], bool]] = {
    "==": op.eq,
    "!=": op.ne,
    ">": op.gt,
    ">=": op.ge,
    "<": op.lt,
    "<=": op.le,
}

_ALIASES = {
    "===": "==",
    "!==": "!=",
}


def normalize_operator(operator: Optional[str]) -> str:
    """Canonical operator symbol; raises UnsupportedOperation for unknown ones."""
    symbol = (operator or DEFAULT_OPERATOR).strip()
    symbol = _ALIASES.get(symbol, symbol)
    if symbol not in _COMPARATORS:
        raise UnsupportedOperation(operator, f"Unsupported condition operator: {operator}")
    return symbol


def to_operand(value: Any) -> float:
    """Coerce a condition operand to float (NaN when unparseable)."""
    if value is None:
        return math.nan
    return parse_float(value)


def evaluate_comparison(left: Any, operator: Optional[str], right: Any) -> bool:
    """Compare two operands numerically with the given operator.

    Raises:
        UnsupportedOperation: operator is not one of the supported symbols
    """
    symbol = normalize_operator(operator)
    a, b = to_operand(left), to_operand(right)
    result = _COMPARATORS[symbol](a, b)
    logger.debug("Condition evaluated", left=a, operator=symbol, right=b, result=result)
    return result


def select_branch_edges(edges: Sequence[Edge], condition_met: bool) -> list:
    """Outgoing edges of a condition node to follow for the given result.

    Only the first edge whose ``sourceHandle`` matches is taken. No match
    means the branch ends there.
    """
    wanted = CONDITION_TRUE_HANDLE if condition_met else CONDITION_FALSE_HANDLE
    for edge in edges:
        if edge.source_handle == wanted:
            return [edge]
    return []


# Operator metadata for the editor
OPERATORS = {
    "==": {"label": "Equals", "description": "Left equals right"},
    "!=": {"label": "Not Equals", "description": "Left does not equal right"},
    ">": {"label": "Greater Than", "description": "Left is greater than right"},
    ">=": {"label": "Greater or Equal", "description": "Left is greater than or equal to right"},
    "<": {"label": "Less Than", "description": "Left is less than right"},
    "<=": {"label": "Less or Equal", "description": "Left is less than or equal to right"},
}


def get_available_operators() -> Dict[str, Dict[str, Any]]:
    """Get operator metadata for the editor."""
    return OPERATORS.copy()
