"""Resolve node settings that may be inherited from upstream outputs.

Downstream nodes often leave ``amount`` or ``chain`` empty and expect the
value produced by an earlier step (a swap's received amount, the chain a
previous transfer ran on). These helpers implement that lookup with a
fixed, narrow set of rules.
"""

import math
import re
from typing import Any, Optional, Sequence

from constants import NUMERIC_OUTPUT_FIELDS

_LEADING_NUMBER = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_float(value: Any) -> float:
    """Lenient float parse: leading numeric prefix of a string, NaN otherwise."""
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        text = value.strip()
        if text.lower() in ("infinity", "+infinity"):
            return math.inf
        if text.lower() == "-infinity":
            return -math.inf
        match = _LEADING_NUMBER.match(text)
        if match:
            return float(match.group(1))
    return math.nan


def extract_numeric_value(output: Any, _depth: int = 0) -> float:
    """Project an arbitrary node output onto a number.

    None gives 0; numbers are returned as-is; strings use their leading
    numeric prefix. Dicts are searched for the fields in
    NUMERIC_OUTPUT_FIELDS, in order, then one level into ``output``.
    Anything else gives 0.
    """
    if output is None:
        return 0
    if isinstance(output, bool):
        return 0
    if isinstance(output, (int, float)):
        return output
    if isinstance(output, str):
        parsed = parse_float(output)
        return 0 if math.isnan(parsed) else parsed
    if isinstance(output, dict):
        for field in NUMERIC_OUTPUT_FIELDS:
            if output.get(field) is not None:
                parsed = parse_float(output[field])
                if not math.isnan(parsed):
                    return parsed
        if _depth == 0 and isinstance(output.get("output"), dict):
            return extract_numeric_value(output["output"], _depth + 1)
    return 0


def _present(value: Any) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value != 0
    return value != ""


def find_received_amount(prior_outputs: Sequence[dict]) -> Optional[Any]:
    """Newest-first scan for an amount an upstream node reported receiving."""
    for prev in reversed(prior_outputs):
        if not isinstance(prev, dict):
            continue
        nested = prev.get("output")
        if isinstance(nested, dict) and _present(nested.get("amountReceived")):
            return nested["amountReceived"]
        if _present(prev.get("amountReceived")):
            return prev["amountReceived"]
        numeric = extract_numeric_value(prev)
        if numeric and numeric > 0:
            return numeric
    return None


def resolve_amount(explicit: Optional[str], prior_outputs: Sequence[dict]) -> Optional[str]:
    """Explicit amount if given, otherwise inherited from upstream outputs.

    Returns the amount as a decimal string, or None if nothing resolved.
    """
    if _present(explicit):
        return str(explicit)
    inherited = find_received_amount(prior_outputs)
    if inherited is None:
        return None
    if isinstance(inherited, float) and inherited.is_integer():
        return str(int(inherited))
    return str(inherited)


def resolve_chain(explicit: Optional[str], prior_outputs: Sequence[dict]) -> Optional[str]:
    """Explicit chain if given, else ``chain`` from the newest output carrying one."""
    if _present(explicit):
        return explicit
    for prev in reversed(prior_outputs):
        if not isinstance(prev, dict):
            continue
        if _present(prev.get("chain")):
            return prev["chain"]
        nested = prev.get("output")
        if isinstance(nested, dict) and _present(nested.get("chain")):
            return nested["chain"]
    return None
