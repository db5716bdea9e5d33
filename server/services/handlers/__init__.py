"""Node handlers package.

One module per node type:
- triggers.py: Trigger
- transfer.py: Native and ERC20 transfers
- swap.py: Simple-router and quote/approve/swap flows
- condition.py: Numeric comparison for branching
- ai.py: Chat completion with optional agent delegation
- tools.py: External tools (agent backed or Blockscout)
- staking.py: Stake delegation

Every handler takes ``(node, step_input, **services)`` and returns the
node's output dict, raising on failure.
"""

from .triggers import handle_trigger
from .transfer import handle_transfer
from .swap import handle_swap
from .condition import handle_condition
from .ai import handle_ai
from .tools import handle_external_tool
from .staking import handle_staking

__all__ = [
    'handle_trigger',
    'handle_transfer',
    'handle_swap',
    'handle_condition',
    'handle_ai',
    'handle_external_tool',
    'handle_staking',
]
