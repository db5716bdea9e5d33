"""Centralized constants for node types, chains and tokens.

This module provides a single source of truth for node type names, the
chain registry and the token tables used by node handlers.
"""

from typing import Dict, FrozenSet, Optional, Tuple

# =============================================================================
# NODE TYPES
# =============================================================================

TRIGGER_NODE_TYPE = 'trigger'
CONDITION_NODE_TYPE = 'condition'

# 'mcp' is the legacy name of 'external-tool' used by older saved workflows
EXTERNAL_TOOL_NODE_TYPES: FrozenSet[str] = frozenset([
    'external-tool',
    'mcp',
])

# =============================================================================
# CONDITION NODE
# =============================================================================

CONDITION_TRUE_HANDLE = 'true'
CONDITION_FALSE_HANDLE = 'false'

# Target handles that feed condition operands from upstream nodes
CONDITION_LEFT_HANDLE = 'value1'
CONDITION_RIGHT_HANDLE = 'value2'

# =============================================================================
# OUTPUT PROPAGATION
# =============================================================================

# Checked in this order when projecting an upstream output onto a number
NUMERIC_OUTPUT_FIELDS: Tuple[str, ...] = (
    'amount',
    'value',
    'balance',
    'price',
    'total',
    'count',
)

# =============================================================================
# CHAINS
# =============================================================================

# Placeholder address the editor uses for the chain's native currency
NATIVE_TOKEN_ADDRESS = '0xEeeeeEeeeEeEeeEeEeEeeEEEeeeeEeeeeeeeEEeE'

NATIVE_TOKEN_SYMBOLS: FrozenSet[str] = frozenset(['eth', 'stt'])

# Test network whose native currency is the default transfer asset and which
# uses the single-call swap router instead of the quote/approve/swap flow
NATIVE_TEST_CHAIN = 'somnia'

SUPPORTED_CHAINS: Dict[str, Dict[str, object]] = {
    # Mainnets
    'ethereum': {
        'chain_id': 1,
        'name': 'Ethereum',
        'native_currency': 'ETH',
        'wrapped_native_token': '0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2',
    },
    'polygon': {
        'chain_id': 137,
        'name': 'Polygon',
        'native_currency': 'MATIC',
        'wrapped_native_token': '0x0d500B1d8E8eF31E21C99d1Db9A6444d3ADf1270',
    },
    'arbitrum': {
        'chain_id': 42161,
        'name': 'Arbitrum',
        'native_currency': 'ETH',
        'wrapped_native_token': '0x82aF49447D8a07e3bd95BD0d56f35241523fBab1',
    },
    'optimism': {
        'chain_id': 10,
        'name': 'Optimism',
        'native_currency': 'ETH',
        'wrapped_native_token': '0x4200000000000000000000000000000000000006',
    },
    'base': {
        'chain_id': 8453,
        'name': 'Base',
        'native_currency': 'ETH',
        'wrapped_native_token': '0x4200000000000000000000000000000000000006',
    },
    'bnb': {
        'chain_id': 56,
        'name': 'BNB Chain',
        'native_currency': 'BNB',
        'wrapped_native_token': '0xbb4CdB9CBd36B01bD1cBaEBF2De08d9173bc095c',
    },
    'avalanche': {
        'chain_id': 43114,
        'name': 'Avalanche',
        'native_currency': 'AVAX',
        'wrapped_native_token': '0xB31f66AA3C1e785363F0875A1B74E27b85FD66c7',
    },
    'celo': {
        'chain_id': 42220,
        'name': 'Celo',
        'native_currency': 'CELO',
        'wrapped_native_token': '0x471EcE3750Da237f93B8E339c536989b8978a438',
    },
    # Testnets
    'sepolia': {
        'chain_id': 11155111,
        'name': 'Sepolia',
        'native_currency': 'ETH',
        'wrapped_native_token': '0xfFf9976782d46CC05630D1f6eBAb18b2324d6B14',
    },
    'basesepolia': {
        'chain_id': 84532,
        'name': 'Base Sepolia',
        'native_currency': 'ETH',
        'wrapped_native_token': '0x4200000000000000000000000000000000000006',
    },
    'arbitrumsepolia': {
        'chain_id': 421614,
        'name': 'Arbitrum Sepolia',
        'native_currency': 'ETH',
        'wrapped_native_token': '0x980B62Da83eFf3D4576C647993b0c1D7faf17c73',
    },
    'optimismsepolia': {
        'chain_id': 11155420,
        'name': 'Optimism Sepolia',
        'native_currency': 'ETH',
        'wrapped_native_token': '0x4200000000000000000000000000000000000006',
    },
    'avalanchefuji': {
        'chain_id': 43113,
        'name': 'Avalanche Fuji',
        'native_currency': 'AVAX',
        'wrapped_native_token': '0xd00ae08403B9bbb9124bB305C09058E32C39A48c',
    },
    'somnia': {
        'chain_id': 50312,
        'name': 'Somnia Testnet',
        'native_currency': 'STT',
        'wrapped_native_token': '0x4200000000000000000000000000000000000006',
    },
}

# Lower-cased address -> symbol, used to label swap outputs
TOKEN_SYMBOLS: Dict[str, str] = {
    '0xeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeeee': 'ETH',
    '0x4200000000000000000000000000000000000006': 'WETH',
    '0x833589fcd6edb6e08f4c7c32d4f71b54bda02913': 'USDC',
    '0xfde4c96c8593536e31f229ea8f37b2ada2699bb2': 'USDT',
    '0x50c5725949a6f0c72e6c4a641f24049a917db0cb': 'DAI',
}

DEFAULT_TOKEN_DECIMALS = 18
DEFAULT_SLIPPAGE_PERCENT = 0.5

# =============================================================================
# EXTERNAL TOOLS
# =============================================================================

BLOCKSCOUT_SERVER = 'blockscout'

# Directly integrated servers and the tools each one exposes
DIRECT_TOOL_SERVERS: Dict[str, FrozenSet[str]] = {
    BLOCKSCOUT_SERVER: frozenset([
        'get_transactions',
        'get_balance',
        'get_token_info',
    ]),
}

AGENT_REQUEST_TYPE = 'mcp_request'

# =============================================================================
# AI NODE
# =============================================================================

DEFAULT_AI_SYSTEM_PROMPT = (
    'You are a helpful DeFi assistant that analyzes blockchain data and provides insights.'
)
DEFAULT_AI_TEMPERATURE = 0.7
DEFAULT_AI_MAX_TOKENS = 500


def get_chain_config(chain: Optional[str]) -> Optional[Dict[str, object]]:
    """Return the registry entry for a chain name, or None if unknown."""
    if not chain:
        return None
    return SUPPORTED_CHAINS.get(chain.lower())


def get_chain_id(chain: Optional[str]) -> Optional[int]:
    """Return the numeric chain id, or None for chains outside the registry."""
    config = get_chain_config(chain)
    return config['chain_id'] if config else None
