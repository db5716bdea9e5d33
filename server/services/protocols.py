"""Boundaries of the external collaborators node handlers call.

Blockchain signing, RPC access and swap routing are implemented outside the
engine; deployments provide objects satisfying these protocols. Receipts are
plain dicts using the camelCase keys of the chain services
(``txHash``, ``blockNumber``, ``gasUsed``...).
"""

from typing import Any, Dict, Optional, Protocol

from services.execution.models import RuntimeIdentity


class TransferService(Protocol):
    """Signed native and ERC20 transfers."""

    async def transfer_native(self, chain: str, recipient: str, amount: str,
                              signer: RuntimeIdentity) -> Dict[str, Any]:
        """Send native currency. Returns {txHash, blockNumber, gasUsed}."""
        ...

    async def transfer_token(self, chain: str, token: str, recipient: str, amount: str,
                             signer: RuntimeIdentity) -> Dict[str, Any]:
        """Send an ERC20 token. Returns {txHash, blockNumber, gasUsed, token?}."""
        ...


class SwapService(Protocol):
    """Quote, approval and swap execution on a chain's router."""

    async def get_quote(self, chain: str, from_token: str, to_token: str,
                        amount_wei: str, slippage_bps: int,
                        signer: RuntimeIdentity) -> Dict[str, Any]:
        """Signed quote. Returns {amountOut, to, data, value?, allowanceTarget?}."""
        ...

    async def check_allowance(self, chain: str, token: str, spender: str,
                              amount_wei: str, signer: RuntimeIdentity) -> bool:
        """Whether the router may already spend ``amount_wei`` of ``token``."""
        ...

    async def approve(self, chain: str, token: str, spender: str,
                      amount_wei: str, signer: RuntimeIdentity) -> Dict[str, Any]:
        """Approve the router. Returns {txHash}."""
        ...

    async def execute_swap(self, chain: str, quote: Dict[str, Any],
                           signer: RuntimeIdentity) -> Dict[str, Any]:
        """Submit the quoted swap. Returns {txHash, blockNumber?, gasUsed?}."""
        ...

    async def wrap_native(self, chain: str, amount_wei: str,
                          signer: RuntimeIdentity) -> Dict[str, Any]:
        """Wrap native currency into the chain's wrapped token. Returns {txHash}."""
        ...

    async def swap_simple(self, chain: str, from_token: str, to_token: str, amount: str,
                          slippage_percent: float, signer: RuntimeIdentity) -> Dict[str, Any]:
        """Single-call router swap. Returns {txHash, amountOut, amountOutWei?, router?}."""
        ...


class StakingService(Protocol):
    """Stake delegation."""

    async def delegate_stake(self, validator_address: str, amount: str,
                             signer: RuntimeIdentity,
                             staking_contract: Optional[str] = None) -> Dict[str, Any]:
        """Delegate ``amount``. Returns {txHash, blockNumber, gasUsed, validatorAddress?}."""
        ...


class ChatCompletionService(Protocol):
    """LLM chat completion."""

    async def complete_chat(self, system_prompt: str, user_prompt: str, *,
                            temperature: float, max_tokens: int) -> str:
        """Return the assistant's reply text."""
        ...

    @property
    def model(self) -> str:
        """Model name reported in node outputs."""
        ...


class ExternalToolService(Protocol):
    """Directly integrated tool servers and agent-backed tools."""

    async def invoke_tool(self, server: str, tool: str,
                          parameters: Dict[str, Any]) -> Dict[str, Any]:
        """Call ``tool`` on a directly integrated server."""
        ...

    async def submit_agent_request(self, agent_address: str,
                                   message: Dict[str, Any]) -> Dict[str, Any]:
        """Submit a structured request to an agent and return its reply."""
        ...
