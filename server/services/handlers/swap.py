"""Swap node handler.

Two strategies, chosen by chain:
- native test chain: one call to the simple router
- every other chain: wrap (when selling the native currency), quote,
  approve (skipped when allowance suffices), swap

Any failed sub-step aborts the node with SwapStepFailed naming the step.
Reads (quote, allowance check) run once; writes run under the retry policy.
"""

from typing import Dict, Any, Awaitable, Callable, Optional, TypeVar

from constants import DEFAULT_SLIPPAGE_PERCENT, get_chain_id
from core.logging import get_logger
from services.chains import (
    format_amount_out,
    get_token_symbol,
    is_native_placeholder,
    is_native_test_chain,
    normalize_token_address,
    to_base_units,
)
from services.execution.exceptions import InvalidConfig, MissingConfig, SwapStepFailed
from services.execution.models import StepInput
from services.execution.resolvers import resolve_amount, resolve_chain
from services.execution.retry import RetryPolicy, with_retry
from services.protocols import SwapService

logger = get_logger(__name__)

T = TypeVar("T")

STEP_WRAP = "wrap"
STEP_QUOTE = "quote"
STEP_ALLOWANCE = "allowance_check"
STEP_APPROVE = "approve"
STEP_SWAP = "swap"


async def _run_step(step: str, operation: Callable[[], Awaitable[T]], **log_context) -> T:
    """Run one sub-step, converting any failure into SwapStepFailed."""
    logger.info("Swap step started", step=step, **log_context)
    try:
        result = await operation()
    except Exception as e:
        logger.error("Swap step failed", step=step, error=str(e), **log_context)
        raise SwapStepFailed(step, e) from e
    logger.info("Swap step completed", step=step, **log_context)
    return result


async def handle_swap(
    node,
    step_input: StepInput,
    swap_service: SwapService,
    retry_policy: Optional[RetryPolicy] = None,
) -> Dict[str, Any]:
    """Swap ``fromToken`` for ``toToken``.

    ``chain`` and ``amount`` may be inherited from upstream outputs.
    The returned ``output`` block describes what was received so the next
    node can pick it up.
    """
    config = node.config

    if not config.from_token or not config.to_token:
        missing = "fromToken" if not config.from_token else "toToken"
        raise MissingConfig(node.id, missing,
                            "Swap node missing required configuration (fromToken, toToken)")

    chain = resolve_chain(config.chain, step_input.prior_outputs)
    if not chain:
        raise MissingConfig(node.id, "chain", "Swap node missing chain configuration")

    amount = resolve_amount(config.amount, step_input.prior_outputs)
    if amount is None:
        raise MissingConfig(
            node.id, "amount",
            "Swap node missing amount (not in config and not available from previous outputs)"
        )

    slippage = config.slippage if config.slippage is not None else DEFAULT_SLIPPAGE_PERCENT
    log_context = {"node_id": node.id, "run_id": step_input.run_id, "chain": chain}
    logger.info("Executing swap", from_token=config.from_token, to_token=config.to_token,
                amount=amount, slippage=slippage, **log_context)

    if is_native_test_chain(chain):
        return await _swap_simple(node, step_input, swap_service, retry_policy,
                                  chain, amount, slippage, log_context)
    return await _swap_routed(node, step_input, swap_service, retry_policy,
                              chain, amount, slippage, log_context)


async def _swap_simple(node, step_input: StepInput, swap_service: SwapService,
                       retry_policy: Optional[RetryPolicy], chain: str, amount: str,
                       slippage: float, log_context: Dict[str, Any]) -> Dict[str, Any]:
    config = node.config
    from_token = normalize_token_address(chain, config.from_token)
    to_token = normalize_token_address(chain, config.to_token)

    result = await _run_step(
        STEP_SWAP,
        lambda: with_retry(
            lambda: swap_service.swap_simple(chain, from_token, to_token, amount,
                                             slippage, step_input.identity),
            retry_policy,
            operation_name="swap_simple",
            **log_context,
        ),
        **log_context,
    )

    tx_hash = result.get("txHash")
    return {
        "success": True,
        "message": "Swap executed successfully via simple router",
        "chain": chain,
        "chainId": get_chain_id(chain),
        "fromToken": config.from_token,
        "toToken": config.to_token,
        "amountIn": amount,
        "expectedAmountOut": result.get("amountOut"),
        "slippage": slippage,
        "swapTxHash": tx_hash,
        "txHash": tx_hash,
        "wrapTxHash": None,
        "approvalTxHash": None,
        "router": result.get("router"),
        "output": {
            "tokenReceived": to_token,
            "tokenSymbol": get_token_symbol(config.to_token),
            "amountReceived": result.get("amountOut"),
            "amountReceivedWei": result.get("amountOutWei"),
            "decimals": config.to_token_decimals,
            "chain": chain,
        },
    }


async def _swap_routed(node, step_input: StepInput, swap_service: SwapService,
                       retry_policy: Optional[RetryPolicy], chain: str, amount: str,
                       slippage: float, log_context: Dict[str, Any]) -> Dict[str, Any]:
    config = node.config
    signer = step_input.identity
    from_token = normalize_token_address(chain, config.from_token)
    to_token = normalize_token_address(chain, config.to_token)

    try:
        amount_wei = to_base_units(amount, config.from_token_decimals)
    except ValueError as e:
        raise InvalidConfig(node.id, str(e)) from e

    wrap_tx_hash = None
    if is_native_placeholder(config.from_token):
        wrap = await _run_step(
            STEP_WRAP,
            lambda: with_retry(
                lambda: swap_service.wrap_native(chain, amount_wei, signer),
                retry_policy, operation_name="wrap_native", **log_context,
            ),
            **log_context,
        )
        wrap_tx_hash = wrap.get("txHash")

    # Percent to basis points (1% = 100 bps)
    slippage_bps = int(round(slippage * 100))
    quote = await _run_step(
        STEP_QUOTE,
        lambda: swap_service.get_quote(chain, from_token, to_token, amount_wei,
                                       slippage_bps, signer),
        **log_context,
    )
    router = quote.get("allowanceTarget") or quote.get("to")

    already_approved = await _run_step(
        STEP_ALLOWANCE,
        lambda: swap_service.check_allowance(chain, from_token, router, amount_wei, signer),
        **log_context,
    )

    approval_tx_hash = None
    if already_approved:
        logger.info("Sufficient allowance already exists", spender=router, **log_context)
    else:
        approval = await _run_step(
            STEP_APPROVE,
            lambda: with_retry(
                lambda: swap_service.approve(chain, from_token, router, amount_wei, signer),
                retry_policy, operation_name="approve", **log_context,
            ),
            **log_context,
        )
        approval_tx_hash = approval.get("txHash")

    swap = await _run_step(
        STEP_SWAP,
        lambda: with_retry(
            lambda: swap_service.execute_swap(chain, quote, signer),
            retry_policy, operation_name="execute_swap", **log_context,
        ),
        **log_context,
    )
    swap_tx_hash = swap.get("txHash")

    amount_out_wei = quote.get("amountOut")
    amount_received = format_amount_out(amount_out_wei, config.to_token_decimals)

    return {
        "success": True,
        "message": "Swap executed successfully",
        "chain": chain,
        "chainId": get_chain_id(chain),
        "fromToken": config.from_token,
        "toToken": config.to_token,
        "amountIn": amount,
        "expectedAmountOut": amount_out_wei,
        "slippage": slippage,
        "wrapTxHash": wrap_tx_hash,
        "approvalTxHash": approval_tx_hash,
        "swapTxHash": swap_tx_hash,
        "txHash": swap_tx_hash,
        "router": router,
        "output": {
            "tokenReceived": to_token,
            "tokenSymbol": get_token_symbol(config.to_token),
            "amountReceived": amount_received,
            "amountReceivedWei": amount_out_wei,
            "decimals": config.to_token_decimals,
            "chain": chain,
        },
    }
