"""Transfer node handler - native currency and ERC20 transfers."""

import time
from typing import Dict, Any, Optional

from constants import get_chain_id
from core.logging import get_logger
from services.chains import is_address, is_native_token
from services.execution.exceptions import InvalidConfig, MissingConfig
from services.execution.models import StepInput
from services.execution.resolvers import resolve_amount
from services.execution.retry import RetryPolicy, with_retry
from services.protocols import TransferService

logger = get_logger(__name__)


async def handle_transfer(
    node,
    step_input: StepInput,
    transfer_service: TransferService,
    retry_policy: Optional[RetryPolicy] = None,
) -> Dict[str, Any]:
    """Send value to a recipient.

    The amount may come from the node or from an upstream node's output
    (a swap's received amount, for example). The signed broadcast runs
    under the retry policy.

    Args:
        node: TransferNode
        step_input: Upstream outputs and signer identity
        transfer_service: Chain service that signs and broadcasts
        retry_policy: Retry bound for the broadcast

    Returns:
        Transfer receipt with txHash, blockNumber and gasUsed

    Raises:
        MissingConfig: chain, recipient or amount could not be determined
        InvalidConfig: ERC20 token is not a contract address
        OperationFailed: every broadcast attempt failed
    """
    start_time = time.time()
    config = node.config

    chain = config.chain
    recipient = config.resolved_recipient
    if not chain:
        raise MissingConfig(node.id, "chain", "Transfer node missing required configuration: chain")
    if not recipient:
        raise MissingConfig(node.id, "recipient",
                            "Transfer node missing required configuration: recipient or to")

    amount = resolve_amount(config.amount, step_input.prior_outputs)
    if amount is None:
        raise MissingConfig(
            node.id, "amount",
            "Transfer node missing required configuration: amount (no previous output to infer from)"
        )
    if amount != config.amount:
        logger.info("Using amount from previous node", node_id=node.id, amount=amount)

    native = is_native_token(chain, config.token, config.token_symbol)
    token = (config.token or "").strip()
    if not native and not is_address(token):
        raise InvalidConfig(node.id, f"Invalid ERC20 token address: {token}")

    log_context = {"node_id": node.id, "run_id": step_input.run_id}
    logger.info("Executing transfer", chain=chain, recipient=recipient, amount=amount,
                native=native, token=token or None, **log_context)

    if native:
        receipt = await with_retry(
            lambda: transfer_service.transfer_native(chain, recipient, amount, step_input.identity),
            retry_policy,
            operation_name="transfer_native",
            **log_context,
        )
    else:
        receipt = await with_retry(
            lambda: transfer_service.transfer_token(chain, token, recipient, amount, step_input.identity),
            retry_policy,
            operation_name="transfer_token",
            **log_context,
        )

    duration = int((time.time() - start_time) * 1000)
    logger.info("Transfer completed", tx_hash=receipt.get("txHash"),
                block_number=receipt.get("blockNumber"), duration_ms=duration, **log_context)

    return {
        "success": True,
        "chain": chain,
        "chainId": get_chain_id(chain),
        "txHash": receipt.get("txHash"),
        "recipient": recipient,
        "amount": amount,
        "token": receipt.get("token") or config.token,
        "blockNumber": receipt.get("blockNumber"),
        "gasUsed": receipt.get("gasUsed"),
        "duration": duration,
    }
