"""Staking node handler - stake delegation on the native test chain."""

import time
from typing import Dict, Any, Optional

from constants import NATIVE_TEST_CHAIN, get_chain_id
from core.logging import get_logger
from services.execution.exceptions import MissingConfig, UnsupportedOperation
from services.execution.models import StepInput
from services.execution.resolvers import resolve_amount
from services.execution.retry import RetryPolicy, with_retry
from services.protocols import StakingService

logger = get_logger(__name__)

DELEGATE_OPERATIONS = frozenset(["delegate", "delegateStake"])


async def handle_staking(
    node,
    step_input: StepInput,
    staking_service: StakingService,
    retry_policy: Optional[RetryPolicy] = None,
) -> Dict[str, Any]:
    """Delegate stake to a validator.

    Only delegation is supported. The staked amount is reported as
    ``output.amountReceived`` so later transfer or staking nodes can
    chain off it.
    """
    start_time = time.time()
    config = node.config
    operation = config.operation or "delegateStake"

    if operation not in DELEGATE_OPERATIONS:
        raise UnsupportedOperation(
            operation,
            f"Invalid staking operation: {operation}. Only 'delegateStake' is supported"
        )

    amount = resolve_amount(config.amount, step_input.prior_outputs)
    if amount is None:
        raise MissingConfig(
            node.id, "amount",
            "Staking node missing required configuration: amount (no previous output to infer from)"
        )
    if not config.validator_address:
        raise MissingConfig(
            node.id, "validatorAddress",
            "Staking node missing required configuration: validatorAddress"
        )

    log_context = {"node_id": node.id, "run_id": step_input.run_id}
    logger.info("Delegating stake", amount=amount, validator=config.validator_address,
                staking_contract=config.staking_contract, **log_context)

    receipt = await with_retry(
        lambda: staking_service.delegate_stake(
            config.validator_address,
            amount,
            step_input.identity,
            staking_contract=config.staking_contract,
        ),
        retry_policy,
        operation_name="delegate_stake",
        **log_context,
    )

    validator_address = receipt.get("validatorAddress") or config.validator_address
    logger.info("Staking completed", tx_hash=receipt.get("txHash"),
                duration_ms=int((time.time() - start_time) * 1000), **log_context)

    return {
        "success": True,
        "operation": operation,
        "amount": amount,
        "txHash": receipt.get("txHash"),
        "validatorAddress": validator_address,
        "blockNumber": receipt.get("blockNumber"),
        "gasUsed": receipt.get("gasUsed"),
        "chain": NATIVE_TEST_CHAIN,
        "chainId": get_chain_id(NATIVE_TEST_CHAIN),
        "output": {
            "operation": operation,
            "amount": amount,
            "txHash": receipt.get("txHash"),
            "validatorAddress": validator_address,
            "amountReceived": amount,
        },
    }
