"""
Unit tests for the swap node handler
"""

import pytest

from constants import NATIVE_TOKEN_ADDRESS
from services.execution import InvalidConfig, MissingConfig, SwapStepFailed
from services.handlers import handle_swap

from conftest import USDC, make_node, make_step_input

WETH_BASE = "0x4200000000000000000000000000000000000006"


@pytest.mark.asyncio
async def test_simple_router_on_native_test_chain(swap_service, retry_policy):
    node = make_node("swap", chain="somnia", fromToken=NATIVE_TOKEN_ADDRESS, toToken=USDC,
                     amount="1", slippage=1)

    result = await handle_swap(node, make_step_input(), swap_service, retry_policy)

    swap_service.swap_simple.assert_awaited_once()
    chain, from_token, to_token, amount, slippage, _ = swap_service.swap_simple.await_args.args
    assert (chain, from_token, to_token, amount, slippage) == ("somnia", WETH_BASE, USDC, "1", 1.0)
    swap_service.get_quote.assert_not_awaited()

    assert result["txHash"] == "0xsimple"
    assert result["output"]["amountReceived"] == "5"
    assert result["output"]["tokenSymbol"] == "USDC"
    assert result["output"]["chain"] == "somnia"


@pytest.mark.asyncio
async def test_routed_swap_from_native(swap_service, retry_policy):
    """Native input is wrapped, approved and swapped"""
    node = make_node("swap", chain="base", fromToken=NATIVE_TOKEN_ADDRESS, toToken=USDC,
                     amount="0.5", toTokenDecimals=6)

    result = await handle_swap(node, make_step_input(), swap_service, retry_policy)

    assert swap_service.wrap_native.await_args.args[:2] == ("base", "500000000000000000")
    quote_args = swap_service.get_quote.await_args.args
    assert quote_args[:5] == ("base", WETH_BASE, USDC, "500000000000000000", 50)
    assert swap_service.check_allowance.await_args.args[2] == "0xspender"
    swap_service.approve.assert_awaited_once()
    swap_service.execute_swap.assert_awaited_once()

    assert result["wrapTxHash"] == "0xwrap"
    assert result["approvalTxHash"] == "0xapprove"
    assert result["swapTxHash"] == "0xswap"
    assert result["router"] == "0xspender"
    assert result["slippage"] == 0.5
    assert result["output"]["amountReceived"] == "2.5"
    assert result["output"]["amountReceivedWei"] == "2500000"
    assert result["output"]["decimals"] == 6


@pytest.mark.asyncio
async def test_routed_swap_skips_approval(swap_service, retry_policy):
    swap_service.check_allowance.return_value = True
    node = make_node("swap", chain="base", fromToken=USDC, toToken=WETH_BASE, amount="100",
                     fromTokenDecimals=6, slippage=0)

    result = await handle_swap(node, make_step_input(), swap_service, retry_policy)

    swap_service.wrap_native.assert_not_awaited()
    swap_service.approve.assert_not_awaited()
    assert swap_service.get_quote.await_args.args[3:5] == ("100000000", 0)
    assert result["approvalTxHash"] is None
    assert result["wrapTxHash"] is None


@pytest.mark.asyncio
async def test_chain_and_amount_inherited(swap_service, retry_policy):
    node = make_node("swap", fromToken=USDC, toToken=WETH_BASE, fromTokenDecimals=6)
    prior = [{"success": True, "chain": "base", "output": {"amountReceived": "3"}}]

    result = await handle_swap(node, make_step_input(prior), swap_service, retry_policy)

    assert result["chain"] == "base"
    assert result["amountIn"] == "3"


@pytest.mark.asyncio
async def test_failed_step_is_named(swap_service, retry_policy):
    swap_service.get_quote.side_effect = RuntimeError("no route")
    node = make_node("swap", chain="base", fromToken=USDC, toToken=WETH_BASE, amount="1")

    with pytest.raises(SwapStepFailed) as exc_info:
        await handle_swap(node, make_step_input(), swap_service, retry_policy)

    assert exc_info.value.step == "quote"
    assert "no route" in str(exc_info.value)
    swap_service.execute_swap.assert_not_awaited()
    # Reads are not retried
    assert swap_service.get_quote.await_count == 1


@pytest.mark.asyncio
async def test_swap_write_retried(swap_service, retry_policy):
    swap_service.execute_swap.side_effect = [RuntimeError("timeout"), {"txHash": "0xlate"}]
    node = make_node("swap", chain="base", fromToken=USDC, toToken=WETH_BASE, amount="1")

    result = await handle_swap(node, make_step_input(), swap_service, retry_policy)

    assert result["txHash"] == "0xlate"
    assert swap_service.execute_swap.await_count == 2


@pytest.mark.asyncio
async def test_missing_tokens(swap_service, retry_policy):
    node = make_node("swap", chain="base", toToken=USDC, amount="1")
    with pytest.raises(MissingConfig) as exc_info:
        await handle_swap(node, make_step_input(), swap_service, retry_policy)
    assert exc_info.value.field == "fromToken"


@pytest.mark.asyncio
async def test_missing_amount(swap_service, retry_policy):
    node = make_node("swap", chain="base", fromToken=USDC, toToken=WETH_BASE)
    with pytest.raises(MissingConfig, match="amount"):
        await handle_swap(node, make_step_input(), swap_service, retry_policy)


@pytest.mark.asyncio
async def test_amount_with_too_many_decimals(swap_service, retry_policy):
    node = make_node("swap", chain="base", fromToken=USDC, toToken=WETH_BASE,
                     amount="0.0000001", fromTokenDecimals=6)
    with pytest.raises(InvalidConfig):
        await handle_swap(node, make_step_input(), swap_service, retry_policy)
