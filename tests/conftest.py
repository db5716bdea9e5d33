"""
Shared fixtures and fakes for engine tests
"""

from typing import Any, Dict, Optional, Sequence
from unittest.mock import AsyncMock

import pytest
from pydantic import TypeAdapter

from models.nodes import WorkflowNode
from services.execution import RetryPolicy, RuntimeIdentity, StepInput
from services.node_executor import NodeExecutor

SIGNER = "0x1111111111111111111111111111111111111111"
RECIPIENT = "0xAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"
USDC = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"

_node_adapter = TypeAdapter(WorkflowNode)


def make_node(node_type: str, node_id: str = "n1", label: Optional[str] = None, **config):
    """Build a typed node the way graph loading does"""
    data: Dict[str, Any] = {"id": node_id, "type": node_type, "config": config}
    if label:
        data["label"] = label
    return _node_adapter.validate_python(data)


def make_step_input(prior_outputs: Sequence[dict] = (), handle_outputs: Optional[dict] = None,
                    signer: Optional[str] = SIGNER, run_id: str = "run-1") -> StepInput:
    return StepInput(
        run_id=run_id,
        workflow_id="wf-1",
        identity=RuntimeIdentity(signer_address=signer),
        prior_outputs=tuple(prior_outputs),
        handle_outputs=handle_outputs or {},
    )


def make_transfer_service() -> AsyncMock:
    service = AsyncMock()
    service.transfer_native.return_value = {"txHash": "0xtransfer", "blockNumber": 100, "gasUsed": "21000"}
    service.transfer_token.return_value = {"txHash": "0xtoken", "blockNumber": 101, "gasUsed": "65000"}
    return service


def make_swap_service() -> AsyncMock:
    service = AsyncMock()
    service.swap_simple.return_value = {
        "txHash": "0xsimple", "amountOut": "5", "amountOutWei": "5000000000000000000",
        "router": "0xrouter",
    }
    service.wrap_native.return_value = {"txHash": "0xwrap"}
    service.get_quote.return_value = {
        "amountOut": "2500000", "to": "0xrouter", "allowanceTarget": "0xspender", "data": "0x",
    }
    service.check_allowance.return_value = False
    service.approve.return_value = {"txHash": "0xapprove"}
    service.execute_swap.return_value = {"txHash": "0xswap"}
    return service


def make_staking_service() -> AsyncMock:
    service = AsyncMock()
    service.delegate_stake.return_value = {"txHash": "0xstake", "blockNumber": 7, "gasUsed": "90000"}
    return service


class FakeChatService:
    """Records prompts and answers with a canned reply"""

    model = "fake-model"

    def __init__(self, reply: str = "Looks healthy"):
        self.reply = reply
        self.calls = []

    async def complete_chat(self, system_prompt, user_prompt, *, temperature, max_tokens):
        self.calls.append({
            "system_prompt": system_prompt,
            "user_prompt": user_prompt,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        return self.reply


def make_tool_service() -> AsyncMock:
    service = AsyncMock()
    service.invoke_tool.return_value = {"items": [{"hash": "0xabc"}]}
    service.submit_agent_request.return_value = {"data": {"balance": "12.5"}}
    return service


@pytest.fixture
def retry_policy():
    """Three retries with no delay"""
    return RetryPolicy(max_attempts=3, delay=0)


@pytest.fixture
def transfer_service():
    return make_transfer_service()


@pytest.fixture
def swap_service():
    return make_swap_service()


@pytest.fixture
def staking_service():
    return make_staking_service()


@pytest.fixture
def chat_service():
    return FakeChatService()


@pytest.fixture
def tool_service():
    return make_tool_service()


@pytest.fixture
def node_executor(transfer_service, swap_service, staking_service, chat_service,
                  tool_service, retry_policy):
    return NodeExecutor(
        transfer_service=transfer_service,
        swap_service=swap_service,
        staking_service=staking_service,
        chat_service=chat_service,
        tool_service=tool_service,
        retry_policy=retry_policy,
    )
