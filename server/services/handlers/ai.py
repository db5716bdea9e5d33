"""AI node handler - chat completion with optional agent delegation."""

import json
from datetime import datetime, timezone
from typing import Dict, Any, Sequence

from constants import DEFAULT_AI_SYSTEM_PROMPT
from core.logging import get_logger
from services.execution.exceptions import MissingConfig
from services.execution.models import StepInput
from services.protocols import ChatCompletionService

logger = get_logger(__name__)

DELEGATION_PREAMBLE = """You are delegating this request to an agent with address: {agent_address}

The agent specializes in blockchain data queries and can provide:
- Token balances and transfers
- Transaction history
- NFT metadata and ownership
- Contract information

Please forward the user's query to this agent and return the response.

{system_prompt}"""


def build_system_prompt(system_prompt: str, agent_address: str = None) -> str:
    base = system_prompt or DEFAULT_AI_SYSTEM_PROMPT
    if agent_address:
        return DELEGATION_PREAMBLE.format(agent_address=agent_address, system_prompt=base)
    return base


def render_prior_outputs(prior_outputs: Sequence[Dict[str, Any]]) -> str:
    """Upstream outputs as context text appended to the user prompt."""
    if not prior_outputs:
        return ""
    lines = ["\n\nContext from previous operations:\n"]
    for index, output in enumerate(prior_outputs, start=1):
        lines.append(f"Operation {index}: {json.dumps(output, default=str)}\n")
    return "".join(lines)


async def handle_ai(
    node,
    step_input: StepInput,
    chat_service: ChatCompletionService,
) -> Dict[str, Any]:
    """Ask the completion service about the workflow's progress so far.

    When ``agentAddress`` is set the system prompt instructs the model to
    delegate the query to that agent.
    """
    config = node.config
    if not config.prompt:
        raise MissingConfig(node.id, "prompt", "AI node missing required configuration (prompt)")

    agent_address = (config.agent_address or "").strip() or None
    system_prompt = build_system_prompt(config.system_prompt, agent_address)
    user_prompt = config.prompt + render_prior_outputs(step_input.prior_outputs)

    logger.info("Executing AI node", node_id=node.id, run_id=step_input.run_id,
                delegated=bool(agent_address), context_items=len(step_input.prior_outputs))

    response = await chat_service.complete_chat(
        system_prompt,
        user_prompt,
        temperature=config.temperature,
        max_tokens=config.max_tokens,
    )

    message = ("AI analysis completed (delegated to agent)" if agent_address
               else "AI analysis completed")
    return {
        "success": True,
        "message": message,
        "prompt": config.prompt,
        "response": response,
        "model": chat_service.model,
        "agentAddress": agent_address,
        "delegatedToAgent": bool(agent_address),
        "output": {
            "response": response,
            "agentAddress": agent_address,
            "delegatedToAgent": bool(agent_address),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }
