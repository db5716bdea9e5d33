"""External-tool node handler.

Tools are reached one of two ways:
- agent backed: a structured request is submitted to an agent address
- direct: a fixed set of tools on an integrated server (Blockscout)
"""

from datetime import datetime, timezone
from typing import Dict, Any

from constants import AGENT_REQUEST_TYPE, BLOCKSCOUT_SERVER, DIRECT_TOOL_SERVERS
from core.logging import get_logger
from services.execution.exceptions import MissingConfig, UnsupportedTool
from services.execution.models import StepInput
from services.protocols import ExternalToolService

logger = get_logger(__name__)

DEFAULT_CHAIN_ID = "1"
DEFAULT_TRANSACTION_LIMIT = 10


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def handle_external_tool(
    node,
    step_input: StepInput,
    tool_service: ExternalToolService,
) -> Dict[str, Any]:
    """Run an external tool and normalize its result into ``output``.

    Raises:
        MissingConfig: no tool, or neither a server nor an agent address
        UnsupportedTool: server or tool is not integrated
    """
    config = node.config
    if not config.tool:
        raise MissingConfig(node.id, "tool", "External tool node missing required configuration (tool)")
    if not config.mcp_server and not config.agent_address:
        raise MissingConfig(node.id, "mcpServer",
                            "External tool node missing required configuration (mcpServer or agentAddress)")

    if config.agent_address:
        return await _execute_through_agent(node, step_input, tool_service)
    return await _execute_direct(node, step_input, tool_service)


async def _execute_through_agent(node, step_input: StepInput,
                                 tool_service: ExternalToolService) -> Dict[str, Any]:
    config = node.config
    parameters = dict(config.parameters)
    parameters["address"] = parameters.get("address") or step_input.signer

    payload: Dict[str, Any] = {"tool": config.tool, "parameters": parameters}
    if step_input.prior_outputs:
        payload["context"] = list(step_input.prior_outputs)

    logger.info("Submitting tool request to agent", node_id=node.id, run_id=step_input.run_id,
                tool=config.tool, agent_address=config.agent_address)
    result = await tool_service.submit_agent_request(
        config.agent_address,
        {"type": AGENT_REQUEST_TYPE, "payload": payload},
    )

    inner = result.get("data") if isinstance(result, dict) and result.get("data") else result
    return {
        "success": True,
        "message": "MCP tool executed via agent",
        "tool": config.tool,
        "agentAddress": config.agent_address,
        "data": result,
        "output": {
            "tool": config.tool,
            "agentAddress": config.agent_address,
            "result": inner,
            "timestamp": _timestamp(),
        },
    }


def _blockscout_request(node, step_input: StepInput) -> Dict[str, Any]:
    """Request body for a Blockscout tool; address defaults to the signer."""
    tool = node.config.tool
    parameters = node.config.parameters
    chain_id = parameters.get("chainId") or DEFAULT_CHAIN_ID

    if tool == "get_transactions":
        return {
            "address": parameters.get("address") or step_input.signer,
            "chainId": chain_id,
            "limit": parameters.get("limit") or DEFAULT_TRANSACTION_LIMIT,
        }
    if tool == "get_balance":
        return {
            "address": parameters.get("address") or step_input.signer,
            "chainId": chain_id,
        }
    if tool == "get_token_info":
        if not parameters.get("tokenAddress"):
            raise MissingConfig(node.id, "tokenAddress",
                                "tokenAddress parameter required for get_token_info")
        return {"address": parameters["tokenAddress"], "chainId": chain_id}
    raise UnsupportedTool(BLOCKSCOUT_SERVER, tool)


async def _execute_direct(node, step_input: StepInput,
                          tool_service: ExternalToolService) -> Dict[str, Any]:
    config = node.config
    server = config.mcp_server
    if server not in DIRECT_TOOL_SERVERS or config.tool not in DIRECT_TOOL_SERVERS[server]:
        raise UnsupportedTool(server, config.tool)

    request = _blockscout_request(node, step_input)
    logger.info("Invoking tool", node_id=node.id, run_id=step_input.run_id,
                server=server, tool=config.tool)
    data = await tool_service.invoke_tool(server, config.tool, request)

    chain_id = request["chainId"]
    return {
        "success": True,
        "message": f"Blockscout MCP tool '{config.tool}' executed successfully",
        "tool": config.tool,
        "chainId": chain_id,
        "data": data,
        "output": {
            "tool": config.tool,
            "chainId": chain_id,
            "result": data,
            "timestamp": _timestamp(),
        },
    }
