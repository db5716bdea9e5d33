"""HTTP client for external-tool nodes.

Directly integrated tool servers are called over their REST API; agent
backed tools are submitted to the agent's mailbox endpoint.
"""

import time
from typing import Dict, Any, Optional

import httpx

from constants import BLOCKSCOUT_SERVER
from core.config import Settings
from core.logging import get_logger, log_remote_call
from services.execution.exceptions import UnsupportedTool

logger = get_logger(__name__)

# Tool name -> REST path on the Blockscout API
BLOCKSCOUT_ENDPOINTS: Dict[str, str] = {
    "get_transactions": "/transactions",
    "get_balance": "/balance",
    "get_token_info": "/token",
}


class HttpToolClient:
    """ExternalToolService over httpx."""

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.tool_timeout, transport=self._transport)

    def _server_url(self, server: str, tool: str) -> str:
        if server == BLOCKSCOUT_SERVER and tool in BLOCKSCOUT_ENDPOINTS:
            return f"{self.settings.blockscout_api_url}{BLOCKSCOUT_ENDPOINTS[tool]}"
        raise UnsupportedTool(server, tool)

    async def invoke_tool(self, server: str, tool: str,
                          parameters: Dict[str, Any]) -> Dict[str, Any]:
        url = self._server_url(server, tool)
        start_time = time.time()

        async with self._client() as client:
            try:
                response = await client.post(url, json=parameters)
                response.raise_for_status()
            except httpx.HTTPError as e:
                log_remote_call(logger, server, tool, False, error=str(e))
                raise
            data = response.json()

        log_remote_call(logger, server, tool, True, status_code=response.status_code,
                        duration=round(time.time() - start_time, 3))
        return data

    async def submit_agent_request(self, agent_address: str,
                                   message: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.settings.agent_base_url}/{agent_address}/submit"
        headers = {"Content-Type": "application/json"}
        if self.settings.agent_api_key:
            headers["Authorization"] = f"Bearer {self.settings.agent_api_key}"
        start_time = time.time()

        async with self._client() as client:
            try:
                response = await client.post(url, json=message, headers=headers)
                response.raise_for_status()
            except httpx.HTTPError as e:
                log_remote_call(logger, "agent", "submit", False,
                                agent_address=agent_address, error=str(e))
                raise
            data = response.json()

        log_remote_call(logger, "agent", "submit", True, agent_address=agent_address,
                        status_code=response.status_code,
                        duration=round(time.time() - start_time, 3))
        return data
