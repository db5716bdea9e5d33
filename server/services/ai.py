"""Chat completion client for AI nodes.

Talks to an OpenAI-compatible endpoint (ASI:One by default) through
LangChain's ChatOpenAI. A model is created per call because temperature and
max tokens are per-node settings.
"""

import time
from typing import Any, Callable, Optional

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from core.config import Settings
from core.logging import get_logger, log_remote_call

logger = get_logger(__name__)

ModelFactory = Callable[[float, int], BaseChatModel]


def _content_text(content: Any) -> str:
    """Flatten message content that may be a list of content blocks."""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for block in content:
            if isinstance(block, str):
                parts.append(block)
            elif isinstance(block, dict) and block.get("type") == "text":
                parts.append(block.get("text", ""))
        return "".join(parts)
    return str(content or "")


class ChatCompletionClient:
    """ChatCompletionService backed by an OpenAI-compatible API."""

    def __init__(self, settings: Settings, model_factory: Optional[ModelFactory] = None):
        self.settings = settings
        self._model_factory = model_factory or self.create_model

    @property
    def model(self) -> str:
        return self.settings.ai_model

    def create_model(self, temperature: float, max_tokens: int) -> BaseChatModel:
        """Create a LangChain chat model for one request."""
        if not self.settings.ai_api_key:
            raise ValueError("AI_API_KEY is required for AI nodes")
        return ChatOpenAI(
            model=self.settings.ai_model,
            api_key=self.settings.ai_api_key,
            base_url=self.settings.ai_base_url,
            temperature=temperature,
            max_tokens=max_tokens,
            timeout=self.settings.ai_timeout,
        )

    async def complete_chat(self, system_prompt: str, user_prompt: str, *,
                            temperature: float, max_tokens: int) -> str:
        start_time = time.time()
        chat_model = self._model_factory(temperature, max_tokens)
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]

        try:
            response = await chat_model.ainvoke(messages)
        except Exception as e:
            log_remote_call(logger, "chat_completion", "complete_chat", False,
                            model=self.model, error=str(e))
            raise

        text = _content_text(response.content)
        log_remote_call(logger, "chat_completion", "complete_chat", True, model=self.model,
                        response_chars=len(text), duration=round(time.time() - start_time, 3))
        return text
