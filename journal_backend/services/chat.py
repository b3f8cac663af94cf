"""
journal_backend/services/chat.py

ChatModel: single-prompt completion against the Anthropic Messages API.
One call per request, no retries; SDK errors become UpstreamFailure (502).
"""

import logging
import os

import anthropic

from journal_backend.errors import UpstreamFailure

logger = logging.getLogger(__name__)

CHAT_MODEL = os.getenv("CHAT_MODEL", "claude-3-5-haiku-latest")
CHAT_MAX_TOKENS = int(os.getenv("CHAT_MAX_TOKENS", "1024"))


class ChatModel:
    def __init__(self, api_key: str, model: str = CHAT_MODEL, max_tokens: int = CHAT_MAX_TOKENS):
        # max_retries=0: a failed call is terminal for the request
        self.client = anthropic.AsyncAnthropic(api_key=api_key, max_retries=0)
        self.model = model
        self.max_tokens = max_tokens

    async def complete(self, prompt: str) -> str:
        try:
            message = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                messages=[{"role": "user", "content": prompt}],
            )
        except anthropic.APIError as e:
            logger.error(f"Chat model call failed: {e}")
            raise UpstreamFailure("Chat model call failed")

        return "".join(
            block.text for block in message.content if getattr(block, "type", None) == "text"
        )


def get_chat_model() -> ChatModel:
    """FastAPI dependency; tests override it with a fake."""
    return ChatModel(api_key=os.getenv("ANTHROPIC_API_KEY", "sk-ant-placeholder"))
