"""
Prompt enhancement using the DeepSeek chat-completions API.

Turns a rough diagram idea plus its context into a single, more detailed
prompt that the diagram generator can work with.
"""

import logging
from typing import Optional

import httpx

from config import (
    DEEPSEEK_API_KEY,
    DEEPSEEK_BASE_URL,
    DEEPSEEK_MODEL,
    DEEPSEEK_TEMPERATURE,
    DEEPSEEK_MAX_TOKENS,
    DEEPSEEK_TIMEOUT,
)
from user_friendly_errors import PromptEnhancementError

logger = logging.getLogger(__name__)

ENHANCE_PROMPT_TEMPLATE = """You are an AI assistant helping users formulate detailed prompts for diagram generation.
The user has a rough idea: "{idea}".
The context for this idea is: "{context}".
Based on this, generate a more detailed and effective prompt that can be used to generate the diagram.
The refined prompt should be clear, specific, and provide enough detail for a diagramming AI to work effectively.
Return *only* the refined prompt text, without any preamble or explanation. For example, if the idea is "user login" and context is "for a flowchart", a good response would be "A flowchart detailing the steps a user takes to log into a web application, including success and failure paths.\""""


class PromptEnhancer:
    """Refine rough diagram ideas into detailed prompts via DeepSeek"""

    def __init__(
        self,
        api_key: str = DEEPSEEK_API_KEY,
        base_url: str = DEEPSEEK_BASE_URL,
        model: str = DEEPSEEK_MODEL,
        timeout: Optional[float] = DEEPSEEK_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        # None disables the client timeout entirely
        self.timeout = timeout
        # Injected by tests; None means the default network transport
        self._transport = transport

    def is_available(self) -> bool:
        """Check if the DeepSeek API key is configured"""
        return bool(self.api_key)

    def build_messages(self, idea: str, context: str) -> list:
        return [{
            "role": "user",
            "content": ENHANCE_PROMPT_TEMPLATE.format(idea=idea, context=context),
        }]

    async def enhance(self, idea: Optional[str], context: Optional[str]) -> str:
        """
        Produce a refined prompt from an idea and its context

        Args:
            idea: The user's rough idea
            context: What the idea is for (diagram kind, domain, ...)

        Returns:
            The trimmed text of the first completion choice

        Raises:
            PromptEnhancementError: on invalid input or any upstream failure
        """
        if not isinstance(idea, str) or not isinstance(context, str) or not idea.strip() or not context.strip():
            raise PromptEnhancementError("Missing idea or context", 400)

        if not self.is_available():
            logger.error("DEEPSEEK_API_KEY is not set.")
            raise PromptEnhancementError("Server configuration error: Missing DeepSeek API key.", 500)

        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        payload = {
            "model": self.model,
            "messages": self.build_messages(idea, context),
            "temperature": DEEPSEEK_TEMPERATURE,
            "max_tokens": DEEPSEEK_MAX_TOKENS,
        }

        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.post(f"{self.base_url}/chat/completions", headers=headers, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"❌ DeepSeek API request failed (enhance-prompt): {e}")
            raise PromptEnhancementError(
                "Failed to communicate with DeepSeek API.", 503, {"error": f"{type(e).__name__}: {e}"}
            ) from e

        if not response.is_success:
            logger.error(f"DeepSeek API Error (enhance-prompt): {response.status_code} - {response.text}")
            raise PromptEnhancementError(
                f"Error from DeepSeek API: {response.reason_phrase}", response.status_code
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"DeepSeek API returned a non-JSON body (enhance-prompt): {response.text[:500]}")
            raise PromptEnhancementError("Failed to get suggestion from DeepSeek API", 500) from e

        suggested_prompt = self._extract_first_choice(data)
        if not suggested_prompt:
            logger.error(f"No suggested prompt in DeepSeek API response (enhance-prompt): {data}")
            raise PromptEnhancementError("Failed to get suggestion from DeepSeek API", 500)

        return suggested_prompt

    @staticmethod
    def _extract_first_choice(data) -> str:
        if not isinstance(data, dict):
            return ""
        choices = data.get("choices") or []
        if not choices or not isinstance(choices[0], dict):
            return ""
        message = choices[0].get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if not isinstance(content, str):
            return ""
        return content.strip()


# Global instance
prompt_enhancer = PromptEnhancer()
