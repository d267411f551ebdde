"""
Language Model Gateway

Thin async wrapper around a LangChain chat model:
- One prompt in, plain text out
- No retries, no timeouts of its own
- Every provider failure surfaces as GatewayError
"""

import logging
from typing import Dict, Optional, Tuple

from langchain.chat_models import init_chat_model
from langchain_core.messages import HumanMessage

from calchat.config import settings

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """Raised when the language model could not produce a reply."""


class LanguageModelGateway:
    """
    Stateless text generation gateway.

    Chat models are created lazily and cached per (temperature, max_tokens)
    pair, since LangChain binds sampling parameters at construction time.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        provider: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ):
        self.model_name = model or settings.LLM_MODEL
        self.provider = provider or settings.LLM_PROVIDER
        self.api_key = api_key if api_key is not None else settings.LLM_API_KEY
        self.default_temperature = temperature
        self.default_max_tokens = max_tokens or settings.LLM_MAX_TOKENS
        self._models: Dict[Tuple[float, int], object] = {}

    def _get_model(self, temperature: float, max_tokens: int):
        key = (temperature, max_tokens)
        if key not in self._models:
            kwargs = {
                "model": self.model_name,
                "model_provider": self.provider,
                "temperature": temperature,
                "max_tokens": max_tokens,
            }
            if self.api_key:
                kwargs["api_key"] = self.api_key
            self._models[key] = init_chat_model(**kwargs)
        return self._models[key]

    async def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """
        Generate a reply for a single prompt.

        Args:
            prompt: Full prompt text sent as one user message
            temperature: Sampling temperature (gateway default when omitted)
            max_tokens: Reply length cap (settings default when omitted)

        Returns:
            The model's reply as plain text

        Raises:
            GatewayError: If the provider call fails for any reason
        """
        temperature = self.default_temperature if temperature is None else temperature
        max_tokens = max_tokens or self.default_max_tokens

        try:
            model = self._get_model(temperature, max_tokens)
            response = await model.ainvoke([HumanMessage(content=prompt)])
        except Exception as e:
            logger.error(f"LLM generation failed ({self.provider}/{self.model_name}): {str(e)}")
            raise GatewayError(str(e)) from e

        content = getattr(response, "content", response)
        if isinstance(content, list):
            # Content blocks (e.g. anthropic) -> join the text parts
            content = "".join(
                block.get("text", "") if isinstance(block, dict) else str(block)
                for block in content
            )
        return str(content)

    async def is_available(self) -> bool:
        """Cheap liveness probe used by the health endpoint."""
        try:
            await self.generate("Hello", temperature=0.0, max_tokens=5)
            return True
        except GatewayError:
            return False
