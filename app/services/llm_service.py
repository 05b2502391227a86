import logging
from typing import Any, Callable, Dict, Optional, Protocol
from dataclasses import dataclass

from google import genai
from google.genai import types

from app.config import settings

logger = logging.getLogger(__name__)
logger.setLevel(logging.INFO)


class TextGenerator(Protocol):
    """Anything that turns a prompt and a response schema into raw model text."""

    async def generate(self, prompt: str, schema: Dict[str, Any]) -> str:
        ...


@dataclass
class LLMConfig:
    """Configuration for LLM calls"""
    model: str = "gemini-2.5-flash"
    temperature: Optional[float] = None
    response_mime_type: str = "application/json"


class GeminiLLMService:
    """Gemini client that asks for JSON constrained by a response schema"""

    def __init__(self, api_key: str, config: Optional[LLMConfig] = None):
        if not api_key:
            raise RuntimeError("GOOGLE_API_KEY environment variable not set")

        self.config = config or LLMConfig()
        try:
            self.client = genai.Client(api_key=api_key)
            logger.info(f"Initialized Gemini client for model: {self.config.model}")
        except Exception as e:
            logger.error(f"Failed to initialize Gemini client: {e}")
            raise RuntimeError(f"Gemini client initialization failed: {e}")

    def _create_generation_config(self, schema: Dict[str, Any]) -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            temperature=self.config.temperature,
            response_mime_type=self.config.response_mime_type,
            response_schema=schema,
        )

    async def generate(self, prompt: str, schema: Dict[str, Any]) -> str:
        """
        Send one prompt to Gemini and return the text payload.

        Errors from the SDK (network, auth, quota) are logged and re-raised as-is.
        A response without text yields an empty string.
        """
        logger.info(f"Making LLM call with model: {self.config.model}")
        try:
            response = await self.client.aio.models.generate_content(
                model=self.config.model,
                contents=prompt,
                config=self._create_generation_config(schema),
            )
        except Exception as e:
            logger.error(f"LLM call failed: {e}")
            raise

        content = response.text or ""
        logger.info(f"LLM call successful, response length: {len(content)}")
        return content


# Singleton instance
_llm_service_instance = None

def get_llm_service(api_key: str) -> GeminiLLMService:
    """Get singleton instance of LLM service"""
    global _llm_service_instance
    if _llm_service_instance is None:
        _llm_service_instance = GeminiLLMService(
            api_key,
            LLMConfig(model=settings.gemini_model, temperature=settings.gemini_temperature),
        )
    return _llm_service_instance


class LazyGeminiGenerator:
    """TextGenerator backed by the shared Gemini client, created on first call."""

    def __init__(self, api_key_provider: Callable[[], str]):
        self.api_key_provider = api_key_provider

    async def generate(self, prompt: str, schema: Dict[str, Any]) -> str:
        service = get_llm_service(self.api_key_provider())
        return await service.generate(prompt, schema)
