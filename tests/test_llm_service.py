import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.services import llm_service
from app.services.llm_service import GeminiLLMService, LazyGeminiGenerator, LLMConfig
from app.services.packing_service import PACKING_LIST_SCHEMA


def test_missing_api_key():
    with pytest.raises(RuntimeError, match="GOOGLE_API_KEY"):
        GeminiLLMService("")


@patch("app.services.llm_service.genai.Client")
def test_generate_requests_json_with_schema(mock_client_cls):
    client = mock_client_cls.return_value
    client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text='{"footwear": []}'))

    service = GeminiLLMService("test-key", LLMConfig(model="gemini-2.5-flash"))
    content = asyncio.run(service.generate("Pack for Dubrovnik", PACKING_LIST_SCHEMA))

    assert content == '{"footwear": []}'
    mock_client_cls.assert_called_once_with(api_key="test-key")
    kwargs = client.aio.models.generate_content.call_args.kwargs
    assert kwargs["model"] == "gemini-2.5-flash"
    assert kwargs["contents"] == "Pack for Dubrovnik"
    assert kwargs["config"].response_mime_type == "application/json"
    assert kwargs["config"].response_schema is not None


@patch("app.services.llm_service.genai.Client")
def test_generate_without_text_returns_empty_string(mock_client_cls):
    client = mock_client_cls.return_value
    client.aio.models.generate_content = AsyncMock(return_value=MagicMock(text=None))

    service = GeminiLLMService("test-key")
    assert asyncio.run(service.generate("prompt", PACKING_LIST_SCHEMA)) == ""


@patch("app.services.llm_service.genai.Client")
def test_generate_propagates_sdk_errors(mock_client_cls):
    error = ConnectionError("network unreachable")
    mock_client_cls.return_value.aio.models.generate_content = AsyncMock(side_effect=error)

    service = GeminiLLMService("test-key")
    with pytest.raises(ConnectionError) as excinfo:
        asyncio.run(service.generate("prompt", PACKING_LIST_SCHEMA))
    assert excinfo.value is error


def test_lazy_generator_fails_at_call_time_without_key(monkeypatch):
    monkeypatch.setattr(llm_service, "_llm_service_instance", None)
    generator = LazyGeminiGenerator(lambda: "")

    with pytest.raises(RuntimeError):
        asyncio.run(generator.generate("prompt", PACKING_LIST_SCHEMA))
