"""Tests for the extraction coordinator and the Anthropic extraction client."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest

from src.errors import ExtractionFailure, RecipeValidationError
from src.services.content import ImageSource, LocatorSource
from src.services.llm import ExtractionClient
from src.services.llm_prompts import IMAGE_SYSTEM_PROMPT, LOCATOR_SYSTEM_PROMPT, RECIPE_TOOL_NAME
from tests.fakes import PNG_BYTES

PAGE_URL = "https://recipes.example.com/carbonara"
PAGE = """<html><head><title>Carbonara</title>
<meta property="og:image" content="/img/carbonara.png"></head>
<body><h1>Carbonara</h1><p>400 g Spaghetti, 4 Eier</p></body></html>"""


class TestExtractionCoordinator:
    @pytest.mark.asyncio
    async def test_locator_extraction(self, services, fake_web, extraction_client, recipe_payload):
        fake_web.add(PAGE_URL, PAGE)
        extraction_client.payload = recipe_payload

        draft = await services.coordinator.extract(LocatorSource(uri=PAGE_URL))

        assert draft.title == "Spaghetti Carbonara"
        assert draft.source_url == PAGE_URL
        call = extraction_client.calls[0]
        assert call["system_prompt"] == LOCATOR_SYSTEM_PROMPT
        assert call["tool"]["name"] == RECIPE_TOOL_NAME
        prompt = call["content"][0]["text"]
        assert "400 g Spaghetti" in prompt
        assert "https://recipes.example.com/img/carbonara.png" in prompt

    @pytest.mark.asyncio
    async def test_locator_provenance_overrides_model_output(
        self, services, fake_web, extraction_client, recipe_payload
    ):
        fake_web.add(PAGE_URL, PAGE)
        extraction_client.payload = {**recipe_payload, "sourceUrl": "https://elsewhere.example"}

        draft = await services.coordinator.extract(LocatorSource(uri=PAGE_URL))

        assert draft.source_url == PAGE_URL

    @pytest.mark.asyncio
    async def test_image_extraction_has_no_remote_provenance(
        self, services, fake_web, extraction_client, recipe_payload
    ):
        extraction_client.payload = {**recipe_payload, "sourceUrl": "https://example.com/x"}

        draft = await services.coordinator.extract(ImageSource(data=PNG_BYTES, mime="image/png"))

        assert draft.source_url is None
        assert draft.image_url is None
        call = extraction_client.calls[0]
        assert call["system_prompt"] == IMAGE_SYSTEM_PROMPT
        image_block = call["content"][0]
        assert image_block["type"] == "image"
        assert image_block["source"]["media_type"] == "image/png"
        # Nothing was fetched for an inline image
        assert fake_web.requests == []

    @pytest.mark.asyncio
    async def test_empty_output_is_failure(self, services, extraction_client):
        extraction_client.payload = None

        with pytest.raises(ExtractionFailure):
            await services.coordinator.extract(ImageSource(data=PNG_BYTES, mime="image/png"))

    @pytest.mark.asyncio
    async def test_output_without_recipe_content_is_failure(self, services, extraction_client):
        extraction_client.payload = {"title": " ", "ingredients": [], "instructions": []}

        with pytest.raises(ExtractionFailure) as exc_info:
            await services.coordinator.extract(ImageSource(data=PNG_BYTES, mime="image/png"))
        assert exc_info.value.message == "Extraction produced nothing"

    @pytest.mark.asyncio
    async def test_malformed_output_is_validation_error(self, services, extraction_client):
        extraction_client.payload = {"title": "Suppe", "ingredients": "Wasser"}

        with pytest.raises(RecipeValidationError):
            await services.coordinator.extract(ImageSource(data=PNG_BYTES, mime="image/png"))

    @pytest.mark.asyncio
    async def test_page_failure_skips_extraction(self, services, extraction_client):
        with pytest.raises(ExtractionFailure):
            await services.coordinator.extract(LocatorSource(uri=PAGE_URL))
        assert extraction_client.calls == []


def _message(tool_input):
    return SimpleNamespace(
        usage=SimpleNamespace(input_tokens=10, output_tokens=20),
        stop_reason="tool_use",
        content=[SimpleNamespace(type="tool_use", name=RECIPE_TOOL_NAME, input=tool_input)],
    )


def _connection_error():
    return anthropic.APIConnectionError(
        request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    )


def _client(max_retries=0) -> tuple[ExtractionClient, AsyncMock]:
    client = ExtractionClient(
        api_key="test-key", model="claude-test", max_retries=max_retries, retry_delay=0
    )
    create = AsyncMock()
    client._client = MagicMock()
    client._client.messages.create = create
    return client, create


class TestExtractionClient:
    @pytest.mark.asyncio
    async def test_returns_tool_input(self):
        client, create = _client()
        create.return_value = _message({"title": "Suppe"})

        result = await client.extract(
            "system", [{"type": "text", "text": "x"}], {"name": RECIPE_TOOL_NAME}
        )

        assert result == {"title": "Suppe"}
        kwargs = create.call_args.kwargs
        assert kwargs["tool_choice"] == {"type": "tool", "name": RECIPE_TOOL_NAME}

    @pytest.mark.asyncio
    async def test_no_tool_output_returns_none(self):
        client, create = _client()
        create.return_value = SimpleNamespace(
            usage=None, stop_reason="end_turn", content=[SimpleNamespace(type="text", text="hi")]
        )

        assert await client.extract("system", [], {"name": RECIPE_TOOL_NAME}) is None

    @pytest.mark.asyncio
    async def test_no_retry_by_default(self):
        client, create = _client()
        create.side_effect = _connection_error()

        with pytest.raises(ExtractionFailure):
            await client.extract("system", [], {"name": RECIPE_TOOL_NAME})
        assert create.await_count == 1

    @pytest.mark.asyncio
    async def test_transient_error_retried_when_configured(self):
        client, create = _client(max_retries=2)
        create.side_effect = [_connection_error(), _message({"title": "Suppe"})]

        result = await client.extract("system", [], {"name": RECIPE_TOOL_NAME})

        assert result == {"title": "Suppe"}
        assert create.await_count == 2

    @pytest.mark.asyncio
    async def test_unconfigured_client_fails(self):
        client = ExtractionClient(api_key=None, model="claude-test")

        assert not client.is_configured
        with pytest.raises(ExtractionFailure):
            await client.extract("system", [], {"name": RECIPE_TOOL_NAME})
