"""
Tests for model resolution and provider initialization.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from visualearn.providers import (
    GeminiProvider,
    GeminiSession,
    ModelHandle,
    NotInitializedError,
    initialize_session,
    try_in_order,
)

from conftest import run

TEXT_CANDIDATES = ["text-a", "text-b", "text-c"]
VISION_CANDIDATES = ["vision-a", "vision-b"]


def failing_get(unavailable):
    """models.get double that raises for the given model names."""
    async def get(model):
        if model in unavailable:
            raise RuntimeError(f"model {model} not found")
        return MagicMock(display_name=model.upper())
    return AsyncMock(side_effect=get)


class TestTryInOrder:
    """Tests for the retry-over-candidates combinator."""

    def test_first_success_wins(self):
        calls = []

        async def resolve(name):
            calls.append(name)
            if name == "a":
                raise RuntimeError("unavailable")
            return ModelHandle(name)

        handle = run(try_in_order(["a", "b", "c"], resolve))

        assert handle == ModelHandle("b")
        assert calls == ["a", "b"]

    def test_returns_none_when_all_fail(self):
        async def resolve(name):
            raise RuntimeError("unavailable")

        assert run(try_in_order(["a", "b"], resolve)) is None

    def test_empty_candidate_list(self):
        resolve = AsyncMock()

        assert run(try_in_order([], resolve)) is None
        resolve.assert_not_called()


class TestInitializeSession:
    """Tests for initialize_session."""

    @patch('visualearn.providers.gemini_provider.genai.Client')
    def test_resolves_first_available_models(self, mock_client_cls, mock_genai_client):
        mock_client_cls.return_value = mock_genai_client
        mock_genai_client.aio.models.get = failing_get({"text-a", "vision-a"})

        session = run(initialize_session("key", TEXT_CANDIDATES, VISION_CANDIDATES))

        mock_client_cls.assert_called_once_with(api_key="key")
        assert session.text_model == ModelHandle("text-b", "TEXT-B")
        assert session.vision_model == ModelHandle("vision-b", "VISION-B")
        assert session.is_ready

    @patch('visualearn.providers.gemini_provider.genai.Client')
    def test_vision_failure_does_not_block_text(self, mock_client_cls, mock_genai_client):
        mock_client_cls.return_value = mock_genai_client
        mock_genai_client.aio.models.get = failing_get(set(VISION_CANDIDATES))

        session = run(initialize_session("key", TEXT_CANDIDATES, VISION_CANDIDATES))

        assert session.text_model.name == "text-a"
        assert session.vision_model is None
        assert session.is_ready

    @patch('visualearn.providers.gemini_provider.genai.Client')
    def test_text_failure_does_not_block_vision(self, mock_client_cls, mock_genai_client):
        mock_client_cls.return_value = mock_genai_client
        mock_genai_client.aio.models.get = failing_get(set(TEXT_CANDIDATES))

        session = run(initialize_session("key", TEXT_CANDIDATES, VISION_CANDIDATES))

        assert session.text_model is None
        assert session.vision_model.name == "vision-a"
        assert session.is_ready

    @patch('visualearn.providers.gemini_provider.genai.Client')
    def test_no_models_resolved(self, mock_client_cls, mock_genai_client):
        mock_client_cls.return_value = mock_genai_client
        mock_genai_client.aio.models.get = failing_get(set(TEXT_CANDIDATES) | set(VISION_CANDIDATES))

        session = run(initialize_session("key", TEXT_CANDIDATES, VISION_CANDIDATES))

        assert session is not None
        assert not session.is_ready

    @patch('visualearn.providers.gemini_provider.genai.Client')
    def test_client_construction_failure(self, mock_client_cls):
        mock_client_cls.side_effect = ValueError("Missing key inputs argument!")

        assert run(initialize_session("", TEXT_CANDIDATES, VISION_CANDIDATES)) is None


class TestGeminiProviderInitialize:
    """Tests for GeminiProvider.initialize and is_ready."""

    @patch('visualearn.providers.gemini_provider.genai.Client')
    def test_initialize_success(self, mock_client_cls, mock_genai_client):
        mock_client_cls.return_value = mock_genai_client
        provider = GeminiProvider(text_models=TEXT_CANDIDATES, vision_models=VISION_CANDIDATES)

        assert run(provider.initialize("key")) is True
        assert provider.is_ready()
        assert provider.has_vision
        assert provider.session.text_model.name == "text-a"

    @patch('visualearn.providers.gemini_provider.genai.Client')
    def test_initialize_returns_false_when_client_fails(self, mock_client_cls):
        mock_client_cls.side_effect = ValueError("bad key")
        provider = GeminiProvider(text_models=TEXT_CANDIDATES, vision_models=VISION_CANDIDATES)

        assert run(provider.initialize("bad")) is False
        assert provider.is_ready() is False
        with pytest.raises(NotInitializedError):
            run(provider.send("hello"))

    @patch('visualearn.providers.gemini_provider.genai.Client')
    def test_initialize_returns_false_when_no_model_resolves(self, mock_client_cls, mock_genai_client):
        mock_client_cls.return_value = mock_genai_client
        mock_genai_client.aio.models.get = AsyncMock(side_effect=RuntimeError("permission denied"))
        provider = GeminiProvider(text_models=TEXT_CANDIDATES, vision_models=VISION_CANDIDATES)

        assert run(provider.initialize("key")) is False
        assert provider.is_ready() is False
        with pytest.raises(NotInitializedError):
            run(provider.send("hello"))

    @patch('visualearn.providers.gemini_provider.genai.Client')
    def test_failed_reinitialize_replaces_previous_session(self, mock_client_cls, mock_genai_client):
        mock_client_cls.return_value = mock_genai_client
        provider = GeminiProvider(text_models=TEXT_CANDIDATES, vision_models=VISION_CANDIDATES)
        assert run(provider.initialize("good")) is True

        mock_client_cls.side_effect = ValueError("bad key")

        assert run(provider.initialize("bad")) is False
        assert provider.is_ready() is False

    def test_is_ready_is_stable(self, ready_session):
        provider = GeminiProvider()
        assert [provider.is_ready() for _ in range(3)] == [False, False, False]

        provider.session = ready_session
        assert [provider.is_ready() for _ in range(3)] == [True, True, True]

    def test_session_without_client_is_not_ready(self):
        assert not GeminiSession(client=None, text_model=ModelHandle("x")).is_ready

    def test_default_candidates(self):
        provider = GeminiProvider()

        assert provider.text_models[0] == "gemini-2.0-flash"
        assert "gemini-pro-vision" in provider.vision_models

    def test_describe_models(self, text_only_session):
        provider = GeminiProvider()
        provider.session = text_only_session

        rows = provider.describe_models()

        assert rows[0] == ["Text", "gemini-text", "gemini-text"]
        assert rows[1] == ["Vision", "-", "not available"]
