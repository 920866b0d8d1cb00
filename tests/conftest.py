"""
Shared fixtures and configurations for pytest.
"""

import asyncio
import base64
import os
import sys
from unittest.mock import AsyncMock, MagicMock

import pytest

# Ensure the package is importable from a source checkout
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from visualearn.providers import GeminiSession, ModelHandle

PNG_BYTES = b"\x89PNG\r\n\x1a\n-fake-png-body"


def run(coro):
    """Drive a coroutine to completion."""
    return asyncio.run(coro)


def make_response(text):
    """A stand-in for a GenerateContentResponse."""
    response = MagicMock()
    response.text = text
    return response


@pytest.fixture
def png_data_url():
    """A well-formed PNG data URL."""
    return "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


@pytest.fixture
def mock_genai_client():
    """A google.genai.Client double with async model and chat interfaces."""
    client = MagicMock()
    client.aio.models.get = AsyncMock(side_effect=lambda model: MagicMock(display_name=f"Display {model}"))
    client.aio.models.generate_content = AsyncMock(return_value=make_response("generated reply"))

    chat = MagicMock()
    chat.send_message = AsyncMock(return_value=make_response("chat reply"))
    client.aio.chats.create = MagicMock(return_value=chat)
    client.chat = chat  # convenience handle for assertions
    return client


@pytest.fixture
def ready_session(mock_genai_client):
    """A session with both a text and a vision model resolved."""
    return GeminiSession(
        client=mock_genai_client,
        text_model=ModelHandle("gemini-text"),
        vision_model=ModelHandle("gemini-vision"),
    )


@pytest.fixture
def text_only_session(mock_genai_client):
    """A session where only the text model resolved."""
    return GeminiSession(client=mock_genai_client, text_model=ModelHandle("gemini-text"))


@pytest.fixture
def vision_only_session(mock_genai_client):
    """A session where only the vision model resolved."""
    return GeminiSession(client=mock_genai_client, vision_model=ModelHandle("gemini-vision"))
