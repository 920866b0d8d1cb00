#!/usr/bin/env python3
"""
Google Gemini chat provider for VisuaLearn.

Resolves a text model and a vision model for a credential using the
`google-genai` SDK (``genai.Client()``), and dispatches messages to whichever
of the two fits the request: a chat session seeded with the conversation
history for plain text, or a single multi-part request when an image is
attached. Each path has one fallback call strategy.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

from google import genai
from google.genai import types as genai_types

from .base_provider import (
    BaseChatProvider,
    CallOutcome,
    ConversationMessage,
    MalformedAttachmentError,
    ModelHandle,
    NotInitializedError,
    ProviderCallError,
    attempt,
    try_in_order,
)
from .image_utils import ImageAttachment

logger = logging.getLogger(__name__)

# Tried in order; the first model the credential can access wins.
TEXT_MODEL_NAMES = [
    "gemini-2.0-flash",
    "gemini-1.5-flash",
    "gemini-1.5-pro",
    "gemini-pro",
    "gemini-1.0-pro",
]

VISION_MODEL_NAMES = [
    "gemini-2.0-flash",
    "gemini-1.5-flash",
    "gemini-1.5-pro",
    "gemini-pro-vision",
    "gemini-1.0-pro-vision",
]

DEFAULT_IMAGE_PROMPT = "Analyze and describe this image in detail."
DEFAULT_CHAT_MAX_OUTPUT_TOKENS = 1000
NOT_INITIALIZED_MESSAGE = "Gemini API is not initialized. Please set a valid API key."


@dataclass
class GeminiSession:
    """A client bound to one credential plus the model handles resolved for it."""
    client: Any
    text_model: Optional[ModelHandle] = None
    vision_model: Optional[ModelHandle] = None

    @property
    def is_ready(self) -> bool:
        return self.client is not None and (self.text_model is not None or self.vision_model is not None)


async def initialize_session(
    api_key: str,
    text_models: Sequence[str] = TEXT_MODEL_NAMES,
    vision_models: Sequence[str] = VISION_MODEL_NAMES,
) -> Optional[GeminiSession]:
    """Create a client for ``api_key`` and resolve its text and vision models.

    The two candidate lists are probed independently; a failure in one never
    stops the other.

    Returns:
        The new session (which may have no models resolved), or None if the
        client itself could not be constructed.
    """
    try:
        client = genai.Client(api_key=api_key)
    except Exception as e:
        logger.error(f"Error initializing Gemini API: {e}", exc_info=True)
        return None

    async def resolve(name: str) -> ModelHandle:
        model_info = await client.aio.models.get(model=name)
        return ModelHandle(name=name, display_name=getattr(model_info, "display_name", None))

    text_model = await try_in_order(text_models, resolve, kind="text model")
    vision_model = await try_in_order(vision_models, resolve, kind="vision model")

    session = GeminiSession(client=client, text_model=text_model, vision_model=vision_model)
    if not session.is_ready:
        logger.error("Failed to initialize with any available model")
    return session


def build_chat_history(history: Sequence[ConversationMessage]) -> List[genai_types.Content]:
    """Map conversation turns one-to-one onto the SDK's Content format."""
    return [
        genai_types.Content(role=msg.role, parts=[genai_types.Part.from_text(text=msg.content)])
        for msg in history
    ]


def _response_text(response: Any) -> str:
    if response is None:
        return ""
    return response.text or ""


def image_error_message(error: Optional[BaseException]) -> str:
    """Reply text shown in place of a vision answer that could not be produced."""
    reason = CallOutcome(ok=False, error=error).reason
    return (f"I had trouble processing your image. The error was: {reason}. "
            f"Please try again with a different image or format.")


class MessageDispatcher:
    """Sends one message against a ready GeminiSession."""

    def __init__(self, session: GeminiSession, chat_max_output_tokens: int = DEFAULT_CHAT_MAX_OUTPUT_TOKENS):
        self.session = session
        self.chat_max_output_tokens = chat_max_output_tokens

    async def send(
        self,
        message: str,
        history: Sequence[ConversationMessage] = (),
        attachment: Optional[str] = None,
    ) -> str:
        if self.session is None or not self.session.is_ready:
            raise NotInitializedError(NOT_INITIALIZED_MESSAGE)

        if attachment and self.session.vision_model is not None:
            logger.info("Processing message with image using vision model")
            return await self._send_with_image(message, attachment)

        if attachment:
            # The UI blocks this combination; the image is dropped here.
            logger.info("No vision model available, sending message without the attached image")
        return await self._send_text(message, history)

    async def _send_with_image(self, message: str, attachment: str) -> str:
        try:
            image = ImageAttachment.from_data_url(attachment)
            image_bytes = image.to_bytes()
        except MalformedAttachmentError as e:
            logger.error(f"Vision model error: {e}")
            return image_error_message(e)

        prompt_text = message or DEFAULT_IMAGE_PROMPT
        models = self.session.client.aio.models
        model_name = self.session.vision_model.name

        async def structured_call() -> str:
            contents = [genai_types.Content(
                role="user",
                parts=[
                    genai_types.Part(text=prompt_text),
                    genai_types.Part(inline_data=genai_types.Blob(mime_type=image.mime_type, data=image_bytes)),
                ],
            )]
            logger.debug(f"Sending content to vision model {model_name}...")
            return _response_text(await models.generate_content(model=model_name, contents=contents))

        async def legacy_call() -> str:
            parts = [
                genai_types.Part.from_text(text=prompt_text),
                genai_types.Part.from_bytes(data=image_bytes, mime_type=image.mime_type),
            ]
            return _response_text(await models.generate_content(model=model_name, contents=parts))

        outcome = await attempt("Structured vision call", structured_call,
                                empty_error="Empty response from vision model")
        if not outcome.ok:
            logger.error(f"Structured vision call failed, trying legacy method: {outcome.reason}")
            outcome = await attempt("Legacy vision call", legacy_call,
                                    empty_error="No response from vision model with legacy method")
        if outcome.ok:
            logger.info("Vision model response received")
            return outcome.text

        logger.error(f"Vision model error: {outcome.reason}")
        return image_error_message(outcome.error)

    async def _send_text(self, message: str, history: Sequence[ConversationMessage]) -> str:
        if self.session.text_model is None:
            raise NotInitializedError("No text model is available for this API key.")

        client = self.session.client
        model_name = self.session.text_model.name
        chat_history = build_chat_history(history)
        logger.info(f"Processing text-only message, chat history length: {len(chat_history)}")

        async def chat_call() -> str:
            chat = client.aio.chats.create(
                model=model_name,
                history=chat_history,
                config=genai_types.GenerateContentConfig(max_output_tokens=self.chat_max_output_tokens),
            )
            return _response_text(await chat.send_message(message))

        async def direct_call() -> str:
            return _response_text(await client.aio.models.generate_content(model=model_name, contents=message))

        outcome = await attempt("Chat session", chat_call)
        if outcome.ok:
            return outcome.text

        # History is not replayed here.
        logger.warning(f"Chat method failed, falling back to direct content generation: {outcome.reason}")
        outcome = await attempt("Direct content generation", direct_call)
        if not outcome.ok:
            raise ProviderCallError(f"Error sending message to Gemini: {outcome.reason}") from outcome.error
        logger.info("Direct content generation successful")
        return outcome.text


class GeminiProvider(BaseChatProvider):
    """Google Gemini provider holding the current session for the application."""

    def __init__(
        self,
        text_models: Optional[Sequence[str]] = None,
        vision_models: Optional[Sequence[str]] = None,
        chat_max_output_tokens: int = DEFAULT_CHAT_MAX_OUTPUT_TOKENS,
    ):
        self.text_models = list(text_models or TEXT_MODEL_NAMES)
        self.vision_models = list(vision_models or VISION_MODEL_NAMES)
        self.chat_max_output_tokens = chat_max_output_tokens
        self.session: Optional[GeminiSession] = None

    async def initialize(self, api_key: str) -> bool:
        """Replace the current session with one built for ``api_key``."""
        self.session = await initialize_session(api_key, self.text_models, self.vision_models)
        return self.is_ready()

    def is_ready(self) -> bool:
        return self.session is not None and self.session.is_ready

    @property
    def has_vision(self) -> bool:
        return self.is_ready() and self.session.vision_model is not None

    async def send(
        self,
        message: str,
        history: Sequence[ConversationMessage] = (),
        attachment: Optional[str] = None,
    ) -> str:
        if not self.is_ready():
            raise NotInitializedError(NOT_INITIALIZED_MESSAGE)
        logger.debug("Preparing to send message to Gemini...")
        dispatcher = MessageDispatcher(self.session, chat_max_output_tokens=self.chat_max_output_tokens)
        return await dispatcher.send(message, history, attachment)

    def describe_models(self) -> List[List[Any]]:
        session = self.session
        rows = []
        for label, handle in (("Text", session.text_model if session else None),
                              ("Vision", session.vision_model if session else None)):
            if handle is None:
                rows.append([label, "-", "not available"])
            else:
                rows.append([label, handle.name, handle.display_name or handle.name])
        return rows
