"""
Chat provider interfaces and the Gemini implementation for VisuaLearn.

The provider resolves models for a credential and turns user messages,
optionally with an attached image, into model replies.
"""

from .base_provider import (
    BaseChatProvider,
    CallOutcome,
    ConversationMessage,
    MalformedAttachmentError,
    ModelHandle,
    NotInitializedError,
    ProviderCallError,
    ProviderError,
    try_in_order,
)
from .gemini_provider import GeminiProvider, GeminiSession, MessageDispatcher, initialize_session
from .image_utils import ImageAttachment, file_to_data_url

__all__ = [
    'BaseChatProvider',
    'CallOutcome',
    'ConversationMessage',
    'GeminiProvider',
    'GeminiSession',
    'ImageAttachment',
    'MalformedAttachmentError',
    'MessageDispatcher',
    'ModelHandle',
    'NotInitializedError',
    'ProviderCallError',
    'ProviderError',
    'file_to_data_url',
    'initialize_session',
    'try_in_order',
]
