"""
Base chat provider interface for VisuaLearn.

This module defines the error taxonomy, the data structures shared between the
chat loop and the provider, and the abstract base class a provider implements.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Base exception for provider-related errors."""
    pass


class NotInitializedError(ProviderError):
    """No usable model handle exists for the requested call."""
    pass


class MalformedAttachmentError(ProviderError):
    """An image attachment payload could not be decoded."""
    pass


class ProviderCallError(ProviderError):
    """A call to the model failed after its fallback was attempted."""
    pass


@dataclass
class ConversationMessage:
    """One turn of the conversation as kept by the UI layer."""
    role: str  # 'user' or 'model'
    content: str
    attachment: Optional[str] = None  # image data URL

    def __post_init__(self):
        if self.role not in ("user", "model"):
            raise ValueError(f"Invalid role: {self.role!r}. Expected 'user' or 'model'.")


@dataclass(frozen=True)
class ModelHandle:
    """A resolved binding to one backend model variant."""
    name: str
    display_name: Optional[str] = None

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class CallOutcome:
    """Result of a single call attempt: either reply text or the failure cause."""
    ok: bool
    text: str = ""
    error: Optional[BaseException] = None

    @property
    def reason(self) -> str:
        if self.error is None:
            return "Unknown error"
        return getattr(self.error, "message", None) or str(self.error) or type(self.error).__name__


async def attempt(
    label: str,
    call: Callable[[], Awaitable[Optional[str]]],
    empty_error: Optional[str] = None,
) -> CallOutcome:
    """Run one call strategy and capture its outcome.

    Args:
        label: Name of the strategy, used in log messages.
        call: Zero-argument coroutine function returning the reply text.
        empty_error: If given, an empty reply counts as a failure with this message.

    Returns:
        A CallOutcome; exceptions raised by ``call`` are captured, not propagated.
    """
    try:
        text = await call()
    except Exception as e:
        logger.warning(f"{label} failed: {e}", exc_info=True)
        return CallOutcome(ok=False, error=e)
    if not text and empty_error is not None:
        logger.warning(f"{label} returned an empty response")
        return CallOutcome(ok=False, error=ProviderCallError(empty_error))
    return CallOutcome(ok=True, text=text or "")


async def try_in_order(
    candidates: Sequence[str],
    resolve: Callable[[str], Awaitable[ModelHandle]],
    kind: str = "model",
) -> Optional[ModelHandle]:
    """Resolve the first candidate that succeeds.

    Candidates are tried strictly in order; later candidates are not touched
    once one resolves.

    Args:
        candidates: Ordered model identifiers.
        resolve: Coroutine function turning an identifier into a handle, raising on failure.
        kind: Label for log messages ("text model", "vision model", ...).

    Returns:
        The first resolved handle, or None if every candidate failed.
    """
    for name in candidates:
        try:
            logger.info(f"Trying to initialize {kind}: {name}")
            handle = await resolve(name)
        except Exception as e:
            logger.warning(f"Failed to initialize {kind} {name}: {e}")
            continue
        logger.info(f"Successfully initialized {kind}: {name}")
        return handle
    return None


class BaseChatProvider(ABC):
    """Abstract base class for chat providers.

    A provider turns a credential into a ready session and dispatches
    messages against it.
    """

    @abstractmethod
    async def initialize(self, api_key: str) -> bool:
        """Set up a session for the given credential.

        Returns:
            True if at least one model could be resolved, False otherwise.
            Never raises.
        """
        pass

    @abstractmethod
    def is_ready(self) -> bool:
        """Check whether a usable session exists."""
        pass

    @abstractmethod
    async def send(
        self,
        message: str,
        history: Sequence[ConversationMessage] = (),
        attachment: Optional[str] = None,
    ) -> str:
        """Send a message and return the reply text.

        Raises:
            NotInitializedError: If no usable model exists for the call.
        """
        pass

    @abstractmethod
    def describe_models(self) -> List[List[Any]]:
        """Rows describing the resolved models, for display."""
        pass

    @property
    def has_vision(self) -> bool:
        """Whether messages with an image attachment can be answered."""
        return False

    @property
    def provider_name(self) -> str:
        """Get the name of this provider."""
        return self.__class__.__name__.replace('Provider', '').lower()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(ready={self.is_ready()})"
