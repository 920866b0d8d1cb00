"""
VisuaLearn image helpers.

Converts between image data URLs (``data:image/png;base64,...``), the
attachment structure sent to the vision model, and image files on disk.
"""

import base64
import binascii
import logging
import mimetypes
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .base_provider import MalformedAttachmentError

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(image/[a-zA-Z+.-]+);base64,(.+)$")


@dataclass(frozen=True)
class ImageAttachment:
    """An image payload extracted from a data URL, valid for a single request."""
    mime_type: str
    data_base64: str

    @classmethod
    def from_data_url(cls, data_url: str) -> "ImageAttachment":
        """Parse an image data URL.

        Args:
            data_url: A ``data:image/<type>;base64,<payload>`` string.

        Returns:
            The parsed attachment.

        Raises:
            MalformedAttachmentError: If the string is not a base64 image data URL.
        """
        match = DATA_URL_PATTERN.match(data_url or "")
        if not match:
            logger.error("Invalid data URL format")
            raise MalformedAttachmentError("Failed to extract image data")
        mime_type, payload = match.group(1), match.group(2)
        logger.debug(f"Detected MIME type: {mime_type}, base64 length: {len(payload)}")
        return cls(mime_type=mime_type, data_base64=payload)

    def to_bytes(self) -> bytes:
        """Decode the base64 payload.

        Raises:
            MalformedAttachmentError: If the payload is not valid base64.
        """
        try:
            return base64.b64decode(self.data_base64, validate=True)
        except (binascii.Error, ValueError) as e:
            raise MalformedAttachmentError(f"Failed to decode image data: {e}") from e


def bytes_to_data_url(data: bytes, mime_type: str) -> str:
    """Encode raw image bytes as a data URL."""
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def file_to_data_url(path: Union[str, Path]) -> str:
    """Read an image file into a data URL.

    Args:
        path: Path to an image file.

    Returns:
        The image encoded as a data URL.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file type is not an image.
    """
    file_path = Path(path).expanduser()
    if not file_path.is_file():
        raise FileNotFoundError(f"Image file not found: {file_path}")

    mime_type, _ = mimetypes.guess_type(file_path.name)
    if not mime_type or not mime_type.startswith("image/"):
        raise ValueError(f"Not an image file: {file_path.name}")

    data_url = bytes_to_data_url(file_path.read_bytes(), mime_type)
    logger.info(f"Loaded image {file_path.name} ({mime_type}, data URL length {len(data_url)})")
    return data_url
