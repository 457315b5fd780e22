"""Image intake validation and encoding."""

import base64
import binascii
from dataclasses import dataclass

from talk_to_study.config import MAX_IMAGE_BYTES
from talk_to_study.errors import FileReadError, TooLargeError, UnsupportedFormatError


@dataclass(frozen=True)
class EncodedImage:
    """An accepted image ready for the content analyzer."""

    base64_data: str
    mime_type: str
    size_bytes: int


def encode_image(
    data: bytes, mime_type: str | None, max_bytes: int = MAX_IMAGE_BYTES
) -> EncodedImage:
    """Validate an upload and return its base64 payload."""
    if not mime_type or not mime_type.startswith("image/"):
        raise UnsupportedFormatError(mime_type or "unknown")
    if len(data) > max_bytes:
        raise TooLargeError(f"{len(data)} bytes exceeds {max_bytes}")
    encoded = base64.b64encode(data).decode("utf-8")
    return EncodedImage(
        base64_data=encoded,
        mime_type=mime_type,
        size_bytes=len(data),
    )


def decode_data_url(data_url: str) -> tuple[bytes, str]:
    """Split a ``data:<mime>;base64,`` URL from a camera capture into bytes and type."""
    header, separator, payload = data_url.partition(",")
    if not separator or not header.startswith("data:"):
        raise FileReadError("not a data URL")
    mime_type = header.removeprefix("data:").split(";", 1)[0]
    try:
        raw = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise FileReadError("invalid base64 payload") from exc
    return raw, mime_type


def to_data_url(image: EncodedImage) -> str:
    """Rebuild a data URL for clients that need one."""
    return f"data:{image.mime_type};base64,{image.base64_data}"
