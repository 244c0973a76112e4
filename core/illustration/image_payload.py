"""
Image payload normalization.

Every strategy hands back a ``data:`` URI regardless of how the provider
encoded the image: raw ``image/*`` bytes, a JSON envelope, or a PIL image
returned by an SDK.
"""
import base64
import binascii
import json
import logging
import re
from io import BytesIO
from typing import Any, Optional, Tuple

from PIL import Image

from shared.errors import ResponseFormatError

DEFAULT_IMAGE_MIME = "image/png"

# First quoted run of base64 alphabet long enough to be image data
_BASE64_TOKEN = re.compile(r'"([A-Za-z0-9+/=]{100,})"')


def bytes_to_data_uri(data: bytes, mime_type: str = DEFAULT_IMAGE_MIME) -> str:
    """Encode raw image bytes as a base64 data URI."""
    image_base64 = base64.b64encode(data).decode("utf-8")
    return f"data:{mime_type};base64,{image_base64}"


def image_to_data_uri(image: Image.Image) -> str:
    """Re-encode a PIL image as PNG and return it as a data URI."""
    buffer = BytesIO()
    image.save(buffer, format="PNG")
    return bytes_to_data_uri(buffer.getvalue(), DEFAULT_IMAGE_MIME)


def _as_data_uri(value: str) -> str:
    if value.startswith("data:"):
        return value
    return f"data:{DEFAULT_IMAGE_MIME};base64,{value}"


def extract_from_json(payload: Any) -> Optional[str]:
    """
    Find an image inside a decoded JSON body.

    Looks at the ``image`` field, then the ``blob`` field, then the first
    quoted base64 token of at least 100 characters anywhere in the document.
    """
    if isinstance(payload, dict):
        for field in ("image", "blob"):
            value = payload.get(field)
            if isinstance(value, str) and value:
                return _as_data_uri(value)

    match = _BASE64_TOKEN.search(json.dumps(payload))
    if match:
        return _as_data_uri(match.group(1))
    return None


def normalize_http_payload(content_type: Optional[str], body: bytes, provider: Optional[str] = None) -> str:
    """
    Turn a 2xx provider response into a data URI.

    Args:
        content_type: Value of the response ``Content-Type`` header
        body: Raw response body
        provider: Label used in error messages

    Raises:
        ResponseFormatError: When no image can be found in the body
    """
    mime_type = (content_type or "").split(";")[0].strip().lower()
    if mime_type.startswith("image/"):
        return bytes_to_data_uri(body, mime_type)

    try:
        payload = json.loads(body.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as e:
        raise ResponseFormatError(
            "Failed to extract image from response",
            detail=f"Unexpected response format: {e}",
            provider=provider,
        ) from e

    data_uri = extract_from_json(payload)
    if data_uri is None:
        logging.error(f"[ILLUSTRATION] Could not find image in response from {provider}")
        raise ResponseFormatError(
            "Failed to extract image from response",
            detail="Unexpected response format",
            provider=provider,
        )
    return data_uri


_DATA_URI = re.compile(r"^data:(?P<mime>image/[A-Za-z0-9.+-]+);base64,(?P<data>.+)$", re.DOTALL)


def decode_data_uri(data_uri: str) -> Tuple[str, bytes]:
    """
    Split an image data URI into its MIME type and decoded bytes.

    Raises:
        ValueError: If the value is not a base64 image data URI
    """
    match = _DATA_URI.match((data_uri or "").strip())
    if not match:
        raise ValueError("Expected a base64 image data URI")
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e
    return match.group("mime").lower(), data


def to_png_bytes(data_uri: str) -> bytes:
    """Decode a data URI and return PNG bytes, re-encoding other formats through PIL."""
    mime_type, data = decode_data_uri(data_uri)
    if mime_type == DEFAULT_IMAGE_MIME:
        return data
    try:
        image = Image.open(BytesIO(data))
        buffer = BytesIO()
        image.save(buffer, format="PNG")
    except OSError as e:
        raise ValueError(f"Could not convert {mime_type} image to PNG: {e}") from e
    return buffer.getvalue()
