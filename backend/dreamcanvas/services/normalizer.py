"""Response normalizer: pull an image reference out of heterogeneous provider payloads.

Shapes are tried in a fixed priority order and the first match wins:

1. a top-level direct URL field (``{"url": ...}``, ``{"output": "https://..."}``)
2. the first element of an array field, either a URL string or an object
   with a URL field (``{"output": [...]}``, ``{"data": [{"url": ...}]}``)
3. a base64 payload, bare or inside an array, wrapped into a data URL
"""
import base64
from dataclasses import dataclass
from typing import Any, Callable, Optional

DEFAULT_MIME = "image/jpeg"

URL_FIELDS = ("url", "image_url", "imageUrl", "output")
ARRAY_FIELDS = ("output", "data", "images", "generations")
ITEM_URL_FIELDS = ("url", "image_url", "img")
BASE64_FIELDS = ("image_base64", "b64_json", "base64")
BASE64_ARRAY_FIELDS = (("images", None), ("data", "b64_json"), ("artifacts", "base64"))


def to_data_url(data: bytes, mime_type: str = DEFAULT_MIME) -> str:
    """Inline raw image bytes as a ``data:`` URL."""
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def _is_url(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://", "data:image"))


def _wrap_base64(value: Any, mime_type: str) -> Optional[str]:
    if not isinstance(value, str) or not value.strip():
        return None
    value = value.strip()
    if value.startswith("data:"):
        return value
    return f"data:{mime_type};base64,{value}"


def _first(body: dict[str, Any], field: str) -> Any:
    value = body.get(field)
    if isinstance(value, list) and value:
        return value[0]
    return None


def _direct_url(body: dict[str, Any], _mime: str) -> Optional[str]:
    for field in URL_FIELDS:
        if _is_url(body.get(field)):
            return body[field]
    return None


def _first_array_element(body: dict[str, Any], _mime: str) -> Optional[str]:
    for field in ARRAY_FIELDS:
        item = _first(body, field)
        if _is_url(item):
            return item
        if isinstance(item, dict):
            for key in ITEM_URL_FIELDS:
                if _is_url(item.get(key)):
                    return item[key]
    return None


def _base64_payload(body: dict[str, Any], mime: str) -> Optional[str]:
    for field in BASE64_FIELDS:
        wrapped = _wrap_base64(body.get(field), mime)
        if wrapped:
            return wrapped
    for field, key in BASE64_ARRAY_FIELDS:
        item = _first(body, field)
        if key is not None:
            item = item.get(key) if isinstance(item, dict) else None
        wrapped = _wrap_base64(item, mime)
        if wrapped:
            return wrapped
    return None


@dataclass(frozen=True)
class ShapeMatcher:
    name: str
    extract: Callable[[dict[str, Any], str], Optional[str]]


SHAPE_MATCHERS: tuple[ShapeMatcher, ...] = (
    ShapeMatcher("direct_url", _direct_url),
    ShapeMatcher("first_array_element", _first_array_element),
    ShapeMatcher("base64", _base64_payload),
)


def extract_image_reference(body: Any, mime_type: str = DEFAULT_MIME) -> Optional[str]:
    """Return an image URL or data URL from a provider payload, or None.

    A None result is not an error here; callers turn it into
    ``NoImageReturned``.
    """
    if not isinstance(body, dict):
        return None
    for matcher in SHAPE_MATCHERS:
        reference = matcher.extract(body, mime_type)
        if reference:
            return reference
    return None
