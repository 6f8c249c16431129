"""Dimension resolver: aspect-ratio text -> bucket -> pixel size."""
import re
from typing import Optional

from dreamcanvas.models.generation import AspectRatio, Dimensions

# Multiples of 64; landscape and portrait are transposes.
DIMENSIONS: dict[AspectRatio, Dimensions] = {
    AspectRatio.square: Dimensions(width=1024, height=1024),
    AspectRatio.landscape: Dimensions(width=1344, height=768),
    AspectRatio.portrait: Dimensions(width=768, height=1344),
}

_WORDS: dict[str, AspectRatio] = {
    "square": AspectRatio.square,
    "landscape": AspectRatio.landscape,
    "wide": AspectRatio.landscape,
    "widescreen": AspectRatio.landscape,
    "horizontal": AspectRatio.landscape,
    "portrait": AspectRatio.portrait,
    "tall": AspectRatio.portrait,
    "vertical": AspectRatio.portrait,
}

_PAIR_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*[:x×/]\s*(\d+(?:\.\d+)?)\s*$")


def resolve_aspect(aspect: Optional[str]) -> AspectRatio:
    """Classify loosely formatted input ("16:9", "1280x720", "16X9", "tall").

    Anything unrecognized is square.
    """
    text = (aspect or "").strip().lower()
    if text in _WORDS:
        return _WORDS[text]
    match = _PAIR_RE.match(text)
    if not match:
        return AspectRatio.square
    width, height = float(match.group(1)), float(match.group(2))
    if width <= 0 or height <= 0:
        return AspectRatio.square
    if width > height:
        return AspectRatio.landscape
    if height > width:
        return AspectRatio.portrait
    return AspectRatio.square


def resolve_dimensions(aspect: Optional[str]) -> Dimensions:
    return DIMENSIONS[resolve_aspect(aspect)]
