"""Style resolver: maps a style id onto prompt prefix, negative prompt and guidance."""
from typing import Optional

from dreamcanvas.models.generation import StyleProfile

DEFAULT_STYLE = "realistic"

_COMMON_NEGATIVE = "lowres, blurry, bad anatomy, extra fingers, watermark, text, signature"

STYLE_PROFILES: dict[str, StyleProfile] = {
    "realistic": StyleProfile(
        prompt_prefix="photorealistic, highly detailed, natural lighting, 8k",
        negative_prompt=f"cartoon, illustration, painting, {_COMMON_NEGATIVE}",
        guidance_scale=7.0,
    ),
    "cyberpunk": StyleProfile(
        prompt_prefix="cyberpunk style, neon lights, futuristic city, high contrast",
        negative_prompt=f"daylight, pastoral, muted colors, {_COMMON_NEGATIVE}",
        guidance_scale=7.5,
    ),
    "anime": StyleProfile(
        prompt_prefix="anime style, cel shading, vibrant colors, clean lineart",
        negative_prompt=f"photorealistic, 3d render, {_COMMON_NEGATIVE}",
        guidance_scale=8.0,
    ),
    "comic": StyleProfile(
        prompt_prefix="comic book style, bold ink outlines, halftone shading",
        negative_prompt=f"photorealistic, soft focus, {_COMMON_NEGATIVE}",
        guidance_scale=8.0,
    ),
    "watercolor": StyleProfile(
        prompt_prefix="watercolor painting, soft washes, paper texture",
        negative_prompt=f"photorealistic, hard edges, 3d render, {_COMMON_NEGATIVE}",
        guidance_scale=6.5,
    ),
    "digital-art": StyleProfile(
        prompt_prefix="digital art, concept art, trending on artstation, sharp focus",
        negative_prompt=f"photo, grainy, {_COMMON_NEGATIVE}",
        guidance_scale=7.5,
    ),
    "pixel": StyleProfile(
        prompt_prefix="pixel art, 16-bit, limited palette, crisp pixels",
        negative_prompt=f"photorealistic, smooth gradients, anti-aliasing, {_COMMON_NEGATIVE}",
        guidance_scale=7.0,
    ),
}

_ALIASES: dict[str, str] = {
    "photo": "realistic",
    "photorealistic": "realistic",
    "digital": "digital-art",
    "digitalart": "digital-art",
    "pixel-art": "pixel",
    "pixelart": "pixel",
    "comics": "comic",
}


def normalize_style_id(style_id: Optional[str]) -> str:
    """Return the canonical style id, falling back to ``realistic``."""
    key = (style_id or "").strip().lower().replace("_", "-").replace(" ", "-")
    key = _ALIASES.get(key, key)
    return key if key in STYLE_PROFILES else DEFAULT_STYLE


def resolve_style(style_id: Optional[str]) -> StyleProfile:
    """Look up a style profile. Unknown or empty ids silently get ``realistic``."""
    return STYLE_PROFILES[normalize_style_id(style_id)]


def compose_prompt(profile: StyleProfile, prompt: str) -> str:
    return f"{profile.prompt_prefix}, {prompt.strip()}"
