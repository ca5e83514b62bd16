"""
Marketing Copywriter — Platform-specific product copy from maker-supplied facts.

One JSON-mode completion per request. The prompt lists only the facts the
maker entered and the exact JSON keys expected back, one per platform.
"""

import json
from dataclasses import dataclass, field
from typing import Any

import structlog

from assistant.prompts import COPYWRITER_SYSTEM_PROMPT
from core.errors import InvalidInput, UpstreamUnavailable

logger = structlog.get_logger()

# UI label -> canonical JSON key
PLATFORM_KEYS: dict[str, str] = {
    "Instagram": "instagram",
    "X (Twitter)": "twitter",
    "Facebook": "facebook",
    "Product Description": "product_description",
    "Hashtags": "hashtags",
}


@dataclass
class CopyRequest:
    product_name: str
    platforms: list[str]
    material: str | None = None
    size: str | None = None
    handmade: bool = False
    origin: str | None = None
    key_features: str | None = None
    tone: str = "Simple"
    canonical_keys: list[str] = field(init=False, default_factory=list)

    def __post_init__(self):
        self.product_name = (self.product_name or "").strip()
        if not self.product_name:
            raise InvalidInput("Product name is required.")
        self.platforms = [p for p in self.platforms if p in PLATFORM_KEYS]
        if not self.platforms:
            raise InvalidInput("At least one target platform must be selected.")
        self.canonical_keys = [PLATFORM_KEYS[p] for p in self.platforms]


def build_user_prompt(request: CopyRequest) -> str:
    lines = [
        f"Product name: {request.product_name}",
        f"Material: {request.material.strip()}" if request.material and request.material.strip() else "",
        f"Size: {request.size.strip()}" if request.size and request.size.strip() else "",
        f"Handmade: {'Yes' if request.handmade else 'No'}",
        f"Origin: {request.origin.strip()}" if request.origin and request.origin.strip() else "",
        (
            f"Key features (use only these, do not add):\n{request.key_features.strip()}"
            if request.key_features and request.key_features.strip()
            else ""
        ),
        f"Tone: {request.tone}",
        "Generate content for these platforms. Return a JSON object with exactly these keys "
        f"(use these key names verbatim): {', '.join(request.canonical_keys)}. "
        "Each key's value must be the generated text for that platform.",
    ]
    return "\n".join(line for line in lines if line)


def extract_copy(raw: str | None, request: CopyRequest) -> dict[str, str]:
    """Map the model's JSON back onto the requested canonical keys."""
    if not raw:
        raise UpstreamUnavailable("No content returned from the text generation backend.")
    try:
        parsed: Any = json.loads(raw)
    except json.JSONDecodeError as e:
        raise UpstreamUnavailable("Invalid JSON from the text generation backend.") from e
    if not isinstance(parsed, dict):
        raise UpstreamUnavailable("Invalid JSON from the text generation backend.")

    result: dict[str, str] = {}
    for label, key in zip(request.platforms, request.canonical_keys):
        value = parsed.get(key, parsed.get(label, parsed.get(label.lower())))
        result[key] = value if isinstance(value, str) else ("" if value is None else str(value))
    return result


async def generate_copy(client, request: CopyRequest) -> dict[str, str]:
    """Run one completion and return ``{canonical_key: text}`` for each requested platform."""
    reply = await client.complete(
        [
            {"role": "system", "content": COPYWRITER_SYSTEM_PROMPT},
            {"role": "user", "content": build_user_prompt(request)},
        ],
        response_format={"type": "json_object"},
    )
    contents = extract_copy(reply.content, request)
    logger.info("marketing.copy_generated", platforms=request.canonical_keys)
    return contents
