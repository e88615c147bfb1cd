from __future__ import annotations

import json
from typing import Any

import httpx

from app.core.config import get_settings
from app.core.errors import ValidationFailed
from app.core.logging import get_logger

logger = get_logger()

OPENAI_RESPONSES_URL = "https://api.openai.com/v1/responses"

ENHANCEMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "short_name": {"type": "string", "description": "Shortened product name (max 30 chars)"},
        "summary": {"type": "string", "description": "Concise summary (max 160 chars)"},
        "highlight_bullets": {
            "type": "array",
            "items": {"type": "string"},
            "description": "3 benefit-led bullets (max 60 chars each)",
        },
        "meta_title": {"type": "string", "description": "SEO meta title (max 60 chars)"},
        "meta_description": {"type": "string", "description": "SEO meta description (max 160 chars)"},
    },
    "required": ["short_name", "summary", "highlight_bullets", "meta_title", "meta_description"],
    "additionalProperties": False,
}

PROMPT = (
    "You enhance product information for e-commerce listings. "
    "Generate concise, benefit-focused content. Return JSON matching the provided schema."
)

_LIMITS = {"short_name": 30, "meta_title": 60, "summary": 160, "meta_description": 160}


def fallback_enhancement(product: dict[str, Any]) -> dict[str, Any]:
    name = str(product.get("name") or "").strip()
    summary = product.get("summary") or f"{name} - Quality product with competitive pricing"
    return {
        "short_name": name[:30] or product.get("short_name"),
        "summary": summary,
        "meta_title": name[:60] or product.get("meta_title"),
        "meta_description": summary[:160],
    }


def _clip(enhanced: dict[str, Any]) -> dict[str, Any]:
    for key, limit in _LIMITS.items():
        if isinstance(enhanced.get(key), str):
            enhanced[key] = enhanced[key][:limit]
    return enhanced


def _extract_output_text(data: dict) -> str:
    for item in data.get("output", []):
        for content in item.get("content", []):
            if content.get("type") in {"output_text", "text"} and "text" in content:
                return content["text"]
    raise ValueError("No output text found in OpenAI response")


async def _ask_openai(product: dict[str, Any], api_key: str, model: str) -> dict[str, Any]:
    details = (
        f"Name: {product.get('name')}\n"
        f"Current summary: {product.get('summary') or 'none'}\n"
        f"Specs: {json.dumps(product.get('specs') or {})}"
    )
    payload = {
        "model": model,
        "input": [
            {
                "role": "user",
                "content": [
                    {"type": "input_text", "text": PROMPT},
                    {"type": "input_text", "text": details},
                ],
            }
        ],
        "text": {
            "format": {
                "type": "json_schema",
                "name": "product_enhancement",
                "schema": ENHANCEMENT_SCHEMA,
                "strict": True,
            }
        },
    }
    async with httpx.AsyncClient(timeout=60) as client:
        response = await client.post(
            OPENAI_RESPONSES_URL,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            json=payload,
        )
        response.raise_for_status()
        return json.loads(_extract_output_text(response.json()))


async def enhance_product(product: Any) -> dict[str, Any]:
    """Listing copy for ``product``; falls back to plain truncation when the model is unavailable."""
    if not isinstance(product, dict) or not product.get("name"):
        raise ValidationFailed("Product name is required")

    settings = get_settings()
    if not settings.openai_api_key:
        logger.info("enhancement_fallback", reason="not_configured")
        return fallback_enhancement(product)

    try:
        enhanced = await _ask_openai(product, settings.openai_api_key, settings.openai_model)
    except (httpx.HTTPError, ValueError) as exc:
        logger.warning("enhancement_fallback", reason="provider_error", error=str(exc))
        return fallback_enhancement(product)
    return _clip(enhanced)
