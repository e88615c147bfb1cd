import pytest

from app.core.config import get_settings
from app.core.errors import ValidationFailed
from app.services.content_enhancer import fallback_enhancement, enhance_product


def test_fallback_truncates_name():
    enhanced = fallback_enhancement({"name": "Industrial Grade Stainless Steel Hex Bolts"})
    assert enhanced["short_name"] == "Industrial Grade Stainless Ste"
    assert enhanced["summary"] == "Industrial Grade Stainless Steel Hex Bolts - Quality product with competitive pricing"
    assert enhanced["meta_title"] == "Industrial Grade Stainless Steel Hex Bolts"


def test_fallback_keeps_existing_summary():
    enhanced = fallback_enhancement({"name": "Desk Lamp", "summary": "Warm LED light"})
    assert enhanced["summary"] == "Warm LED light"
    assert enhanced["meta_description"] == "Warm LED light"


@pytest.mark.asyncio
async def test_enhance_without_api_key_uses_fallback(monkeypatch):
    monkeypatch.setattr(get_settings(), "openai_api_key", None)
    enhanced = await enhance_product({"name": "Desk Lamp"})
    assert enhanced["short_name"] == "Desk Lamp"


@pytest.mark.asyncio
@pytest.mark.parametrize("product", [None, {}, {"name": ""}, "Desk Lamp"])
async def test_enhance_requires_name(product):
    with pytest.raises(ValidationFailed):
        await enhance_product(product)
