"""Parsing of generated outfit payloads and style query helpers."""

import pytest

from logic.outfit_parsing import OutfitPayloadError, extract_json_object, parse_outfit
from logic.style_search import extract_style_keywords, style_search_queries
from models.outfit import GeneratedOutfit, OutfitSlotItem


def test_extract_json_from_markdown_fence():
    text = 'Here you go:\n```json\n{"main_description": "Coastal", "tops": []}\n```\nEnjoy!'
    assert extract_json_object(text) == {"main_description": "Coastal", "tops": []}


def test_extract_json_from_surrounding_prose():
    text = 'Sure! {"main_description": "Brace } in text", "shoes": [{"name": "Loafer"}]} Thanks.'
    parsed = extract_json_object(text)
    assert parsed["main_description"] == "Brace } in text"
    assert parsed["shoes"] == [{"name": "Loafer"}]


@pytest.mark.parametrize("text", ["", "   ", "no json here", "[1, 2, 3]"])
def test_extract_json_failures(text):
    with pytest.raises(OutfitPayloadError):
        extract_json_object(text)


def test_parse_outfit_normalises_categories():
    outfit = parse_outfit(
        {
            "main_description": "Downtown",
            "style_keywords": "edgy, monochrome, ",
            "tops": [{"name": "Leather jacket", "brand": "Acne Studios", "style_tags": "edgy"}],
            "bottoms": "none",
            "shoes": [{"name": ""}, {"name": "Chelsea boots"}, "loafers"],
        }
    )

    assert outfit.style_keywords == ["edgy", "monochrome"]
    assert [item.name for item in outfit.items_for("tops")] == ["Leather jacket"]
    assert outfit.items_for("tops")[0].style_tags == ("edgy",)
    assert outfit.items_for("bottoms") == []
    assert outfit.items_for("accessories") == []
    assert [item.name for item in outfit.items_for("shoes")] == ["", "Chelsea boots"]
    assert outfit.item_count == 3


def test_parse_outfit_keeps_unnamed_items():
    outfit = parse_outfit(
        '{"tops": [{"name": "Tee"}, {"description": "layering piece", "brand": "Uniqlo"}]}'
    )

    tops = outfit.items_for("tops")
    assert len(tops) == 2
    assert tops[1].name == ""
    assert tops[1].search_query == "Uniqlo"


def test_parse_outfit_keeps_slot_item_instances():
    slot = OutfitSlotItem(name="Cardigan", category="tops")
    outfit = parse_outfit({"tops": [slot], "style_keywords": ["cosy"]})
    assert outfit.items_for("tops") == [slot]
    assert outfit.style_keywords == ["cosy"]


def test_parse_outfit_accepts_text_and_bytes():
    raw = '{"accessories": [{"name": "Silver chain"}]}'
    assert parse_outfit(raw).items_for("accessories")[0].name == "Silver chain"
    assert parse_outfit(raw.encode("utf-8")).item_count == 1
    existing = GeneratedOutfit()
    assert parse_outfit(existing) is existing


def test_parse_outfit_rejects_other_types():
    with pytest.raises(OutfitPayloadError):
        parse_outfit(42)
    with pytest.raises(ValueError):
        parse_outfit("nothing useful")


def test_style_queries():
    assert extract_style_keywords("Effortless, layered neutrals; with a bold coat!") == [
        "effortless",
        "layered",
        "neutrals",
        "with",
        "bold",
    ]
    assert style_search_queries("Harry Styles", "Flared trousers") == [
        "Harry Styles style",
        "flared",
        "trousers",
        "Harry Styles outfit",
    ]
    assert style_search_queries("", "Quiet luxury") == ["quiet", "luxury"]
