"""Parse the generation step's outfit payload into a :class:`GeneratedOutfit`."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Mapping, Optional

from models.outfit import GeneratedOutfit


_FENCE_PATTERN = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


class OutfitPayloadError(ValueError):
    """Raised when no JSON object can be recovered from the payload."""


def _first_balanced_object(text: str) -> Optional[str]:
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start : index + 1]
        start = text.find("{", start + 1)
    return None


def extract_json_object(text: str) -> Dict[str, Any]:
    """Recover a JSON object from model output.

    Markdown code fences are stripped first; if the remainder is not valid
    JSON, the first balanced ``{...}`` span is tried instead.
    """

    if not text or not text.strip():
        raise OutfitPayloadError("Empty outfit payload")
    fenced = _FENCE_PATTERN.search(text)
    body = (fenced.group(1) if fenced else text).strip()

    for candidate in (body, _first_balanced_object(body)):
        if not candidate:
            continue
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(parsed, dict):
            return parsed
    raise OutfitPayloadError("No JSON object found in outfit payload")



def parse_outfit(payload: Any) -> GeneratedOutfit:
    """Accept raw model text, a mapping or an existing outfit.

    Missing or non-list categories become empty. Every item in a category list
    is kept, including unnamed ones, so each settles to one enriched item.
    """

    if isinstance(payload, (str, bytes)):
        text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
        payload = extract_json_object(text)
    if not isinstance(payload, (GeneratedOutfit, Mapping)):
        raise OutfitPayloadError(f"Unsupported outfit payload type: {type(payload).__name__}")
    return GeneratedOutfit.coerce(payload)


__all__ = ["OutfitPayloadError", "extract_json_object", "parse_outfit"]
