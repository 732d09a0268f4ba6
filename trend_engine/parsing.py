"""Helpers for pulling structured data out of generated text."""
from __future__ import annotations

import json
import re
from typing import Any

_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*|\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code block (```json ... ```) if present."""
    return _FENCE_RE.sub("", text.strip()).strip()


def holds_records(document: Any) -> bool:
    """True for an object, or a list with at least one object in it."""
    if isinstance(document, dict):
        return True
    return isinstance(document, list) and any(isinstance(item, dict) for item in document)


def load_json(text: str) -> Any:
    """Parse JSON from generated text.

    Accepts a bare document, a fenced one, or a document embedded in
    prose (the outermost ``[...]`` or ``{...}`` span is tried). An
    embedded span only counts when it holds records, so prose such as
    ``"rose in [2024]"`` is not mistaken for a reply.

    Raises:
        ValueError: If no JSON document can be decoded.
    """
    if not text or not text.strip():
        raise ValueError("empty response")

    cleaned = strip_code_fences(text)
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    for opener, closer in (("[", "]"), ("{", "}")):
        start = cleaned.find(opener)
        end = cleaned.rfind(closer)
        if start != -1 and end > start:
            try:
                document = json.loads(cleaned[start:end + 1])
            except json.JSONDecodeError:
                continue
            if holds_records(document):
                return document
    raise ValueError("no JSON document found in response")
