"""Best-effort JSON extraction from free-text model output.

Kept free of any network code so the parsing rules can be tested on their own.
"""

from __future__ import annotations

import json
import re
from typing import Any, Literal

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*")
_CONTROL_RE = re.compile(r"[\u0000-\u001f\u007f-\u009f]")

_BRACKETS = {"object": ("{", "}"), "array": ("[", "]")}


class ResponseParseError(ValueError):
    """The model response did not contain usable JSON."""


def clean_response(text: str | None) -> str:
    """Strip code fences and control characters from a model response."""
    if not text:
        return ""
    out = _FENCE_RE.sub("", text)
    out = _CONTROL_RE.sub("", out)
    return out.strip()


def _balanced_end(text: str, start: int, open_ch: str, close_ch: str) -> int:
    """Index just past the bracket closing the one at ``start``, or -1 if it never closes."""
    depth = 0
    in_string = False
    escaped = False
    for i in range(start, len(text)):
        ch = text[i]
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch == open_ch:
            depth += 1
        elif ch == close_ch:
            depth -= 1
            if depth == 0:
                return i + 1
    return -1


def extract_json(text: str | None, kind: Literal["object", "array"] = "object") -> Any:
    """Return the first parseable JSON object (or array) found in ``text``."""
    cleaned = clean_response(text)
    if not cleaned:
        raise ResponseParseError("empty response")

    open_ch, close_ch = _BRACKETS[kind]
    start = cleaned.find(open_ch)
    if start < 0:
        raise ResponseParseError(f"no JSON {kind} found in response")

    last_error = "unterminated JSON"
    while start >= 0:
        end = _balanced_end(cleaned, start, open_ch, close_ch)
        if end < 0:
            # Everything after an unclosed bracket is a fragment of a truncated value.
            break
        try:
            return json.loads(cleaned[start:end])
        except json.JSONDecodeError as e:
            last_error = str(e)
        start = cleaned.find(open_ch, end)

    raise ResponseParseError(f"malformed JSON {kind}: {last_error}")
