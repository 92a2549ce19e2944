"""Utility to extract JSON from LLM responses."""

from __future__ import annotations

import json

_CLOSERS = {"{": "}", "[": "]"}


def json_span_candidates(text: str, opener: str) -> list[str]:
    """Candidate JSON substrings that start with ``opener``, best first.

    Code fences are stripped first. Every top-level balanced span comes first,
    left to right. Brackets inside string literals are ignored, so prose after
    the JSON (``Reply [more] ...``) cannot widen a span. The first-opener to
    last-closer span comes last. Callers keep the first that decodes.
    """
    if opener not in _CLOSERS:
        raise ValueError(f"Unsupported JSON opener: {opener!r}")
    text = _strip_code_fences(text.strip())
    candidates = list(_balanced_spans(text, opener))
    start = text.find(opener)
    end = text.rfind(_CLOSERS[opener])
    if start != -1 and end > start:
        outermost = text[start : end + 1]
        if outermost not in candidates:
            candidates.append(outermost)
    return candidates


def _balanced_spans(text: str, opener: str):
    """Yield top-level balanced spans opening with ``opener``, left to right."""
    pos = text.find(opener)
    while pos != -1:
        end = _match_closer(text, pos)
        if end is None:
            return
        yield text[pos : end + 1]
        pos = text.find(opener, end + 1)


def _match_closer(text: str, start: int) -> int | None:
    stack: list[str] = []
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
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("}", "]"):
            if not stack or stack.pop() != ch:
                return None
            if not stack:
                return i
    return None


def extract_json(text: str, prefer: str = "{") -> dict | list:
    """Extract JSON from LLM response, handling ```json blocks.

    Tries in order:
    1. Direct json.loads on the full text
    2. Strip fenced code block markers and parse
    3. Parse balanced spans, then first opener to last closer (``prefer`` first)
    4. Try to repair truncated JSON (missing closing braces/brackets)
    """
    text = text.strip()

    # 1) Direct parse
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        pass

    # 2) Strip fenced code block markers
    stripped = _strip_code_fences(text)
    if stripped != text:
        try:
            return json.loads(stripped)
        except json.JSONDecodeError:
            pass

    # 3) Embedded spans, preferred shape first
    openers = ("[", "{") if prefer == "[" else ("{", "[")
    for opener in openers:
        result = _parse_span(stripped, opener)
        if result is not None:
            return result

    # 4) Try to repair truncated JSON
    result = _try_repair_truncated(stripped, openers[0])
    if result is not None:
        return result

    raise ValueError(f"Could not extract JSON from text: {text[:200]}...")


def _strip_code_fences(text: str) -> str:
    """Remove markdown code fence markers from text."""
    lines = text.split("\n")

    # Opening fence may follow a short preamble line
    for i, line in enumerate(lines[:3]):
        if line.strip().startswith("```"):
            lines = lines[i + 1 :]
            break
    else:
        return text

    # Drop the closing fence and anything after it
    for i in range(len(lines) - 1, -1, -1):
        if lines[i].strip().startswith("```"):
            lines = lines[:i]
            break

    return "\n".join(lines).strip()


def _parse_span(text: str, opener: str) -> dict | list | None:
    for span in json_span_candidates(text, opener):
        try:
            return json.loads(span)
        except json.JSONDecodeError:
            continue
    return None


def _try_repair_truncated(text: str, opener: str = "{") -> dict | list | None:
    """Try to repair truncated JSON by closing open braces/brackets."""
    start = text.find(opener)
    if start == -1:
        return None

    candidate = text[start:]
    open_braces = candidate.count("{") - candidate.count("}")
    open_brackets = candidate.count("[") - candidate.count("]")

    if open_braces <= 0 and open_brackets <= 0:
        return None

    # Cut back to the last complete string value, then close what is open
    last_quote = candidate.rfind('"')
    if last_quote <= 0:
        return None
    truncated = candidate[: last_quote + 1]
    if truncated.count('"') % 2:
        # last quote opened an unterminated string; drop it
        truncated = truncated[: truncated[:-1].rfind('"') + 1]
        if not truncated:
            return None

    stack: list[str] = []
    in_string = False
    escaped = False
    for ch in truncated:
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
        elif ch in _CLOSERS:
            stack.append(_CLOSERS[ch])
        elif ch in ("}", "]") and stack:
            stack.pop()

    repaired = truncated.rstrip().rstrip(",") + "".join(reversed(stack))
    try:
        return json.loads(repaired)
    except json.JSONDecodeError:
        return None
