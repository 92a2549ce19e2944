"""Tolerant parsing of raw LLM completions into typed results.

Nothing in this module raises on malformed model output.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from statement_forge.utils.json_parser import extract_json, json_span_candidates
from statement_forge.utils.text_cleaning import clean_text

logger = logging.getLogger(__name__)

MIN_FALLBACK_LINE_LENGTH = 50

UNPROCESSABLE_EDIT = "Could not process the change request"
UNPARSEABLE_EDIT = "Failed to process response from AI"
DEFAULT_ABORT_REASON = "Could not apply the suggested change"

# Numbered / bulleted list prefixes, but not the "- " statement marker
_LIST_PREFIX_RE = re.compile(r"^\s*(?:\d+[.)]\s+|[*\u2022]\s+)")


@dataclass(frozen=True)
class ParsedEdit:
    success: bool
    new_text: str | None = None
    aborted: bool = False
    reason: str | None = None


def _clean_candidate(item: object) -> str | None:
    if not isinstance(item, str):
        return None
    text = clean_text(item)
    return text or None


def _strip_line(line: str) -> str:
    line = _LIST_PREFIX_RE.sub("", line.strip())
    if line.startswith(("[", "{")):
        # raw JSON that failed to decode is never a statement
        return ""
    line = line.strip().strip(",").strip()
    if len(line) >= 2 and line[0] == line[-1] and line[0] in "\"'":
        line = line[1:-1]
    return clean_text(line)


def _line_fallback(raw: str, limit: int, min_length: int) -> list[str]:
    lines = []
    for line in raw.splitlines():
        if len(line.strip()) <= min_length:
            continue
        stripped = _strip_line(line)
        if stripped:
            lines.append(stripped)
        if len(lines) >= limit:
            break
    return lines


def _load_array(raw: str) -> list | None:
    for span in json_span_candidates(raw, "["):
        try:
            data = json.loads(span)
        except json.JSONDecodeError:
            continue
        if isinstance(data, list):
            return data
    try:
        data = extract_json(raw, prefer="[")
    except ValueError:
        return None
    if isinstance(data, dict):
        for key in ("statements", "versions", "items"):
            if isinstance(data.get(key), list):
                return data[key]
        return None
    return data if isinstance(data, list) else None


def parse_statement_array(
    raw: str,
    expected_count: int,
    min_line_length: int = MIN_FALLBACK_LINE_LENGTH,
) -> list[list[str]]:
    """Parse ``[[v1, v2, ...], ...]`` into at most ``expected_count`` groups.

    A flat array is read as one version per statement. When no JSON array can
    be recovered, lines longer than ``min_line_length`` become single-version
    groups. Non-string and blank items are dropped.
    """
    if not raw or expected_count <= 0:
        return []
    data = _load_array(raw)
    if data is not None:
        groups: list[list[str]] = []
        if any(isinstance(item, list) for item in data):
            for item in data:
                if not isinstance(item, list):
                    continue
                versions = [v for v in (_clean_candidate(x) for x in item) if v]
                if versions:
                    groups.append(versions)
        else:
            groups = [[v] for v in (_clean_candidate(x) for x in data) if v]
        if groups:
            return groups[:expected_count]
        logger.debug("JSON array held no usable statements, using line fallback")
    return [[line] for line in _line_fallback(raw, expected_count, min_line_length)]


def parse_versions(
    raw: str,
    original: str,
    limit: int = 3,
    min_line_length: int = MIN_FALLBACK_LINE_LENGTH,
) -> list[str]:
    """Parse a flat array of alternative versions, falling back to ``[original]``."""
    versions: list[str] = []
    data = _load_array(raw) if raw else None
    if data is not None:
        for item in data:
            if isinstance(item, list):
                versions.extend(v for v in (_clean_candidate(x) for x in item) if v)
            else:
                cleaned = _clean_candidate(item)
                if cleaned:
                    versions.append(cleaned)
    if not versions and raw:
        versions = _line_fallback(raw, limit, min_line_length)
    if not versions:
        return [original]
    return versions[:limit]


def _first_decodable(candidates: list[str]) -> dict | list | None:
    for span in candidates:
        try:
            return json.loads(span)
        except json.JSONDecodeError:
            continue
    return None


def parse_edit_result(raw: str) -> ParsedEdit:
    """Read ``{success, newText}`` or ``{aborted, reason}`` from a completion."""
    candidates = json_span_candidates(raw or "", "{")
    if not candidates:
        return ParsedEdit(success=False, aborted=True, reason=UNPROCESSABLE_EDIT)
    data = _first_decodable(candidates)
    if data is None:
        logger.warning("Could not decode edit response: %s", raw[:200])
        return ParsedEdit(success=False, aborted=True, reason=UNPARSEABLE_EDIT)
    if not isinstance(data, dict):
        return ParsedEdit(success=False, aborted=True, reason=UNPROCESSABLE_EDIT)

    new_text = data.get("newText")
    if data.get("success") and isinstance(new_text, str) and new_text.strip():
        return ParsedEdit(success=True, new_text=new_text.strip())
    if data.get("aborted"):
        reason = data.get("reason")
        if not isinstance(reason, str) or not reason.strip():
            reason = DEFAULT_ABORT_REASON
        return ParsedEdit(success=False, aborted=True, reason=reason.strip())
    return ParsedEdit(success=False, aborted=True, reason=UNPROCESSABLE_EDIT)
