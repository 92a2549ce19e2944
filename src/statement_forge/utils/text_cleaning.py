"""Normalization of unicode punctuation and whitespace in generated text."""

from __future__ import annotations

import re

_UNICODE_REPLACEMENTS: list[tuple[re.Pattern[str], str]] = [
    (re.compile("[\u2018\u2019\u201a\u201b]"), "'"),  # single quotes
    (re.compile("[\u201c\u201d\u201e\u201f]"), '"'),  # double quotes
    (re.compile("[\u2013\u2014\u2015\u2212]"), "-"),  # dashes, minus
    (re.compile("[\u00a0\u2000-\u200b\u202f\u205f\u3000]"), " "),  # spaces
    (re.compile("[\u2022\u2023\u2043\u204c\u204d]"), "-"),  # bullets
    (re.compile("\u2026"), "..."),
    (re.compile("[\u00ad\ufeff\u200c\u200d]"), ""),  # soft hyphen, zero-width
]

_MULTI_SPACE_RE = re.compile(r" {2,}")
_WHITESPACE_RE = re.compile(r"\s+")


def clean_text(text: str) -> str:
    """Replace smart quotes, unicode dashes and exotic spaces with ASCII."""
    for pattern, replacement in _UNICODE_REPLACEMENTS:
        text = pattern.sub(replacement, text)
    return _MULTI_SPACE_RE.sub(" ", text).strip()


def collapse_spaces(text: str) -> str:
    """Collapse runs of spaces left behind by a splice, then trim."""
    return _MULTI_SPACE_RE.sub(" ", text).strip()


def normalize_whitespace(text: str) -> str:
    """Collapse every whitespace run to one space, for change comparison."""
    return _WHITESPACE_RE.sub(" ", text).strip()
