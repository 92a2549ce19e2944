"""Prompt assembly for statement generation, conversion and surgical edits.

All functions are pure: they only read the request and style snapshot and
return prompt text.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import date

from statement_forge.models.edit import EditRequest, SuggestionType
from statement_forge.models.generation import (
    Accomplishment,
    ConvertRequest,
    GenerationMode,
    GenerationRequest,
    StatementKind,
)
from statement_forge.models.style import ExampleStatement, RankVerbs, StyleConfiguration
from statement_forge.prompts.defaults import (
    AWARD_LEVEL_GUIDANCE,
    CATEGORY_HEADINGS,
    CHARACTER_BANDS,
    DEFAULT_ABBREVIATIONS_TEXT,
    DEFAULT_AWARD_PROMPT,
    DEFAULT_EPB_PROMPT,
    DEFAULT_MAX_CHARACTERS,
    DEFAULT_RANK_VERBS,
    EPB_MIN_CHARACTERS,
    FORBIDDEN_PUNCTUATION_BLOCK,
    HLR_MPA,
    MPA_HEADINGS,
    RANK_VERBS,
    REVISION_BANDS,
)

_PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")


def render_template(template: str, values: dict[str, str]) -> str:
    """Substitute ``{{name}}`` placeholders. Unknown placeholders are left as-is."""
    return _PLACEHOLDER_RE.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def rank_verbs_for(rank: str, style: StyleConfiguration | None = None) -> RankVerbs:
    if style and rank in style.rank_verb_progression:
        return style.rank_verb_progression[rank]
    return RANK_VERBS.get(rank, DEFAULT_RANK_VERBS)


def abbreviations_text(style: StyleConfiguration | None = None) -> str:
    if not style or not style.abbreviations:
        return DEFAULT_ABBREVIATIONS_TEXT
    return ", ".join(f'"{a.word}" → "{a.abbreviation}"' for a in style.abbreviations)


def select_examples(
    style: StyleConfiguration | None,
    category: str | None = None,
    limit: int = 6,
) -> list[ExampleStatement]:
    """Curated examples, winners first, optionally restricted to one category."""
    if not style or limit <= 0:
        return []
    examples = [
        e for e in style.example_statements if category is None or e.category == category
    ]
    # sorted() is stable, so curation order is kept within each group
    examples = sorted(examples, key=lambda e: not e.is_winner)
    return examples[:limit]


def build_system_prompt(
    style: StyleConfiguration | None,
    rank: str,
    kind: StatementKind = "award",
    *,
    max_examples: int = 6,
    max_characters: int = DEFAULT_MAX_CHARACTERS,
) -> str:
    """Fill the user's template (or the built-in one) for the given rank."""
    verbs = rank_verbs_for(rank, style)
    default_template = DEFAULT_AWARD_PROMPT if kind == "award" else DEFAULT_EPB_PROMPT
    template = (style.system_prompt if style and style.system_prompt else None) or default_template
    guidelines = style.style_guidelines if style else ""

    prompt = render_template(
        template,
        {
            "ratee_rank": rank,
            "primary_verbs": ", ".join(verbs.primary),
            "rank_verb_guidance": (
                f"Primary verbs: {', '.join(verbs.primary)}\n"
                f"Secondary verbs: {', '.join(verbs.secondary)}"
            ),
            "abbreviations_list": abbreviations_text(style),
            "style_guidelines": guidelines,
            "max_characters_per_statement": str(max_characters),
        },
    )

    if guidelines and "{{style_guidelines}}" not in template:
        prompt += f"\n\nADDITIONAL STYLE GUIDANCE:\n{guidelines}"

    examples = select_examples(style, limit=max_examples)
    if examples:
        lines = "\n".join(f"- {e.statement.lstrip('- ').strip()}" for e in examples)
        prompt += (
            "\n\nEXAMPLE STATEMENTS:\n"
            "The following are high-quality example statements that demonstrate the desired "
            "writing style. Match their tone and density, do not copy them.\n"
            f"{lines}"
        )
    return prompt


# --- user prompts ---


def _format_date(value: str | None) -> str:
    if not value:
        return ""
    try:
        return date.fromisoformat(value[:10]).strftime("%b %Y")
    except ValueError:
        return value


def _format_accomplishment(a: Accomplishment, label: str = "") -> str:
    lines = [
        f"{label}Action: {a.action_verb}",
        f"Details: {a.details}",
        f"Impact: {a.impact}",
    ]
    if a.metrics:
        lines.append(f"Metrics: {a.metrics}")
    when = _format_date(a.date)
    if when:
        lines.append(f"Date: {when}")
    indent = " " * len(label)
    return "\n".join([lines[0]] + [indent + line for line in lines[1:]])


def _nominee_block(request: GenerationRequest) -> str:
    rank_name = " ".join(p for p in (request.nominee_rank, request.nominee_name) if p)
    level = request.award_level
    lines = [f"NOMINEE: {rank_name or 'N/A'} | AFSC: {request.nominee_afsc or 'N/A'}"]
    lines.append(
        f"AWARD LEVEL: {level.upper()} | CATEGORY: {(request.award_category or 'N/A').upper()}"
    )
    if request.award_period:
        lines.append(f"AWARD PERIOD: {request.award_period}")
    lines.append("")
    lines.append("LEVEL-SPECIFIC GUIDANCE:")
    lines.append(AWARD_LEVEL_GUIDANCE.get(level, AWARD_LEVEL_GUIDANCE["squadron"]))
    return "\n".join(lines)


def sentence_count_block(sentences: int) -> str:
    words = {1: "ONE", 2: "TWO", 3: "THREE", 4: "FOUR", 5: "FIVE"}
    counted = " ".join(f"Sentence {i}." for i in range(1, sentences + 1))
    return (
        "**SENTENCE COUNT - THIS IS MANDATORY:**\n"
        f"Each statement MUST contain EXACTLY {sentences} sentences.\n"
        f"{words.get(sentences, str(sentences))} sentences only. Count them: {counted} STOP."
    )


def hard_constraints(
    sentences: int,
    statements: int,
    versions: int,
    band: tuple[int, int] | None = None,
) -> str:
    """Output rules shared by every generation mode.

    ``band`` overrides the sentence-count character range (EPB uses a fixed floor
    and the configured ceiling).
    """
    low, high = band or CHARACTER_BANDS.get(sentences, CHARACTER_BANDS[2])
    return f"""\
{sentence_count_block(sentences)}

CRITICAL REQUIREMENTS:
1. EVERY statement MUST start with "- " (dash space) followed by the text
2. **EXACTLY {sentences} SENTENCES**, count periods to verify before outputting
3. Each statement should be {low}-{high} characters
4. Write in narrative style (complete sentences, not bullet fragments)
5. Start with strong action verbs in active voice

{FORBIDDEN_PUNCTUATION_BLOCK}

Generate EXACTLY {statements} statement group(s), each with {versions} alternative versions.

Format as JSON array of arrays (EACH statement must start with "- "):
[
  ["- Version A of statement 1", "- Version B of statement 1", "- Version C of statement 1"],
  ...
]"""


def _heading(category: str) -> str:
    heading = CATEGORY_HEADINGS.get(category) or MPA_HEADINGS.get(category)
    return heading or category.replace("_", " ").title()


def build_combined_prompt(
    request: GenerationRequest,
    category: str,
    accomplishments: Sequence[Accomplishment],
) -> str:
    sources = "\n\n".join(
        _format_accomplishment(a, f"[{i}] ") for i, a in enumerate(accomplishments, start=1)
    )
    return f"""\
Generate {request.statements_per_entry} HIGH-DENSITY AF Form 1206 narrative statement(s) for the "{_heading(category)}" section.
For EACH statement, provide {request.versions_per_statement} different versions so the user can choose the best one.

IMPORTANT: COMBINE all the accomplishments below into cohesive, powerful statement(s). If there are similar metrics (like volunteer hours or training counts), SUM THEM UP and present the aggregated total.

{_nominee_block(request)}

SOURCE ACCOMPLISHMENTS TO COMBINE:
{sources}

COMBINATION INSTRUCTIONS:
- Identify similar activities and merge them (e.g., "volunteered 4 hrs" + "volunteered 7 hrs" = "volunteered 11 hrs")
- Sum up any numerical metrics that can be combined
- Create a cohesive narrative that covers all the key accomplishments
- Prioritize the most impactful elements if space is limited

{hard_constraints(request.sentences_per_statement, request.statements_per_entry, request.versions_per_statement)}"""


def build_entry_prompt(
    request: GenerationRequest,
    category: str,
    accomplishment: Accomplishment,
) -> str:
    return f"""\
Generate {request.statements_per_entry} HIGH-DENSITY AF Form 1206 narrative statement(s) for the "{_heading(category)}" section.
For EACH statement, provide {request.versions_per_statement} different versions so the user can choose the best one.

{_nominee_block(request)}

SOURCE ACCOMPLISHMENT:
{_format_accomplishment(accomplishment)}

Include the nominee's name or rank naturally when appropriate.

{hard_constraints(request.sentences_per_statement, request.statements_per_entry, request.versions_per_statement)}"""


def build_custom_context_prompt(request: GenerationRequest) -> str:
    return f"""\
Generate {request.statements_per_entry} HIGH-DENSITY narrative statement(s) from the free-text context below.
For EACH statement, provide {request.versions_per_statement} different versions so the user can choose the best one.

{_nominee_block(request)}

CONTEXT PROVIDED BY THE USER:
{(request.custom_context or '').strip()}

EXTRACTION INSTRUCTIONS:
- Identify the concrete accomplishments, actions and results described in the context
- Keep every number, percentage and dollar amount exactly as given
- Enhance the impact with reasonable mission context, never invent metrics
- If the context covers several accomplishments, merge related ones into one statement

{hard_constraints(request.sentences_per_statement, request.statements_per_entry, request.versions_per_statement)}"""


# --- EPB performance areas ---


def _ratee_line(request: GenerationRequest) -> str:
    return f"RATEE: {request.nominee_rank or 'N/A'} | AFSC: {request.nominee_afsc or 'N/A'}"


def _epb_constraints(request: GenerationRequest, max_characters: int) -> str:
    return hard_constraints(
        request.sentences_per_statement,
        request.statements_per_entry,
        request.versions_per_statement,
        band=(EPB_MIN_CHARACTERS, max_characters),
    )


def build_mpa_prompt(
    request: GenerationRequest,
    mpa: str,
    accomplishments: Sequence[Accomplishment],
    max_characters: int = DEFAULT_MAX_CHARACTERS,
    max_examples: int = 6,
) -> str:
    """EPB statements for one Major Performance Area, using only its entries."""
    sources = "\n\n".join(
        _format_accomplishment(a, f"[{i}] ") for i, a in enumerate(accomplishments, start=1)
    )
    examples = select_examples(request.style, mpa, max_examples)
    example_block = ""
    if examples:
        listed = "\n".join(f"{i}. {e.statement}" for i, e in enumerate(examples, start=1))
        example_block = f"\nEXAMPLE STATEMENTS (match this density and style):\n{listed}\n"
    return f"""\
Generate {request.statements_per_entry} HIGH-DENSITY EPB narrative statement(s) for the "{_heading(mpa)}" Major Performance Area.
For EACH statement, provide {request.versions_per_statement} different versions so the user can choose the best one.

{_ratee_line(request)}

SOURCE ACCOMPLISHMENTS:
{sources}
{example_block}
EXPANSION INSTRUCTIONS:
- Infer standard military outcomes (readiness, compliance, mission success)
- Add organizational context (flight, squadron, wing impact)
- Connect actions to larger mission objectives, chaining impacts: "achieved X, enabling Y, which drove Z"
- STRUCTURE: [Action] + [Accomplishment with context] + [Immediate result] + [Mission impact]

{_epb_constraints(request, max_characters)}"""


def build_hlr_prompt(
    request: GenerationRequest,
    accomplishments: Sequence[Accomplishment],
    max_characters: int = DEFAULT_MAX_CHARACTERS,
) -> str:
    """Higher Level Reviewer assessment synthesized from every entry of the cycle."""
    sources = "\n".join(
        f"[{i}] [{a.mpa}] {a.action_verb}: {a.details}\n"
        f"    Impact: {a.impact}" + (f" | Metrics: {a.metrics}" if a.metrics else "")
        for i, a in enumerate(accomplishments, start=1)
    )
    return f"""\
Generate {request.statements_per_entry} HIGH-DENSITY Higher Level Reviewer (HLR) Assessment statement(s) from the Commander's perspective.
For EACH statement, provide {request.versions_per_statement} different versions so the user can choose the best one.

{_ratee_line(request)}

ALL ACCOMPLISHMENTS FOR THIS CYCLE:
{sources}

HLR ASSESSMENT REQUIREMENTS:
- Write as the senior leader giving a strategic endorsement
- Synthesize OVERALL performance across all performance areas into one narrative
- Connect individual achievements to wing, MAJCOM and AF-level mission success
- Close with a promotion recommendation ("ready for immediate promotion", "future senior leader")
- STRUCTURE: [Strategic assessment] + [Key accomplishment synthesis] + [Organizational impact] + [Promotion recommendation]

{_epb_constraints(request, max_characters)}"""


def revision_band(intensity: int) -> tuple[str, str]:
    """Map a 0..100 intensity to (label, instructions)."""
    for upper, label, instructions in REVISION_BANDS:
        if intensity <= upper:
            return label, instructions
    _, label, instructions = REVISION_BANDS[-1]
    return label, instructions


def build_revision_prompt(request: GenerationRequest) -> str:
    label, instructions = revision_band(request.revision_intensity)
    return f"""\
Revise the existing statement below. Provide {request.versions_per_statement} different revised versions so the user can choose the best one.

{_nominee_block(request)}

EXISTING STATEMENT:
"{(request.existing_statement or '').strip()}"

**REVISION LEVEL: {label} ({request.revision_intensity}%)**
{instructions}

{hard_constraints(request.sentences_per_statement, 1, request.versions_per_statement)}"""


def build_user_prompt(
    request: GenerationRequest,
    category: str | None = None,
    accomplishments: Sequence[Accomplishment] = (),
    *,
    max_characters: int = DEFAULT_MAX_CHARACTERS,
    max_examples: int = 6,
) -> str:
    """Pick the user prompt for the request's mode and kind.

    In accomplishments mode, ``accomplishments`` is the category's entries
    when combining, or the single entry otherwise. EPB requests always pass
    the whole performance area (every entry for the HLR assessment).
    """
    if request.mode is GenerationMode.CUSTOM_CONTEXT:
        return build_custom_context_prompt(request)
    if request.mode is GenerationMode.REVISION:
        return build_revision_prompt(request)
    if not accomplishments:
        raise ValueError("accomplishments mode needs at least one accomplishment")
    category = category or accomplishments[0].mpa
    if request.kind == "epb":
        if category == HLR_MPA:
            return build_hlr_prompt(request, accomplishments, max_characters)
        return build_mpa_prompt(request, category, accomplishments, max_characters, max_examples)
    if request.combine_entries:
        return build_combined_prompt(request, category, accomplishments)
    return build_entry_prompt(request, category, accomplishments[0])


# --- conversion and surgical edit ---


def build_conversion_prompt(request: ConvertRequest, versions: int = 3) -> str:
    nominee = ""
    if request.nominee_rank and request.nominee_name:
        nominee = f"\nNOMINEE: {request.nominee_rank} {request.nominee_name}\n"
    return f"""\
Convert the following AF Form 1206 statement to EXACTLY {request.target_sentences} sentences.

ORIGINAL STATEMENT:
"{request.statement}"
{nominee}
Generate {versions} different {request.target_sentences}-sentence versions. Each version MUST:
1. START with "- " (dash space), this is REQUIRED
2. Preserve all key accomplishments and metrics
3. Maintain high impact and density
4. Use the current narrative-style format

Output as a JSON array of {versions} strings (each starting with "- "):
["- Version 1 text here", "- Version 2 text here", "- Version 3 text here"]"""


def build_surgical_prompt(edit: EditRequest) -> str:
    if edit.suggestion_type is SuggestionType.DELETE:
        action = f'DELETE: "{edit.highlighted_text}"'
        step = "Remove it"
    else:
        action = f'REPLACE: "{edit.highlighted_text}" → "{edit.replacement}"'
        step = f'Replace it with "{edit.replacement}"'
    return f"""\
DOCUMENT:
{edit.current_text}

ACTION: {action}

INSTRUCTIONS:
1. Find the text "{edit.highlighted_text}" in the document
2. {step}
3. Return the entire document with this ONE change
4. If you cannot find this text (or something very similar), ABORT

The user may have edited the document, if the exact phrase is gone, ABORT.
Do NOT wrap the result in quotes or add any formatting.

Return valid JSON:"""
