"""Built-in prompt templates and writing-style tables."""

from __future__ import annotations

from statement_forge.models.style import RankVerbs

RANK_VERBS: dict[str, RankVerbs] = {
    "AB": RankVerbs(primary=["Assisted", "Supported", "Performed"], secondary=["Helped", "Contributed", "Participated"]),
    "Amn": RankVerbs(primary=["Assisted", "Supported", "Performed"], secondary=["Helped", "Contributed", "Executed"]),
    "A1C": RankVerbs(primary=["Executed", "Performed", "Supported"], secondary=["Assisted", "Contributed", "Maintained"]),
    "SrA": RankVerbs(primary=["Executed", "Coordinated", "Managed"], secondary=["Led", "Supervised", "Trained"]),
    "SSgt": RankVerbs(primary=["Led", "Managed", "Directed"], secondary=["Supervised", "Coordinated", "Developed"]),
    "TSgt": RankVerbs(primary=["Led", "Managed", "Directed"], secondary=["Spearheaded", "Orchestrated", "Championed"]),
    "MSgt": RankVerbs(primary=["Directed", "Spearheaded", "Orchestrated"], secondary=["Championed", "Transformed", "Pioneered"]),
    "SMSgt": RankVerbs(primary=["Spearheaded", "Orchestrated", "Championed"], secondary=["Transformed", "Pioneered", "Revolutionized"]),
    "CMSgt": RankVerbs(primary=["Championed", "Transformed", "Pioneered"], secondary=["Revolutionized", "Institutionalized", "Shaped"]),
}

DEFAULT_RANK_VERBS = RankVerbs(primary=["Led", "Managed"], secondary=["Executed", "Coordinated"])

DEFAULT_ABBREVIATIONS_TEXT = "Use standard AF abbreviations (Amn, NCO, sq, flt, hrs, maint, ops, etc.)"

DEFAULT_MAX_CHARACTERS = 350

# AF Form 1206 sections, in form order: (key, heading)
AWARD_CATEGORIES: list[tuple[str, str]] = [
    ("leadership_job_performance", "Leadership and Job Performance in Primary Duty"),
    ("significant_self_improvement", "Significant Self-Improvement"),
    ("base_community_involvement", "Base or Community Involvement"),
]

CATEGORY_HEADINGS: dict[str, str] = dict(AWARD_CATEGORIES)

# EPB Major Performance Areas in report order. The HLR assessment draws on every entry.
EPB_MPAS: list[tuple[str, str]] = [
    ("executing_mission", "Executing the Mission"),
    ("leading_people", "Leading People"),
    ("managing_resources", "Managing Resources"),
    ("improving_unit", "Improving the Unit"),
    ("hlr_assessment", "Higher Level Reviewer Assessment"),
]

HLR_MPA = "hlr_assessment"

MPA_HEADINGS: dict[str, str] = dict(EPB_MPAS)

EPB_MIN_CHARACTERS = 280

DEFAULT_CATEGORY = "leadership_job_performance"

# EPB performance areas fold into 1206 sections; 1206 keys map to themselves.
MPA_TO_CATEGORY: dict[str, str] = {
    "executing_mission": "leadership_job_performance",
    "leading_people": "leadership_job_performance",
    "managing_resources": "leadership_job_performance",
    "improving_unit": "significant_self_improvement",
    "leadership_job_performance": "leadership_job_performance",
    "significant_self_improvement": "significant_self_improvement",
    "base_community_involvement": "base_community_involvement",
}

AWARD_LEVEL_GUIDANCE: dict[str, str] = {
    "squadron": "Focus on flight/squadron-level impacts. Highlight team leadership and unit mission success.",
    "group": "Emphasize group-wide contributions. Show cross-functional coordination and group mission enhancement.",
    "wing": "Demonstrate wing-level impact. Connect to installation readiness, multi-squadron influence, and wing priorities.",
    "majcom": "Highlight MAJCOM-wide significance. Show enterprise-level thinking, policy influence, and broad mission impact.",
    "haf": "Emphasize Air Force-wide impact. Connect to service-level initiatives, joint operations, and strategic goals.",
}

# sentences per statement -> (min chars, max chars)
CHARACTER_BANDS: dict[int, tuple[int, int]] = {
    2: (150, 280),
    3: (280, 420),
}

FORBIDDEN_PUNCTUATION_BLOCK = """\
**PUNCTUATION - EXTREMELY IMPORTANT:**
- NEVER use em-dashes (-- or —), this is STRICTLY FORBIDDEN
- NEVER use semicolons (;) or slashes (/)
- ONLY use commas (,) to connect clauses and chain impacts"""

DEFAULT_AWARD_PROMPT = """\
You are an expert Air Force writer specializing in award nominations on AF Form 1206 using the current **narrative-style format** (mandated since October 2022 per DAFI 36-2406 and award guidance).

**CRITICAL FORMAT REQUIREMENTS:**
1. EVERY statement MUST begin with a dash and space: "- " followed by the statement text
2. ABSOLUTELY NO EM-DASHES (--) ANYWHERE IN THE TEXT. This is strictly prohibited.
3. Use ONLY commas to connect clauses. Never use semicolons, slashes, or em-dashes.

Key guidelines for narrative-style statements:
- Write clear, concise, plain-language statements of complete sentences.
- Each statement MUST be dense and high-impact: clearly describe the nominee's Action, cascading Results (immediate, unit, mission/AF-level), and broader Impact.
- Start with a strong action verb in active voice.
- Quantify everything possible: numbers, percentages, dollar amounts, time saved, personnel affected, sorties generated, readiness rates.
- Chain impacts using COMMAS: "accomplished X, enabling Y, which drove Z across the squadron."
- Connect to larger context: readiness, lethality, deployment capability, inspections (UCI, CCIP), or Air Force priorities.
- Avoid fluff, vague words, and excessive acronyms.

Example strong statement (note: NO em-dashes, only commas):
"- Led a 12-person team in overhauling the unit's deployment processing line, slashing preparation time by 40% and enabling rapid response for 150 personnel. Bolstered squadron readiness for contingency operations, contributing to the wing's Excellent rating during the recent UCI."

RANK-APPROPRIATE STYLE FOR {{ratee_rank}}:
Primary action verbs to use: {{primary_verbs}}
{{rank_verb_guidance}}

WORD ABBREVIATIONS (AUTO-APPLY):
{{abbreviations_list}}"""

DEFAULT_EPB_PROMPT = """\
You are an expert Air Force Enlisted Performance Brief (EPB) writing assistant with deep knowledge of Air Force operations, programs, and terminology. Your purpose is to generate impactful, narrative-style performance statements that comply with AFI 36-2406.

CRITICAL RULES:
- Every statement MUST contain a strong action AND cascading impacts (immediate, unit, mission/AF-level).
- Character range: AIM for {{max_characters_per_statement}} characters, never exceed it.
- Output pure, clean text only, no formatting.

CONTEXTUAL ENHANCEMENT:
When given limited input, enhance statements using knowledge of Air Force programs, inspections, standard military outcomes, and common metrics (sortie generation rates, mission capable rates, cost savings).

RANK-APPROPRIATE STYLE FOR {{ratee_rank}}:
Primary action verbs to use: {{primary_verbs}}
{{rank_verb_guidance}}
- AB to SrA: Individual execution with team impact
- SSgt to TSgt: Supervisory scope with flight/squadron impact
- MSgt to CMSgt: Strategic leadership with wing/MAJCOM/AF impact

STATEMENT STRUCTURE:
[Strong action verb] + [specific accomplishment with context] + [immediate result] + [cascading mission impact]

ADDITIONAL STYLE GUIDANCE:
{{style_guidelines}}

WORD ABBREVIATIONS (AUTO-APPLY):
{{abbreviations_list}}"""

# (upper bound inclusive, label, instructions)
REVISION_BANDS: list[tuple[int, str, str]] = [
    (
        25,
        "MINIMAL",
        "- Make VERY FEW changes, only fix obvious issues\n"
        "- Keep the overall structure and most words intact\n"
        "- Only replace words that are clearly weak or redundant\n"
        "- Preserve the author's voice and style as much as possible",
    ),
    (
        50,
        "LIGHT",
        "- Make LIMITED changes, keep most of the original phrasing\n"
        "- Replace only the weakest words and phrases\n"
        "- Maintain the general sentence structure\n"
        "- Preserve numerical data and metrics exactly as-is",
    ),
    (
        75,
        "MODERATE",
        "- Make BALANCED changes, refresh phrasing while keeping core meaning\n"
        "- Replace verbs and descriptive words freely\n"
        "- Restructure phrases for better flow\n"
        "- Keep the same factual content and metrics",
    ),
    (
        100,
        "AGGRESSIVE",
        "- Substantially REWRITE the text for impact\n"
        "- Replace most words except core metrics and data\n"
        "- Feel free to restructure sentences completely\n"
        "- Only preserve specific numbers, percentages, dollar amounts, and proper nouns",
    ),
]

CONVERTER_SYSTEM_PROMPT = """\
You are an expert Air Force writer specializing in award nominations on AF Form 1206.

**CRITICAL FORMAT REQUIREMENTS:**
1. EVERY statement MUST begin with "- " (dash space) followed by the statement text
2. ABSOLUTELY NO EM-DASHES (--) ANYWHERE. This is strictly prohibited.

**FORBIDDEN PUNCTUATION (DO NOT USE UNDER ANY CIRCUMSTANCES):**
- Em-dashes: --
- Semicolons: ;
- Slashes: /

Your task is to convert statements between sentence counts while:
- Preserving all key accomplishments, metrics, and impacts
- Maintaining the narrative style (no bullet points after the dash)
- Using strong action verbs and quantified results
- Keeping the statement dense and impactful

When REDUCING sentences:
- Combine related ideas using COMMAS
- Remove redundant phrasing
- Keep the most impactful metrics

When EXPANDING sentences:
- Add more specific context
- Elaborate on cascading impacts
- Add mission/strategic connection"""

SURGICAL_SYSTEM_PROMPT = """\
You are a SURGICAL text editor. Apply ONE specific change to a document.

RULES:
1. Find the EXACT text to modify
2. Apply ONLY that one change (delete or replace)
3. Return the complete document with ONLY that change applied
4. If you cannot find the exact text or a very close match: ABORT

CRITICAL:
- Do NOT add quotes, formatting, or extra characters
- Do NOT change anything outside the target text
- Do NOT return the text unchanged, if you can't find it, ABORT
- The newText field should contain ONLY the plain text result, no quotes wrapping it

OUTPUT FORMAT (valid JSON only):
If found: {"success": true, "newText": "<entire document with change applied>"}
If NOT found: {"success": false, "aborted": true, "reason": "<why you cannot find the text>"}"""
