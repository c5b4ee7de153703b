"""Turn free-form model output into the five summary sections.

Labels are looked up in a fixed order, each one only after the previous label
that was found, and a section runs until the next found label. A label is
recognised at the start of a line, optionally behind markdown decoration
(``#``, ``*``, ``_``, ``>``) or a list marker (``-``, ``•``, ``1.``, ``2)``).
It must be followed by a colon, the end of the line, or closing ``**``/``__``
emphasis, so "**Overview** text" keeps its same-line text.

Known fragility: a line inside a section body that starts with a later label
(e.g. "Blockers: see above") ends that section early.
"""

import logging
import re

from chat_digest.schemas.summary import SummaryOutput

logger = logging.getLogger(__name__)

# (field, label regex); spaces match any run of blanks
SECTION_LABELS: list[tuple[str, str]] = [
    ("overview", "Overview"),
    ("decisions", "(?:Key )?Decisions"),
    ("action_items", "Action Items"),
    ("blockers", "Blockers"),
    ("resources", "Resources"),
]


# Markdown decoration and list markers, in any combination ("- **", "1. ", "## ")
_LABEL_PREFIX = r"^[ \t]*(?:(?:[#>*_•-]|\d+[.)])[ \t]*)*"
# "Label:", "Label**:", "Label** text", or a label alone on its line
_LABEL_SUFFIX = r"(?:[ \t]*:[ \t*_]*|[*_]+[ \t]*:?[ \t*_]*|[ \t*_]*$)"


def _label_pattern(label: str) -> re.Pattern[str]:
    words = label.replace(" ", r"[ \t]+")
    return re.compile(_LABEL_PREFIX + words + _LABEL_SUFFIX, re.IGNORECASE | re.MULTILINE)


_PATTERNS = [(field, _label_pattern(label)) for field, label in SECTION_LABELS]


def parse_summary_response(raw_text: str | None) -> SummaryOutput:
    text = raw_text or ""
    # (field, label start, content start) for every label found, in order
    found: list[tuple[str, int, int]] = []
    cursor = 0
    for field, pattern in _PATTERNS:
        match = pattern.search(text, cursor)
        if match is None:
            continue
        found.append((field, match.start(), match.end()))
        cursor = match.end()

    sections: dict[str, str] = {}
    for index, (field, _, content_start) in enumerate(found):
        content_end = found[index + 1][1] if index + 1 < len(found) else len(text)
        sections[field] = text[content_start:content_end].strip()

    missing = [field for field, _ in SECTION_LABELS if field not in sections]
    if missing:
        logger.debug(f"Summary response missing sections: {', '.join(missing)}")
    return SummaryOutput(**sections)
