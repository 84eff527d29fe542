"""Extract insights and recommendations from free-text model output.

Grammar, applied line by line:

    marker  := [decoration] ("INSIGHTS" | "RECOMMENDATIONS" | "POSITIVE" ["REINFORCEMENT"]) [decoration] ":" rest
    bullet  := ("-" | "*" | "•" | "–" | "—" | digits ("." | ")")) text

Leading decoration may be heading hashes or numbering, with optional
``**`` or ``__`` emphasis. A single ``*`` always starts a bullet.

A marker switches the active section. Bullets add ``text`` to the active
section. Under POSITIVE every non-empty line is kept, bulleted or not, as is
any text following the marker's colon. Anything before the first marker is
ignored. Markers are matched case-insensitively.
"""

import re
from dataclasses import dataclass, field


INSIGHTS = "insights"
RECOMMENDATIONS = "recommendations"
POSITIVE = "positive"

_MARKER_RE = re.compile(
    r"^\s*(?:#+\s*)?(?:\*\*|__)?\s*(?:\d+[.)]\s*)?(?:\*\*|__)?\s*"
    r"(?P<name>INSIGHTS|RECOMMENDATIONS|POSITIVE(?:\s+REINFORCEMENT)?)"
    r"[\s*_]*:(?P<rest>.*)$",
    re.IGNORECASE,
)
_BULLET_RE = re.compile(r"^\s*(?:[-*•–—]|\d+[.)](?=\s))\s*(?P<text>.*)$")


@dataclass
class ParsedAdvice:
    insights: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    positive: list[str] = field(default_factory=list)


def _section_for(name: str) -> str:
    name = name.upper()
    if name.startswith("INSIGHTS"):
        return INSIGHTS
    if name.startswith("RECOMMENDATIONS"):
        return RECOMMENDATIONS
    return POSITIVE


def _strip_emphasis(text: str) -> str:
    return text.strip().strip("*_").strip()


def parse_advice(text: str) -> ParsedAdvice:
    """Split model output into its marked sections.

    Args:
        text: Raw model response.

    Returns:
        ParsedAdvice with the items found under each marker, in order.
    """
    parsed = ParsedAdvice()
    section = None

    for line in text.splitlines():
        if not line.strip():
            continue

        marker = _MARKER_RE.match(line)
        if marker:
            section = _section_for(marker.group("name"))
            rest = _strip_emphasis(marker.group("rest"))
            if rest and section == POSITIVE:
                parsed.positive.append(rest)
            continue

        if section is None:
            continue

        bullet = _BULLET_RE.match(line)
        if bullet:
            item = bullet.group("text").strip()
        elif section == POSITIVE:
            item = line.strip()
        else:
            continue

        if item:
            getattr(parsed, section).append(item)

    return parsed
