"""
Revision guidance

Turns an analysis record into the brief sent to the model, and finds the
record that belongs to a document.
"""
from __future__ import annotations
from typing import List, Optional, Sequence
import logging
import re

from manuscript_reviser.analysis import AnalysisRecord, ChecklistItem, GapDetail, gap_details
from manuscript_reviser.ir import GuidanceKind, RevisionGuidance
from manuscript_reviser.revision.prompts import GENERIC_BRIEF

logger = logging.getLogger(__name__)

_NUMBERED_NAME = re.compile(r"^(\d+)[_-](.+)\.md$", re.IGNORECASE)


def _render_checklist(items: Sequence[ChecklistItem]) -> str:
    if not items:
        return ""
    lines = ["## Revision Checklist", ""]
    for item in items:
        lines.append(f"### {item.beat} ({item.time:g}%) — Priority: {item.priority}")
        if item.diagnosis:
            lines.append(f"Diagnosis: {item.diagnosis}")
        if item.recommendation:
            lines.append(f"Recommendation: {item.recommendation}")
        for adj in item.adjustments:
            verb = "Reduce" if adj.direction == "reduce" else "Increase"
            lines.append(
                f"- {verb} {adj.dimension_name} by ~{adj.amount:.1f} "
                f"(currently {adj.actual:.1f}, target ~{adj.ideal:.1f})"
            )
        lines.append("")
    return "\n".join(lines) + "\n"


def _render_gaps(details: Sequence[GapDetail]) -> str:
    if not details:
        return ""
    lines = [
        "## Dimension Gap Analysis",
        "",
        "| Dimension | Current | Ideal | Gap | Direction |",
        "|-----------|---------|-------|-----|-----------|",
    ]
    for g in details:
        lines.append(
            f"| {g.dimension_name} | {g.actual:.1f} | {g.ideal:.1f} | {g.gap:+.1f} | {g.direction} |"
        )
    lines.append("")
    return "\n".join(lines) + "\n"


def build_guidance(
    record: Optional[AnalysisRecord],
    kind: GuidanceKind,
    custom_text: str = "",
    items: Optional[Sequence[ChecklistItem]] = None,
) -> RevisionGuidance:
    """
    Render the revision brief for one document.

    Args:
        record: Matched analysis record, or None when nothing matched
        kind: Which guidance material to render
        custom_text: Free-text instructions (CUSTOM only)
        items: Checklist items for the record; defaults to the record's own

    Returns:
        RevisionGuidance whose brief is never empty
    """
    if items is None:
        items = record.checklist if record else []
    details: List[GapDetail] = gap_details(record) if record else []

    brief = ""
    if kind in (GuidanceKind.CHECKLIST, GuidanceKind.BOTH):
        brief += _render_checklist(items)
    if kind in (GuidanceKind.GAPS, GuidanceKind.BOTH):
        brief += _render_gaps(details)
    if kind is GuidanceKind.CUSTOM and custom_text.strip():
        brief += "## Revision Instructions\n\n" + custom_text + "\n\n"

    if not brief.strip():
        logger.info(f"No {kind.value} guidance available, using generic brief")
        brief = GENERIC_BRIEF

    return RevisionGuidance(kind=kind, rendered_brief=brief)


def match_record(content: str, display_name: str,
                 records: Sequence[AnalysisRecord]) -> Optional[AnalysisRecord]:
    """
    Find the analysis record for a document.

    Exact trimmed-text match wins; otherwise a ``NN-Title.md`` name resolves
    to record NN (1-based), falling back to a title substring match.
    """
    if not records:
        return None

    trimmed = content.strip()
    for record in records:
        if record.text and record.text.strip() == trimmed:
            return record

    m = _NUMBERED_NAME.match(display_name)
    if not m:
        return None

    index = int(m.group(1)) - 1
    if 0 <= index < len(records):
        return records[index]

    file_title = re.sub(r"[-_]", " ", m.group(2)).lower()
    for record in records:
        title = (record.title or "").lower()
        if title and (file_title in title or title in file_title):
            return record
    return None
