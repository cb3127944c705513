from __future__ import annotations
from typing import Any, Dict, List, Sequence
import json

from manuscript_reviser.ir import AlignmentStats, DiffRow, PipelineStatus, RowType, WordSpan


def write_json(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)


def write_txt(path: str, text: str) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(text)


def render_status_txt(status: PipelineStatus) -> str:
    lines: List[str] = []
    lines.append(f"Revision Run: {status.status.value}")
    lines.append("")
    if status.total_files:
        shown = min(status.current_index + 1, status.total_files)
        lines.append(f"- Progress: {shown}/{status.total_files}")
    lines.append(f"- Current:  {status.current_file_name or '[none]'}")
    lines.append(f"- Advance:  {status.advance_mode.value}")
    if status.error_message:
        lines.append(f"- Error:    {status.error_message}")
    if status.completed_paths:
        lines.append("")
        lines.append("Revisions written")
        for p in status.completed_paths:
            lines.append(f"- {p}")
    return "\n".join(lines)


def _mark(spans: Sequence[WordSpan], kind: str) -> str:
    """Inline markdown: changed words in bold."""
    out = []
    for s in spans:
        core = s.text.strip()
        if s.kind == kind and core:
            start = s.text.index(core)
            out.append(f"{s.text[:start]}**{core}**{s.text[start + len(core):]}")
        else:
            out.append(s.text)
    return "".join(out)


def render_diff_report(rows: Sequence[DiffRow], stats: AlignmentStats,
                       left_name: str = "Original", right_name: str = "Revision") -> str:
    """
    Markdown review report for one comparison.

    A summary table followed by one section per non-equal row, with the
    changed words in bold.
    """
    lines: List[str] = []

    lines.append(f"# Revision Review: {left_name} vs {right_name}")
    lines.append("")

    counts = {t: 0 for t in RowType}
    for r in rows:
        counts[r.type] += 1

    lines.append("## Summary")
    lines.append("")
    lines.append("| Metric | Value |")
    lines.append("|--------|-------|")
    lines.append(f"| Rows | {len(rows)} |")
    lines.append(f"| Unchanged | {counts[RowType.EQUAL]} |")
    lines.append(f"| Changed | {counts[RowType.CHANGED]} |")
    lines.append(f"| Added | {counts[RowType.ADDED]} |")
    lines.append(f"| Removed | {counts[RowType.REMOVED]} |")
    lines.append(f"| Characters added | {stats.added_chars:,} |")
    lines.append(f"| Characters removed | {stats.removed_chars:,} |")
    lines.append("")

    if not stats.change_count:
        lines.append("No differences.")
        return "\n".join(lines)

    lines.append("---")
    lines.append("")
    lines.append("## Changes")
    lines.append("")

    for idx, r in enumerate(rows):
        if r.type is RowType.EQUAL:
            continue
        lines.append(f"### Row {idx + 1} ({r.type.value})")
        lines.append("")
        if r.type is RowType.CHANGED:
            lines.append(f"**{left_name}:**")
            lines.append(f"> {_mark(r.left_spans, 'removed')}")
            lines.append("")
            lines.append(f"**{right_name}:**")
            lines.append(f"> {_mark(r.right_spans, 'added')}")
        elif r.type is RowType.REMOVED:
            lines.append(f"**Only in {left_name}:**")
            lines.append(f"> {r.left_text}")
        else:
            lines.append(f"**Only in {right_name}:**")
            lines.append(f"> {r.right_text}")
        lines.append("")
        lines.append("---")
        lines.append("")

    return "\n".join(lines)
