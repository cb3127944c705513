"""
Analysis records

Read-only view of the scoring data produced by the external narrative
analysis: per-document dimension scores, the ideal values at the same point
in the story, and any checklist items generated for the manuscript.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
import re

import yaml

# Dimensions closer than this to the ideal are not worth revising for
GAP_THRESHOLD = 0.5


@dataclass
class Adjustment:
    dimension_name: str
    direction: str        # increase|reduce
    amount: float
    actual: float
    ideal: float


@dataclass
class ChecklistItem:
    beat: str
    time: float           # percent through the manuscript
    priority: str
    diagnosis: Optional[str] = None
    recommendation: Optional[str] = None
    adjustments: List[Adjustment] = field(default_factory=list)


@dataclass
class GapDetail:
    dimension: str
    dimension_name: str
    actual: float
    ideal: float

    @property
    def gap(self) -> float:
        return self.actual - self.ideal

    @property
    def abs_gap(self) -> float:
        return abs(self.gap)

    @property
    def direction(self) -> str:
        return "reduce" if self.gap > 0 else "increase"


@dataclass
class AnalysisRecord:
    title: str
    text: str = ""
    time_percent: Optional[float] = None
    beat: str = ""
    scores: Dict[str, float] = field(default_factory=dict)
    ideal: Dict[str, float] = field(default_factory=dict)
    dimension_names: Dict[str, str] = field(default_factory=dict)
    checklist: List[ChecklistItem] = field(default_factory=list)


def _round_half_up(x: float) -> int:
    return int(x + 0.5)


def _normalize_beat(beat: str) -> str:
    return re.sub(r"[^a-z]", "", beat.lower())


def gap_details(record: AnalysisRecord, threshold: float = GAP_THRESHOLD) -> List[GapDetail]:
    """Dimensions whose score is at least ``threshold`` away from the ideal."""
    details = []
    for key, actual in record.scores.items():
        detail = GapDetail(
            dimension=key,
            dimension_name=record.dimension_names.get(key) or key.replace("_", " ").title(),
            actual=float(actual or 0.0),
            ideal=float(record.ideal.get(key, 0.0) or 0.0),
        )
        if detail.abs_gap >= threshold:
            details.append(detail)
    return details


@dataclass
class AnalysisSet:
    """All analysed documents of a manuscript plus its global checklist."""
    records: List[AnalysisRecord] = field(default_factory=list)
    revision_items: List[ChecklistItem] = field(default_factory=list)

    def time_percent(self, record: AnalysisRecord) -> float:
        if record.time_percent is not None:
            return record.time_percent
        total = len(self.records)
        if total == 0 or record not in self.records:
            return 50
        return _round_half_up((self.records.index(record) + 1) / total * 100)

    def items_for(self, record: AnalysisRecord) -> List[ChecklistItem]:
        """
        Checklist items that apply to one record.

        The record's own items always apply. Global items apply when they
        fall inside the record's span of the story (previous midpoint to
        next midpoint), sit exactly on its time, or name the same beat.
        """
        items = list(record.checklist)
        if not record.scores or record not in self.records:
            return items

        idx = self.records.index(record)
        total = len(self.records)
        time_pct = self.time_percent(record)
        start = 0 if idx == 0 else _round_half_up((idx + 0.5) / total * 100)
        end = 100 if idx == total - 1 else _round_half_up((idx + 1.5) / total * 100)
        beat_key = _normalize_beat(record.beat)

        for item in self.revision_items:
            if start <= item.time <= end or item.time == time_pct:
                items.append(item)
                continue
            item_beat = _normalize_beat(item.beat)
            if beat_key and item_beat and (beat_key in item_beat or item_beat in beat_key):
                items.append(item)
        return items


def _load_adjustment(a: Dict[str, Any]) -> Adjustment:
    return Adjustment(
        dimension_name=str(a.get("dimension_name") or a.get("dimension", "")),
        direction=str(a.get("direction", "increase")),
        amount=float(a.get("amount", 0.0)),
        actual=float(a.get("actual", 0.0)),
        ideal=float(a.get("ideal", 0.0)),
    )


def _load_item(i: Dict[str, Any]) -> ChecklistItem:
    return ChecklistItem(
        beat=str(i.get("beat", "")),
        time=float(i.get("time", 0.0)),
        priority=str(i.get("priority", "medium")),
        diagnosis=i.get("diagnosis"),
        recommendation=i.get("recommendation"),
        adjustments=[_load_adjustment(a) for a in i.get("adjustments", []) or []],
    )


def parse_analysis(data: Dict[str, Any]) -> AnalysisSet:
    records: List[AnalysisRecord] = []
    for r in data.get("chapters", []) or []:
        records.append(AnalysisRecord(
            title=str(r.get("title", "")),
            text=str(r.get("text", "") or ""),
            time_percent=r.get("time_percent"),
            beat=str(r.get("beat", "") or ""),
            scores={k: float(v) for k, v in (r.get("scores") or {}).items()},
            ideal={k: float(v) for k, v in (r.get("ideal") or {}).items()},
            dimension_names=dict(r.get("dimension_names") or data.get("dimension_names") or {}),
            checklist=[_load_item(i) for i in r.get("checklist", []) or []],
        ))
    items = [_load_item(i) for i in data.get("revision_items", []) or []]
    return AnalysisSet(records=records, revision_items=items)


def load_analysis(path: str) -> AnalysisSet:
    with open(path, "r", encoding="utf-8") as f:
        return parse_analysis(yaml.safe_load(f) or {})
