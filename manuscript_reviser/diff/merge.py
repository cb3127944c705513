"""
Merge Controller

Applies the reviewer's decisions to the two documents under comparison.
The row list is always re-derived from the documents after an operation;
documents are rebuilt from the full row list, never patched in place.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional
import logging

from manuscript_reviser.diff.alignment import align
from manuscript_reviser.diff.segmenter import join_paragraphs, segment, to_plain_text
from manuscript_reviser.ir import AlignmentStats, DiffRow, Document, RowType

logger = logging.getLogger(__name__)

LEFT_ROWS = (RowType.EQUAL, RowType.CHANGED, RowType.REMOVED)
RIGHT_ROWS = (RowType.EQUAL, RowType.CHANGED, RowType.ADDED)


@dataclass
class _Snapshot:
    label: str
    left_content: str
    left_dirty: bool
    right_content: str
    right_dirty: bool


class MergeController:
    """
    Row-level merge between an original (left) and a revision (right).

    Every operation records the previous contents so it can be reverted.
    """

    def __init__(self, left: Document, right: Document, history_limit: int = 100):
        self.left = left
        self.right = right
        self.history_limit = history_limit
        self.rows: List[DiffRow] = []
        self.stats = AlignmentStats()
        self.left_paragraphs: List[str] = []
        self.right_paragraphs: List[str] = []
        self._history: List[_Snapshot] = []
        self.refresh()

    def refresh(self) -> None:
        """Re-segment both documents and recompute the rows."""
        self.left_paragraphs = segment(to_plain_text(self.left.content))
        self.right_paragraphs = segment(to_plain_text(self.right.content))
        self.rows, self.stats = align(self.left_paragraphs, self.right_paragraphs)

    def _row(self, row_index: int) -> DiffRow:
        if not 0 <= row_index < len(self.rows):
            raise IndexError(f"Row {row_index} out of range (0..{len(self.rows) - 1})")
        return self.rows[row_index]

    def _record(self, label: str) -> None:
        self._history.append(_Snapshot(
            label=label,
            left_content=self.left.content,
            left_dirty=self.left.is_dirty,
            right_content=self.right.content,
            right_dirty=self.right.is_dirty,
        ))
        if len(self._history) > self.history_limit:
            self._history.pop(0)

    def _apply(self, label: str, doc: Document, paragraphs: List[str]) -> None:
        self._record(label)
        doc.content = join_paragraphs(paragraphs)
        doc.is_dirty = True
        logger.debug(f"{label}: {doc.display_name} now {len(paragraphs)} paragraphs")
        self.refresh()

    def accept_right(self, row_index: int) -> None:
        """Pull the revised paragraph of one row into the original."""
        self._row(row_index)
        paras = []
        for i, r in enumerate(self.rows):
            if i == row_index:
                if r.right_text is not None:
                    paras.append(r.right_text)
            elif r.type in LEFT_ROWS:
                paras.append(r.left_text)
        self._apply(f"accept_right({row_index})", self.left, paras)

    def accept_left(self, row_index: int) -> None:
        """Push the original paragraph of one row into the revision."""
        self._row(row_index)
        paras = []
        for i, r in enumerate(self.rows):
            if i == row_index:
                if r.left_text is not None:
                    paras.append(r.left_text)
            elif r.type in RIGHT_ROWS:
                paras.append(r.right_text)
        self._apply(f"accept_left({row_index})", self.right, paras)

    def accept_all(self) -> None:
        self._apply("accept_all", self.left, list(self.right_paragraphs))

    def reject_all(self) -> None:
        self._apply("reject_all", self.right, list(self.left_paragraphs))

    def edit_row(self, row_index: int, side: str, new_text: str) -> bool:
        """
        Replace one paragraph with text typed into a row; empty text deletes it.

        Typing into the empty side of an added or removed row inserts the
        paragraph at that row's position. Returns False when the text
        matches what is already stored.
        """
        if side not in ("left", "right"):
            raise ValueError(f"Unknown side: {side}")
        row = self._row(row_index)
        text = new_text.strip()
        stored = (row.left_text if side == "left" else row.right_text) or ""
        if text == stored:
            return False

        kept_types = LEFT_ROWS if side == "left" else RIGHT_ROWS
        paras = []
        for i, r in enumerate(self.rows):
            if i == row_index:
                if text:
                    paras.append(text)
            elif r.type in kept_types:
                paras.append(r.left_text if side == "left" else r.right_text)
        doc = self.left if side == "left" else self.right
        self._apply(f"edit_row({row_index}, {side})", doc, paras)
        return True

    @property
    def can_revert(self) -> bool:
        return bool(self._history)

    def revert(self) -> Optional[str]:
        """Undo the most recent operation; returns its label, or None if nothing to undo."""
        if not self._history:
            return None
        snap = self._history.pop()
        self.left.content, self.left.is_dirty = snap.left_content, snap.left_dirty
        self.right.content, self.right.is_dirty = snap.right_content, snap.right_dirty
        self.refresh()
        logger.debug(f"Reverted {snap.label}")
        return snap.label
