"""
Paragraph Alignment

Aligns an original and a revised paragraph list for side-by-side review.

Paragraphs are matched with an LCS over a fuzzy predicate (identical, or
sharing enough words), so a lightly edited paragraph lines up with its
original as one "changed" row instead of a removal plus an addition.
Changed rows carry word-level spans computed with diff-match-patch.
"""
from __future__ import annotations
from typing import Callable, List, Sequence, Tuple
import logging
import re

from diff_match_patch import diff_match_patch

from manuscript_reviser.diff.segmenter import segment, to_plain_text
from manuscript_reviser.ir import AlignmentStats, DiffRow, RowType, WordSpan

logger = logging.getLogger(__name__)

# Share of words two paragraphs must have in common to be treated as one
OVERLAP_THRESHOLD = 0.4

DIFF_DELETE = -1
DIFF_INSERT = 1
DIFF_EQUAL = 0

Opcode = Tuple[str, int, int, int, int]


def word_overlap(a: str, b: str) -> float:
    """Common lowercase words divided by the size of the larger word set."""
    if a == b:
        return 1.0
    words_a = set(a.lower().split())
    words_b = set(b.lower().split())
    if not words_a or not words_b:
        return 0.0
    return len(words_a & words_b) / max(len(words_a), len(words_b))


def paragraphs_match(a: str, b: str) -> bool:
    return a == b or word_overlap(a, b) > OVERLAP_THRESHOLD


def align_opcodes(
    left: Sequence[str],
    right: Sequence[str],
    match: Callable[[str, str], bool] = paragraphs_match,
) -> List[Opcode]:
    """
    LCS alignment under ``match``, as difflib-style opcodes.

    Tags are ``equal``, ``delete`` and ``insert``. Between two equal runs
    the deletions always come first, followed by the insertions.
    """
    n, m = len(left), len(right)
    matches = [[match(left[i], right[j]) for j in range(m)] for i in range(n)]

    # lcs[i][j] = LCS length of left[i:] and right[j:]
    lcs = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        for j in range(m - 1, -1, -1):
            if matches[i][j]:
                lcs[i][j] = lcs[i + 1][j + 1] + 1
            else:
                lcs[i][j] = max(lcs[i + 1][j], lcs[i][j + 1])

    opcodes: List[Opcode] = []
    i = j = 0
    gap_i, gap_j = 0, 0

    def flush_gap():
        if i > gap_i:
            opcodes.append(("delete", gap_i, i, gap_j, gap_j))
        if j > gap_j:
            opcodes.append(("insert", i, i, gap_j, j))

    while i < n or j < m:
        if i < n and j < m and matches[i][j] and lcs[i][j] == lcs[i + 1][j + 1] + 1:
            flush_gap()
            if opcodes and opcodes[-1][0] == "equal":
                tag, i1, _, j1, _ = opcodes.pop()
                opcodes.append(("equal", i1, i + 1, j1, j + 1))
            else:
                opcodes.append(("equal", i, i + 1, j, j + 1))
            i += 1
            j += 1
            gap_i, gap_j = i, j
        elif j >= m or (i < n and lcs[i + 1][j] >= lcs[i][j + 1]):
            i += 1
        else:
            j += 1
    flush_gap()
    return opcodes


_dmp = diff_match_patch()
_dmp.Diff_Timeout = 2.0


def word_diff(old_text: str, new_text: str) -> List[Tuple[int, str]]:
    """
    Word-level diff using diff-match-patch with token encoding.

    Tokens are ``\\S+`` words and ``\\s+`` whitespace runs; each distinct token
    is encoded as one character, diffed, and decoded back.
    Returns ``[(op, text)]`` with op -1 (removed), 0 (equal), 1 (added).
    """
    old_tokens = re.findall(r"\S+|\s+", old_text) if old_text else []
    new_tokens = re.findall(r"\S+|\s+", new_text) if new_text else []
    if not old_tokens and not new_tokens:
        return []

    token_to_char = {}
    char_to_token = {}

    def encode(tokens):
        chars = []
        for token in tokens:
            if token not in token_to_char:
                ch = chr(0x100 + len(token_to_char))
                token_to_char[token] = ch
                char_to_token[ch] = token
            chars.append(token_to_char[token])
        return "".join(chars)

    diffs = _dmp.diff_main(encode(old_tokens), encode(new_tokens), False)
    _dmp.diff_cleanupSemantic(diffs)

    result = []
    for op, encoded in diffs:
        decoded = "".join(char_to_token[c] for c in encoded)
        if decoded:
            result.append((op, decoded))
    return result


def _changed_row(left_text: str, right_text: str, stats: AlignmentStats) -> DiffRow:
    row = DiffRow(type=RowType.CHANGED, left_text=left_text, right_text=right_text)
    for op, text in word_diff(left_text, right_text):
        if op == DIFF_INSERT:
            row.right_spans.append(WordSpan("added", text))
            stats.added_chars += len(text)
        elif op == DIFF_DELETE:
            row.left_spans.append(WordSpan("removed", text))
            stats.removed_chars += len(text)
        else:
            row.left_spans.append(WordSpan("equal", text))
            row.right_spans.append(WordSpan("equal", text))
    stats.change_count += 1
    return row


def _removed_row(text: str, stats: AlignmentStats) -> DiffRow:
    stats.change_count += 1
    stats.removed_chars += len(text)
    return DiffRow(type=RowType.REMOVED, left_text=text)


def _added_row(text: str, stats: AlignmentStats) -> DiffRow:
    stats.change_count += 1
    stats.added_chars += len(text)
    return DiffRow(type=RowType.ADDED, right_text=text)


def _build_rows(left: Sequence[str], right: Sequence[str]) -> Tuple[List[DiffRow], AlignmentStats]:
    rows: List[DiffRow] = []
    stats = AlignmentStats()
    ops = align_opcodes(left, right)

    k = 0
    while k < len(ops):
        tag, i1, i2, j1, j2 = ops[k]
        if tag == "equal":
            for lp, rp in zip(left[i1:i2], right[j1:j2]):
                if lp == rp:
                    rows.append(DiffRow(type=RowType.EQUAL, left_text=lp, right_text=rp))
                else:
                    rows.append(_changed_row(lp, rp, stats))
            k += 1
        elif tag == "delete" and k + 1 < len(ops) and ops[k + 1][0] == "insert":
            # Pair a removal block with the insertion block that replaces it
            _, _, _, a1, a2 = ops[k + 1]
            removed, added = left[i1:i2], right[a1:a2]
            for idx in range(max(len(removed), len(added))):
                if idx < len(removed) and idx < len(added):
                    rows.append(_changed_row(removed[idx], added[idx], stats))
                elif idx < len(removed):
                    rows.append(_removed_row(removed[idx], stats))
                else:
                    rows.append(_added_row(added[idx], stats))
            k += 2
        elif tag == "delete":
            for lp in left[i1:i2]:
                rows.append(_removed_row(lp, stats))
            k += 1
        else:
            for rp in right[j1:j2]:
                rows.append(_added_row(rp, stats))
            k += 1

    return rows, stats


def align(left: Sequence[str], right: Sequence[str]) -> Tuple[List[DiffRow], AlignmentStats]:
    """
    Align two paragraph lists into typed rows.

    Never raises: if alignment fails the result is an empty row list.
    """
    try:
        rows, stats = _build_rows(list(left or []), list(right or []))
    except Exception as e:
        logger.warning(f"Paragraph alignment failed: {e}", exc_info=True)
        return [], AlignmentStats()
    logger.debug(f"Aligned {len(left or [])}/{len(right or [])} paragraphs: "
                 f"{len(rows)} rows, {stats.change_count} changes")
    return rows, stats


def compare_texts(left_content: str, right_content: str) -> Tuple[List[DiffRow], AlignmentStats]:
    """Flatten, segment and align two document contents."""
    return align(segment(to_plain_text(left_content)), segment(to_plain_text(right_content)))
