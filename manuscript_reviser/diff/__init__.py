"""
Side-by-side Comparison

Paragraph alignment of an original and a revision, and the merge
operations that move text between them.
"""
from manuscript_reviser.diff.alignment import align, compare_texts, word_overlap
from manuscript_reviser.diff.merge import MergeController
from manuscript_reviser.diff.segmenter import segment, to_plain_text

__all__ = [
    "align",
    "compare_texts",
    "word_overlap",
    "MergeController",
    "segment",
    "to_plain_text",
]
