from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class JobStatus(Enum):
    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    COMPLETE = "complete"
    ERROR = "error"


TERMINAL_STATUSES = (JobStatus.CANCELLED, JobStatus.COMPLETE, JobStatus.ERROR)


class AdvanceMode(Enum):
    AUTO = "auto"
    PAUSE = "pause"


class GuidanceKind(Enum):
    CHECKLIST = "checklist"
    GAPS = "gaps"
    BOTH = "both"
    CUSTOM = "custom"


class RowType(Enum):
    EQUAL = "equal"
    CHANGED = "changed"
    ADDED = "added"
    REMOVED = "removed"


@dataclass
class Document:
    id: str                  # storage-relative path
    display_name: str
    content: str = ""
    is_dirty: bool = False


@dataclass(frozen=True)
class DocumentRef:
    path: str                # relative to the store root
    name: str                # file name shown to the user


@dataclass
class RevisionJob:
    queue: List[DocumentRef] = field(default_factory=list)
    cursor: int = -1
    status: JobStatus = JobStatus.IDLE
    advance_mode: AdvanceMode = AdvanceMode.PAUSE
    error_message: Optional[str] = None
    completed_paths: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class RevisionGuidance:
    kind: GuidanceKind
    rendered_brief: str


@dataclass(frozen=True)
class WordSpan:
    kind: str    # equal|added|removed
    text: str


@dataclass
class DiffRow:
    type: RowType
    left_text: Optional[str] = None
    right_text: Optional[str] = None
    left_spans: List[WordSpan] = field(default_factory=list)
    right_spans: List[WordSpan] = field(default_factory=list)

    @property
    def is_change(self) -> bool:
        return self.type is not RowType.EQUAL

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "left_text": self.left_text,
            "right_text": self.right_text,
            "left_spans": [{"kind": s.kind, "text": s.text} for s in self.left_spans],
            "right_spans": [{"kind": s.kind, "text": s.text} for s in self.right_spans],
        }


@dataclass
class AlignmentStats:
    added_chars: int = 0
    removed_chars: int = 0
    change_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "added_chars": self.added_chars,
            "removed_chars": self.removed_chars,
            "change_count": self.change_count,
        }


@dataclass(frozen=True)
class PipelineStatus:
    """Observable snapshot of a revision run."""
    status: JobStatus
    current_index: int
    total_files: int
    current_file_name: str
    advance_mode: AdvanceMode
    error_message: Optional[str] = None
    completed_paths: tuple = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status.value,
            "current_index": self.current_index,
            "total_files": self.total_files,
            "current_file_name": self.current_file_name,
            "advance_mode": self.advance_mode.value,
            "error_message": self.error_message,
            "completed_paths": list(self.completed_paths),
        }
