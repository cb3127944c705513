"""
Editing session

Holds the open documents and the pane layout. The revision pipeline opens
the source on the primary pane and streams into the revision on the
secondary pane; observers are told about every content or layout change.
"""
from __future__ import annotations
from typing import Callable, Dict, List, Optional
import logging
import threading

from manuscript_reviser.adapters.storage import LocalFileStore
from manuscript_reviser.ir import Document

logger = logging.getLogger(__name__)

SessionListener = Callable[[str, Optional[Document]], None]


class EditingSession:
    """Open documents plus single/dual pane layout."""

    def __init__(self, store: LocalFileStore):
        self.store = store
        self.documents: Dict[str, Document] = {}
        self.layout = "single"
        self.primary_id: Optional[str] = None
        self.secondary_id: Optional[str] = None
        self._listeners: List[SessionListener] = []
        self._lock = threading.RLock()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register ``listener(event, document)``; returns an unsubscribe function."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self, event: str, doc: Optional[Document]) -> None:
        for listener in list(self._listeners):
            listener(event, doc)

    def get(self, doc_id: str) -> Optional[Document]:
        return self.documents.get(doc_id)

    def open_document(self, doc_id: str, display_name: str, content: Optional[str] = None) -> Document:
        """Open (or refocus) a document; reads from the store when no content is given."""
        with self._lock:
            doc = self.documents.get(doc_id)
            if doc is None:
                if content is None:
                    content = self.store.read(doc_id)
                doc = Document(id=doc_id, display_name=display_name, content=content)
                self.documents[doc_id] = doc
        self._notify("opened", doc)
        return doc

    def close_document(self, doc_id: str) -> None:
        with self._lock:
            doc = self.documents.pop(doc_id, None)
            if self.primary_id == doc_id:
                self.primary_id = None
            if self.secondary_id == doc_id:
                self.secondary_id = None
                self.layout = "single"
        self._notify("closed", doc)

    def set_dual_view(self, primary_id: str, secondary_id: str) -> None:
        with self._lock:
            self.layout = "dual"
            self.primary_id = primary_id
            self.secondary_id = secondary_id
        self._notify("layout", None)

    def update_content(self, doc_id: str, content: str) -> None:
        with self._lock:
            doc = self.documents[doc_id]
            doc.content = content
            doc.is_dirty = True
        self._notify("content", doc)

    def save(self, doc_id: str) -> None:
        with self._lock:
            doc = self.documents[doc_id]
            self.store.write(doc_id, doc.content)
            doc.is_dirty = False
        logger.info(f"Saved {doc.display_name}")
        self._notify("saved", doc)
