from __future__ import annotations
from typing import Iterable, Tuple, TYPE_CHECKING
import logging
import re

from manuscript_reviser.errors import StorageError

if TYPE_CHECKING:
    from manuscript_reviser.adapters.storage import LocalFileStore

logger = logging.getLogger(__name__)


def split_base_name(file_name: str) -> Tuple[str, str]:
    """Split ``chapter.md`` into ``("chapter", ".md")``; dotfiles keep their name."""
    idx = file_name.rfind(".")
    if idx > 0:
        return file_name[:idx], file_name[idx:]
    return file_name, ""


def next_revision_number(sibling_names: Iterable[str], base: str) -> int:
    pattern = re.compile(rf"^{re.escape(base)}-rev(\d+)\.md$", re.IGNORECASE)
    max_rev = 0
    for name in sibling_names:
        m = pattern.match(name)
        if m:
            max_rev = max(max_rev, int(m.group(1)))
    return max_rev + 1


def next_revision_name(sibling_names: Iterable[str], base: str) -> str:
    return f"{base}-rev{next_revision_number(sibling_names, base):02d}.md"


def revision_name_for(store: "LocalFileStore", folder: str, file_name: str) -> str:
    """Next free revision name for ``file_name`` inside ``folder`` of ``store``."""
    base, _ = split_base_name(file_name)
    try:
        siblings = store.list_names(folder)
    except StorageError as e:
        logger.warning(f"Cannot list {folder or '.'}, treating as empty: {e}")
        siblings = []
    return next_revision_name(siblings, base)
