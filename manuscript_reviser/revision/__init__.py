"""
Chapter Revision

Guidance briefs built from chapter analysis, numbered revision names, and
the pipeline that streams model rewrites into sibling files.
"""
from manuscript_reviser.revision.guidance import build_guidance, match_record
from manuscript_reviser.revision.naming import next_revision_name, revision_name_for
from manuscript_reviser.revision.pipeline import RevisionPipeline
from manuscript_reviser.revision.prompts import GENERIC_BRIEF, build_messages

__all__ = [
    "build_guidance",
    "match_record",
    "next_revision_name",
    "revision_name_for",
    "RevisionPipeline",
    "GENERIC_BRIEF",
    "build_messages",
]
