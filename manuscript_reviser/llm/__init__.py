from __future__ import annotations

from manuscript_reviser.llm.client import CompletionOptions, CompletionStream, CompletionStreamer

__all__ = ["CompletionOptions", "CompletionStream", "CompletionStreamer"]
