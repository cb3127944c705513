from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
import logging
import os

import yaml

from manuscript_reviser.ir import AdvanceMode

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"


@dataclass
class LLMConfig:
    """Configuration for the completion provider."""
    api_key: str = ""
    model: str = DEFAULT_MODEL
    max_tokens: int = 8192
    temperature: float = 0.7  # Creative latitude for prose revision


@dataclass
class ReviserConfig:
    """Top-level settings for revision runs and the merge view."""
    llm: LLMConfig = field(default_factory=LLMConfig)
    advance_mode: AdvanceMode = AdvanceMode.PAUSE
    revision_max_tokens: int = 8192   # Floor for a full-chapter rewrite
    history_limit: int = 100          # Merge operations kept for revert
    genre: str = "fiction"
    subgenre: str = "general fiction"


def _llm_from_dict(data: Dict[str, Any]) -> LLMConfig:
    return LLMConfig(
        api_key=str(data.get("api_key") or os.environ.get("ANTHROPIC_API_KEY", "")),
        model=str(data.get("model") or os.environ.get("MANUSCRIPT_REVISER_MODEL", DEFAULT_MODEL)),
        max_tokens=int(data.get("max_tokens", 8192)),
        temperature=float(data.get("temperature", 0.7)),
    )


def load_config(path: Optional[str] = None) -> ReviserConfig:
    """
    Load settings from a YAML file, filling gaps from the environment.

    Recognised keys: ``llm`` (api_key, model, max_tokens, temperature),
    ``advance_mode`` (auto|pause), ``revision_max_tokens``, ``history_limit``,
    ``genre`` and ``subgenre``.
    """
    data: Dict[str, Any] = {}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {path}")

    mode = str(data.get("advance_mode", AdvanceMode.PAUSE.value)).lower()
    try:
        advance_mode = AdvanceMode(mode)
    except ValueError:
        raise ValueError(f"Unknown advance_mode: {mode}")

    return ReviserConfig(
        llm=_llm_from_dict(data.get("llm") or {}),
        advance_mode=advance_mode,
        revision_max_tokens=int(data.get("revision_max_tokens", 8192)),
        history_limit=int(data.get("history_limit", 100)),
        genre=str(data.get("genre", "fiction")),
        subgenre=str(data.get("subgenre", "general fiction")),
    )
