import pytest

from manuscript_reviser.config import DEFAULT_MODEL, load_config
from manuscript_reviser.ir import AdvanceMode


def test_defaults_from_environment(monkeypatch):
    monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")
    monkeypatch.delenv("MANUSCRIPT_REVISER_MODEL", raising=False)
    config = load_config()
    assert config.llm.api_key == "sk-test"
    assert config.llm.model == DEFAULT_MODEL
    assert config.llm.temperature == 0.7
    assert config.advance_mode is AdvanceMode.PAUSE
    assert config.revision_max_tokens == 8192


def test_yaml_overrides(tmp_path, monkeypatch):
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    path = tmp_path / "reviser.yml"
    path.write_text(
        "llm:\n  model: claude-test\n  max_tokens: 16000\n"
        "advance_mode: AUTO\nhistory_limit: 5\ngenre: thriller\n",
        encoding="utf-8",
    )
    config = load_config(str(path))
    assert config.llm.api_key == ""
    assert config.llm.model == "claude-test"
    assert config.llm.max_tokens == 16000
    assert config.advance_mode is AdvanceMode.AUTO
    assert config.history_limit == 5
    assert config.genre == "thriller"


def test_unknown_advance_mode(tmp_path):
    path = tmp_path / "reviser.yml"
    path.write_text("advance_mode: sometimes\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_config(str(path))
