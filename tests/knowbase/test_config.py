import pytest

from knowbase.config import Config, load_raw_config
from knowbase.config.loader import resolve_config_path
from knowbase.config.core import DEFAULT_EMBED_MODEL
from knowbase.config.retrieval import DEFAULT_SYSTEM_PROMPT
from knowbase.errors import ConfigError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in (
        "KNOWBASE_CONFIG",
        "KNOWBASE_DB",
        "KNOWBASE_EMBED_MODEL",
        "KNOWBASE_LLM_MODEL",
        "KNOWBASE_VERBOSE",
        "KNOWBASE_OLLAMA_URL",
        "KNOWBASE_OPENAI_KEY",
        "KNOWBASE_LIMIT",
        "KNOWBASE_LABEL",
        "KNOWBASE_SYSTEM_PROMPT",
        "OPENAI_API_KEY",
    ):
        monkeypatch.delenv(key, raising=False)


def test_missing_default_file_gives_empty_config(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert load_raw_config() == {}


def test_missing_explicit_file_is_an_error(tmp_path, monkeypatch):
    with pytest.raises(ConfigError, match="config file not found"):
        load_raw_config(tmp_path / "nope.toml")

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("KNOWBASE_CONFIG", str(tmp_path / "gone.toml"))
    with pytest.raises(ConfigError):
        load_raw_config()


def test_config_path_from_env(tmp_path, monkeypatch):
    path = tmp_path / "other.toml"
    path.write_text('[knowbase]\ndb = "env-picked.db"\n', encoding="utf-8")
    monkeypatch.setenv("KNOWBASE_CONFIG", str(path))

    assert resolve_config_path() == (path, True)
    assert Config.load().core.DB_PATH == "env-picked.db"


@pytest.mark.parametrize("body", ["[knowbase\n", 'knowbase = "flat"\n'])
def test_malformed_config_is_an_error(tmp_path, body):
    path = tmp_path / "config.toml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid config file"):
        load_raw_config(path)


def test_defaults():
    cfg = Config({})
    assert cfg.core.DB_PATH == "./knowbase.db"
    assert cfg.core.EMBED_MODEL == DEFAULT_EMBED_MODEL
    assert cfg.core.VERBOSE is False
    assert cfg.providers.OPENAI_API_KEY is None
    assert cfg.providers.OLLAMA_URL == ""
    assert cfg.retrieval.LIMITS == ["5"]
    assert cfg.retrieval.DEFAULT_LABEL == "default"
    assert cfg.retrieval.SYSTEM_PROMPT == DEFAULT_SYSTEM_PROMPT


def test_env_is_used_without_toml(monkeypatch):
    monkeypatch.setenv("KNOWBASE_DB", "/tmp/env.db")
    monkeypatch.setenv("KNOWBASE_LIMIT", "QA:3, policies:2")
    monkeypatch.setenv("KNOWBASE_VERBOSE", "true")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-env")

    cfg = Config({})
    assert cfg.core.DB_PATH == "/tmp/env.db"
    assert cfg.core.VERBOSE is True
    assert cfg.retrieval.LIMITS == ["QA:3", "policies:2"]
    assert cfg.providers.OPENAI_API_KEY == "sk-env"


def test_toml_takes_precedence(tmp_path, monkeypatch):
    monkeypatch.setenv("KNOWBASE_DB", "/tmp/env.db")
    monkeypatch.setenv("MY_KEY", "sk-custom")
    path = tmp_path / "config.toml"
    path.write_text(
        "\n".join(
            [
                "[knowbase]",
                'db = "kb.sqlite"',
                'embed_model = "Ollama/nomic-embed-text"',
                "",
                "[knowbase.providers]",
                'openai_key_env = "MY_KEY"',
                'ollama_url = "http://localhost:11434"',
                "",
                "[knowbase.retrieval]",
                'limits = ["QA:1", "2"]',
                'label = "docs"',
            ]
        ),
        encoding="utf-8",
    )

    cfg = Config.load(path)
    assert cfg.core.DB_PATH == "kb.sqlite"
    assert cfg.core.EMBED_MODEL == "Ollama/nomic-embed-text"
    assert cfg.providers.OPENAI_API_KEY == "sk-custom"
    assert cfg.providers.OLLAMA_URL == "http://localhost:11434"
    assert cfg.retrieval.LIMITS == ["QA:1", "2"]
    assert cfg.retrieval.DEFAULT_LABEL == "docs"
