import os

DEFAULT_EMBED_MODEL = "OpenAI/text-embedding-3-small"
DEFAULT_LLM_MODEL = "OpenAI/gpt-4o-mini"


def _truthy(raw) -> bool:
    return str(raw).lower() in ("1", "true", "yes")


class Core:
    def __init__(self, config: dict | None = None) -> None:
        cfg = (config or {}).get("knowbase", {})
        self.DB_PATH: str = str(cfg.get("db", os.getenv("KNOWBASE_DB", "./knowbase.db")))
        self.EMBED_MODEL: str = str(cfg.get("embed_model", os.getenv("KNOWBASE_EMBED_MODEL", DEFAULT_EMBED_MODEL)))
        self.LLM_MODEL: str = str(cfg.get("llm_model", os.getenv("KNOWBASE_LLM_MODEL", DEFAULT_LLM_MODEL)))
        self.VERBOSE: bool = _truthy(cfg.get("verbose", os.getenv("KNOWBASE_VERBOSE", "0")))
