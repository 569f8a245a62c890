import os


class Providers:
    def __init__(self, config: dict | None = None) -> None:
        cfg = (config or {}).get("knowbase", {}).get("providers", {})

        openai_env = str(cfg.get("openai_key_env", "OPENAI_API_KEY"))
        self.OPENAI_API_KEY: str | None = os.getenv(openai_env) or os.getenv("KNOWBASE_OPENAI_KEY")
        self.OLLAMA_URL: str = str(cfg.get("ollama_url", os.getenv("KNOWBASE_OLLAMA_URL", "")))
