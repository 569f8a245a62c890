import os
from typing import List

DEFAULT_SYSTEM_PROMPT = (
    "You answer questions using only the documents provided by the user. "
    "If the documents do not contain the answer, say so."
)


def _split_limits(raw) -> List[str]:
    if isinstance(raw, (list, tuple)):
        return [str(token).strip() for token in raw if str(token).strip()]
    return [token.strip() for token in str(raw).split(",") if token.strip()]


class Retrieval:
    def __init__(self, config: dict | None = None) -> None:
        cfg = (config or {}).get("knowbase", {}).get("retrieval", {})
        self.LIMITS: List[str] = _split_limits(cfg.get("limits", os.getenv("KNOWBASE_LIMIT", "5")))
        self.DEFAULT_LABEL: str = str(cfg.get("label", os.getenv("KNOWBASE_LABEL", "default")))
        self.SYSTEM_PROMPT: str = str(
            cfg.get("system_prompt", os.getenv("KNOWBASE_SYSTEM_PROMPT", DEFAULT_SYSTEM_PROMPT))
        )
