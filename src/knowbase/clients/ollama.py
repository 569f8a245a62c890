"""Helpers for interacting with a local Ollama server"""

from __future__ import annotations

import logging
from typing import List, Optional

from ollama import Client

from .proxy import Completion, Message, Purpose

logger = logging.getLogger(__name__)


class OllamaProvider:
    """Embeddings and chat against a local Ollama server."""

    provider = "Ollama"

    def __init__(self, host: str, *, client: Optional[Client] = None) -> None:
        self.client = client or Client(host=host)

    def embed(self, text: str, model: str, purpose: Purpose) -> List[float]:
        resp = self.client.embed(model=model, input=text)
        return list(resp.embeddings[0])

    def generate(
        self, messages: List[Message], model: str, *, json_output: bool = False
    ) -> Completion:
        kwargs = {"model": model, "messages": messages}
        if json_output:
            kwargs["format"] = "json"
        resp = self.client.chat(**kwargs)

        completion = Completion(
            text=(resp.message.content or "").strip(),
            input_tokens=getattr(resp, "prompt_eval_count", None) or 0,
            output_tokens=getattr(resp, "eval_count", None) or 0,
            model=model,
        )
        logger.debug(
            "llm statistics tokens-input=%d tokens-output=%d model=%s",
            completion.input_tokens,
            completion.output_tokens,
            model,
        )
        return completion
