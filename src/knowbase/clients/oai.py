"""Helpers for interacting with OpenAI API"""

from __future__ import annotations

import logging
from typing import List, Optional

from openai import OpenAI

from .proxy import Completion, Message, Purpose

logger = logging.getLogger(__name__)


class OpenAIProvider:
    """Embeddings and chat completions through the OpenAI SDK."""

    provider = "OpenAI"

    def __init__(self, api_key: str, *, client: Optional[OpenAI] = None) -> None:
        self.client = client or OpenAI(api_key=api_key)

    def embed(self, text: str, model: str, purpose: Purpose) -> List[float]:
        # OpenAI embeddings are symmetric; purpose only matters to other providers.
        resp = self.client.embeddings.create(model=model, input=text)
        return list(resp.data[0].embedding)

    def generate(
        self, messages: List[Message], model: str, *, json_output: bool = False
    ) -> Completion:
        kwargs = {"model": model, "messages": messages}
        if json_output:
            kwargs["response_format"] = {"type": "json_object"}
        resp = self.client.chat.completions.create(**kwargs)

        usage = getattr(resp, "usage", None)
        completion = Completion(
            text=(resp.choices[0].message.content or "").strip(),
            input_tokens=usage.prompt_tokens if usage is not None else 0,
            output_tokens=usage.completion_tokens if usage is not None else 0,
            model=resp.model,
        )
        logger.debug(
            "llm statistics tokens-input=%d tokens-output=%d tokens-total=%d model=%s",
            completion.input_tokens,
            completion.output_tokens,
            completion.total_tokens,
            completion.model,
        )
        return completion
