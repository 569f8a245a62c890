"""
Question answering over retrieved fragments.

The retrieved fragments are sent as individual user prompts wrapped in
``<label-document>`` tags, followed by the question. The model is asked for a
JSON object matching :data:`ANSWER_SCHEMA`.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence, Union

from knowbase.clients.proxy import Message, ModelRef, ProviderProxy
from knowbase.errors import CodecError
from knowbase.memory.models import Fragment
from knowbase.memory.sql.repositories import FragmentsRepo
from .search import search

logger = logging.getLogger(__name__)

ANSWER_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "answer": {"type": "string", "description": "The answer to the question"},
        "confidence_score": {
            "type": "number",
            "minimum": 0.0,
            "maximum": 1.0,
            "description": (
                "a confidence score between [0.0, 1.0] that denotes how confident the llm "
                "model is in the answer given to the question. This score is assessed by "
                "looking at the retrieved documents and comparing it to the answer"
            ),
        },
    },
    "required": ["answer", "confidence_score"],
}


@dataclass
class Answer:
    answer: str = ""
    confidence_score: float = 0.0
    sources: List[str] = field(default_factory=list)
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""

    @classmethod
    def from_json(cls, text: str) -> "Answer":
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CodecError(f"failed to unmarshal response: {exc}") from exc
        if not isinstance(data, dict):
            raise CodecError("failed to unmarshal response: expected a JSON object")
        return cls(
            answer=str(data.get("answer") or ""),
            confidence_score=float(data.get("confidence_score") or 0.0),
        )


def build_prompts(fragments: Sequence[Fragment], question: str) -> List[Message]:
    prompts: List[Message] = [
        {
            "role": "user",
            "content": f"<{frag.label}-document> {frag.content} </{frag.label}-document>",
        }
        for frag in fragments
    ]
    prompts.append({"role": "user", "content": f"<user-question> {question} </user-question>"})
    return prompts


def system_prompt_with_schema(system_prompt: str) -> str:
    schema = json.dumps(ANSWER_SCHEMA)
    instruction = f"Respond with a single JSON object matching this JSON schema: {schema}"
    return f"{system_prompt}\n\n{instruction}" if system_prompt else instruction


def ask(
    question: str,
    *,
    repo: FragmentsRepo,
    proxy: ProviderProxy,
    embed_model: Union[str, ModelRef],
    llm_model: Union[str, ModelRef],
    limits: Mapping[str, int],
    system_prompt: str = "",
) -> Answer:
    """Retrieve fragments for ``question`` and have the LLM answer from them."""
    fragments = search(question, repo=repo, proxy=proxy, model=embed_model, limits=limits)
    logger.debug("answering with %d fragments", len(fragments))

    completion = proxy.generate(
        build_prompts(fragments, question),
        llm_model,
        system=system_prompt_with_schema(system_prompt),
        json_output=True,
    )
    ans = Answer.from_json(completion.text)
    ans.sources = [frag.name for frag in fragments]
    ans.input_tokens = completion.input_tokens
    ans.output_tokens = completion.output_tokens
    ans.model = completion.model
    return ans


__all__ = ["ANSWER_SCHEMA", "Answer", "build_prompts", "system_prompt_with_schema", "ask"]
