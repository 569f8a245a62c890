"""
Provider proxy
==============

Routes ``embed`` and ``generate`` calls to the backend registered for the
provider half of a ``provider/model`` reference.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Protocol, Sequence, Union

import numpy as np

from knowbase.errors import NoModelProvidedError, NotFoundError
from knowbase.memory.vec.codec import parse_json_floats

logger = logging.getLogger(__name__)

Purpose = Literal["document", "query"]
PURPOSE_DOCUMENT: Purpose = "document"
PURPOSE_QUERY: Purpose = "query"

Message = Dict[str, str]


@dataclass(frozen=True)
class ModelRef:
    """A ``provider/model`` pair; the model part may itself contain slashes."""

    provider: str
    name: str

    @classmethod
    def parse(cls, ref: str) -> "ModelRef":
        provider, _, name = (ref or "").strip().partition("/")
        if not provider:
            raise NoModelProvidedError(f"invalid model reference {ref!r}, expected provider/model")
        return cls(provider=provider, name=name)

    @classmethod
    def coerce(cls, ref: Union[str, "ModelRef"]) -> "ModelRef":
        return ref if isinstance(ref, ModelRef) else cls.parse(ref)

    def __str__(self) -> str:
        return f"{self.provider}/{self.name}"


@dataclass(frozen=True)
class Completion:
    """Reply text plus the token usage the backend reported (0 when unknown)."""

    text: str
    input_tokens: int = 0
    output_tokens: int = 0
    model: str = ""

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class Embedder(Protocol):
    provider: str

    def embed(self, text: str, model: str, purpose: Purpose) -> Any: ...


class Generator(Protocol):
    provider: str

    def generate(
        self,
        messages: List[Message],
        model: str,
        *,
        json_output: bool = False,
    ) -> Union[str, Completion]: ...


class ProviderProxy:
    """Registry of embedding and generation backends keyed by provider name."""

    def __init__(self) -> None:
        self._embedders: Dict[str, Embedder] = {}
        self._generators: Dict[str, Generator] = {}

    def register_embedder(self, embedder: Embedder) -> None:
        self._embedders[embedder.provider.lower()] = embedder
        logger.debug("adding embed provider %s", embedder.provider)

    def register_generator(self, generator: Generator) -> None:
        self._generators[generator.provider.lower()] = generator
        logger.debug("adding llm provider %s", generator.provider)

    @property
    def embed_providers(self) -> List[str]:
        return sorted(self._embedders)

    @property
    def llm_providers(self) -> List[str]:
        return sorted(self._generators)

    def embed(self, text: str, model: Union[str, ModelRef], purpose: Purpose) -> np.ndarray:
        """Return the embedding of ``text`` as a float64 vector."""
        ref = ModelRef.coerce(model)
        client = self._embedders.get(ref.provider.lower())
        if client is None:
            raise NotFoundError(f"no client registered for provider '{ref.provider}'")
        if not ref.name:
            raise NoModelProvidedError(f"model name is not set for provider '{ref.provider}'")

        raw = client.embed(text, ref.name, purpose)
        return _as_vector(raw)

    def generate(
        self,
        prompts: Sequence[Message],
        model: Union[str, ModelRef],
        *,
        system: Optional[str] = None,
        json_output: bool = False,
    ) -> Completion:
        """Run a chat completion over ``prompts``; plain-text replies carry no usage."""
        ref = ModelRef.coerce(model)
        client = self._generators.get(ref.provider.lower())
        if client is None:
            raise NotFoundError(f"no client registered for provider '{ref.provider}'")
        if not ref.name:
            raise NoModelProvidedError(f"model name is not set for provider '{ref.provider}'")

        messages: List[Message] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.extend(prompts)
        reply = client.generate(messages, ref.name, json_output=json_output)
        if isinstance(reply, Completion):
            return reply
        return Completion(text=reply, model=str(ref))


def _as_vector(raw: Any) -> np.ndarray:
    """Normalize a backend embedding (list, array or JSON text) to float64."""
    if isinstance(raw, str):
        return np.asarray(parse_json_floats(raw), dtype=np.float64)
    return np.asarray(raw, dtype=np.float64).reshape(-1)


__all__ = [
    "Purpose",
    "PURPOSE_DOCUMENT",
    "PURPOSE_QUERY",
    "ModelRef",
    "Completion",
    "Embedder",
    "Generator",
    "ProviderProxy",
]
