"""Embedding and generation providers."""

from __future__ import annotations

import logging

from .proxy import (
    PURPOSE_DOCUMENT,
    PURPOSE_QUERY,
    Completion,
    ModelRef,
    ProviderProxy,
)

logger = logging.getLogger(__name__)


def build_proxy(providers) -> ProviderProxy:
    """
    Register every provider whose credentials are configured.

    :param providers: A :class:`knowbase.config.providers.Providers` instance.
    """
    proxy = ProviderProxy()

    if providers.OPENAI_API_KEY:
        from .oai import OpenAIProvider

        client = OpenAIProvider(providers.OPENAI_API_KEY)
        proxy.register_generator(client)
        proxy.register_embedder(client)

    if providers.OLLAMA_URL:
        from .ollama import OllamaProvider

        client = OllamaProvider(providers.OLLAMA_URL)
        proxy.register_generator(client)
        proxy.register_embedder(client)

    if not proxy.embed_providers and not proxy.llm_providers:
        logger.warning("No model providers configured; set OPENAI_API_KEY or KNOWBASE_OLLAMA_URL")
    return proxy


__all__ = ["PURPOSE_DOCUMENT", "PURPOSE_QUERY", "Completion", "ModelRef", "ProviderProxy", "build_proxy"]
