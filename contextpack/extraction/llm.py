"""Narrow call contract around the chat-model provider.

``LLMBackend.complete(prompt, schema)`` sends one system/user prompt pair and
returns an instance of the pydantic *schema*.  Provider failures are
translated into the scan error taxonomy:

* :class:`~contextpack.errors.CredentialError` - key missing or rejected
* :class:`~contextpack.errors.RateLimitError` - provider throttling
* :class:`~contextpack.errors.ProviderError` - everything else

There is no retry loop here beyond the provider SDK's own ``max_retries``
(``settings.llm_max_retries``), so callers can see and bound total latency.

Providers
---------
``openai`` (default)
    ``langchain_openai.ChatOpenAI``.  Requires ``OPENAI_API_KEY``.
``ollama``
    ``langchain_ollama.ChatOllama`` against ``OLLAMA_BASE_URL``.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Type, TypeVar

import openai
from pydantic import BaseModel, ValidationError

from contextpack.config import settings
from contextpack.errors import CredentialError, ProviderError, RateLimitError, ScanError

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


@dataclass(frozen=True)
class Prompt:
    system: str
    user: str


class LLMBackend(ABC):
    """Abstract base for every structured-completion backend."""

    @abstractmethod
    def complete(self, prompt: Prompt, schema: Type[SchemaT]) -> SchemaT:
        """Send *prompt* and return the completion parsed into *schema*.

        Raises:
            CredentialError: Credentials are absent or invalid.
            RateLimitError: The provider is throttling requests.
            ProviderError: Any other failure, including unparsable output.
        """


# ---------------------------------------------------------------------------
# Error translation
# ---------------------------------------------------------------------------

def classify_provider_error(exc: Exception) -> ScanError:
    """Map a raw provider/SDK exception onto the scan error taxonomy."""
    if isinstance(exc, ScanError):
        return exc
    if isinstance(exc, openai.AuthenticationError):
        return CredentialError("OpenAI API authentication failed. Please check your API key.")
    if isinstance(exc, openai.RateLimitError):
        return RateLimitError("OpenAI API rate limit exceeded. Please try again later.")

    # Non-OpenAI clients (e.g. ollama.ResponseError) expose a status code.
    status = getattr(exc, "status_code", None)
    if status == 401:
        return CredentialError(f"Model provider rejected the API key: {exc}")
    if status == 429:
        return RateLimitError(f"Model provider rate limit exceeded: {exc}")
    if isinstance(exc, ValidationError):
        return ProviderError(f"Model returned output that does not match the schema: {exc}")
    return ProviderError(f"Model provider call failed: {exc}")


# ---------------------------------------------------------------------------
# LangChain implementation
# ---------------------------------------------------------------------------

class LangChainBackend(LLMBackend):
    """Structured completions through any LangChain chat model."""

    def __init__(self, chat_model: Any) -> None:
        self._llm = chat_model

    def complete(self, prompt: Prompt, schema: Type[SchemaT]) -> SchemaT:
        from langchain_core.messages import HumanMessage, SystemMessage

        messages = [
            SystemMessage(content=prompt.system),
            HumanMessage(content=prompt.user),
        ]
        try:
            structured = self._llm.with_structured_output(schema)
            result = structured.invoke(messages)
            if result is None:
                raise ProviderError("The model returned no structured output.")
            if not isinstance(result, schema):
                result = schema.model_validate(result)
        except Exception as exc:
            error = classify_provider_error(exc)
            logger.warning("LLM call failed (%s): %s", type(error).__name__, error)
            if error is exc:
                raise
            raise error from exc
        return result


def get_backend() -> LLMBackend:
    """Return the backend configured by ``settings.llm_provider``.

    Raises:
        CredentialError: If the OpenAI provider is selected and no
            ``OPENAI_API_KEY`` is available.
    """
    if settings.llm_provider == "ollama":
        from langchain_ollama import ChatOllama

        return LangChainBackend(
            ChatOllama(
                model=settings.ollama_chat_model,
                base_url=settings.ollama_base_url,
                temperature=settings.llm_temperature,
            )
        )

    api_key = settings.openai_api_key
    if not api_key:
        raise CredentialError(
            "OpenAI API key not configured. Please set OPENAI_API_KEY "
            "environment variable or use demo mode."
        )

    from langchain_openai import ChatOpenAI

    return LangChainBackend(
        ChatOpenAI(
            model=settings.openai_chat_model,
            temperature=settings.llm_temperature,
            api_key=api_key,
            max_retries=settings.llm_max_retries,
        )
    )
