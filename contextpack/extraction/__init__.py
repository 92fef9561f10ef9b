"""Extraction package - per-field LLM extraction with confidence and citations."""

from contextpack.extraction.extractor import Extractor
from contextpack.extraction.llm import LangChainBackend, LLMBackend, Prompt, get_backend

__all__ = ["Extractor", "LLMBackend", "LangChainBackend", "Prompt", "get_backend"]
