"""Reasoning backend access."""

from .client import LLMRuntimeConfig, ReasoningBackendClient

__all__ = ["LLMRuntimeConfig", "ReasoningBackendClient"]
