"""
Providers subpackage - clients for embedding and chat model providers.
"""

from .ollama_client import CONTEXT_INSTRUCTIONS, OllamaClient, build_messages

__all__ = [
    "CONTEXT_INSTRUCTIONS",
    "OllamaClient",
    "build_messages",
]
