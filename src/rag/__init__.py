"""
Chat RAG Module

Retrieval-Augmented Generation for the chat application: turns free-form text
into sentence chunks, embeds and persists them, retrieves the closest chunks
for a question and assembles them into a bounded context for the chat model.

Key components:
- contracts/: Data models (chunks, records, retrieval results, policies)
- core/: Exceptions, logging utilities and shared helpers
- config/: Configuration loading (YAML + environment)
- providers/: Embedding and chat provider client (Ollama)
- retrieval/: Segmenter, distance metrics, context assembler, orchestrator
- storage/: Vector store abstraction and its SQLite / in-memory engines
"""

__version__ = "0.1.0"
