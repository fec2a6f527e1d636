"""
Shared test fixtures and configuration for pytest.
"""

import hashlib
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pytest

# Add src directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


# ============================================================================
# Fakes
# ============================================================================

class FakeEmbedder:
    """
    Deterministic embedder for tests.

    Known texts map to fixed vectors; anything else gets a vector derived
    from a hash of the text. Texts listed in `fail_on` raise the given error.
    """

    def __init__(
        self,
        dimension: int = 4,
        vectors: Optional[Dict[str, Tuple[float, ...]]] = None,
        fail_on: Optional[Dict[str, Exception]] = None,
    ):
        self.dimension = dimension
        self.vectors = vectors or {}
        self.fail_on = fail_on or {}
        self.calls: List[str] = []

    def embed(self, text: str) -> Tuple[float, ...]:
        self.calls.append(text)
        if text in self.fail_on:
            raise self.fail_on[text]
        if text in self.vectors:
            return self.vectors[text]
        digest = hashlib.sha256(text.encode("utf-8")).digest()
        return tuple((b + 1) / 256.0 for b in digest[:self.dimension])


class FakeChatProvider:
    """Chat provider that records its calls and returns a canned answer."""

    def __init__(self, reply: str = "fake answer", error: Optional[Exception] = None):
        self.reply = reply
        self.error = error
        self.calls: List[Dict[str, Optional[str]]] = []

    def answer(self, system_prompt: str, question: str, context: Optional[str] = None) -> str:
        self.calls.append({
            "system_prompt": system_prompt,
            "question": question,
            "context": context,
        })
        if self.error is not None:
            raise self.error
        return self.reply


# ============================================================================
# Pytest hooks
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "e2e: End-to-end tests (full pipeline with fake providers)")
    config.addinivalue_line("markers", "slow: Tests that take a long time to run")


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    """Fixture providing a 4-dimensional deterministic embedder."""
    return FakeEmbedder(dimension=4)


@pytest.fixture
def fake_chat() -> FakeChatProvider:
    """Fixture providing a recording chat provider."""
    return FakeChatProvider()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    """Fixture providing a fresh SQLite database path."""
    return tmp_path / "vectors.db"


@pytest.fixture
def sqlite_store(db_path: Path):
    """Fixture providing an initialized 4-dimensional SQLite vector store."""
    from rag.storage import SqliteVectorStore

    store = SqliteVectorStore(db_path, dimension=4, auto_init=True)
    yield store
    store.close()


@pytest.fixture
def memory_store():
    """Fixture providing an initialized 4-dimensional in-memory vector store."""
    from rag.storage import InMemoryVectorStore

    return InMemoryVectorStore(dimension=4, auto_init=True)


@pytest.fixture
def clean_env(monkeypatch):
    """Fixture removing every environment variable the config reads."""
    from rag.config.config_loader import ENV_OVERRIDES

    for env_var in ENV_OVERRIDES:
        monkeypatch.delenv(env_var, raising=False)
    return monkeypatch
