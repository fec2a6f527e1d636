"""
Retrieval Orchestrator - Ingest text and answer questions over stored chunks.

Ingest path: text -> segment -> embed each chunk -> store.
Answer path: question -> embed -> top-K query -> assemble context -> chat.

The orchestrator owns no global state; its collaborators are passed in.
"""

import logging
from typing import List, Optional, Protocol

from ..contracts.retrieval_contracts import (
    ChunkingPolicy,
    ContextPolicy,
    EmbeddingVector,
    IngestReport,
    RetrievalResult,
)
from ..core.exceptions import ConfigurationError, IngestError
from ..core.logging import RequestContext, log_with_context
from ..storage.base import VectorStore
from .chunker import segment
from .context_assembler import ContextAssembler


logger = logging.getLogger(__name__)


QUESTION_SYSTEM_PROMPT = """You are a helpful assistant that answers the user's question.
Answer concisely and without bias. Use only information you are confident is correct.
If you do not know the answer, say so instead of making one up."""


class Embedder(Protocol):
    def embed(self, text: str) -> EmbeddingVector:
        ...


class ChatProvider(Protocol):
    def answer(self, system_prompt: str, question: str, context: Optional[str] = None) -> str:
        ...


class RetrievalOrchestrator:
    """
    Coordinates chunking, embedding, storage, retrieval and answering.

    Example:
        >>> orchestrator = RetrievalOrchestrator(client, store, client)
        >>> orchestrator.ingest("The cat sat. The dog ran.", chunk_size=16, overlap=4)
        1
        >>> orchestrator.answer("Where did the cat sit?", use_retrieval=True, top_k=3)
    """

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStore,
        chat_provider: ChatProvider,
        chunking_policy: Optional[ChunkingPolicy] = None,
        context_policy: Optional[ContextPolicy] = None,
        document_prefix: str = "",
        query_prefix: str = "",
        system_prompt: str = QUESTION_SYSTEM_PROMPT,
    ):
        """
        Initialize the orchestrator.

        Args:
            embedder: Embedding client
            store: Vector store (already initialized)
            chat_provider: Chat provider used for answers
            chunking_policy: Defaults for ingest chunking
            context_policy: Bounds for assembled context
            document_prefix: Prepended to chunk text before embedding
            query_prefix: Prepended to questions before embedding
            system_prompt: Instructions sent with every question
        """
        self.embedder = embedder
        self.store = store
        self.chat_provider = chat_provider
        self.chunking_policy = chunking_policy or ChunkingPolicy()
        self.assembler = ContextAssembler(context_policy)
        self.document_prefix = document_prefix
        self.query_prefix = query_prefix
        self.system_prompt = system_prompt

    def ingest(
        self,
        raw_text: str,
        chunk_size: Optional[int] = None,
        overlap: Optional[int] = None,
    ) -> int:
        """
        Segment, embed and store text.

        Returns:
            Number of chunks stored

        Raises:
            ConfigurationError: If the chunking parameters are invalid
            IngestError: If embedding or storing a chunk fails
        """
        return self.ingest_with_report(raw_text, chunk_size, overlap).chunks_stored

    def ingest_with_report(
        self,
        raw_text: str,
        chunk_size: Optional[int] = None,
        overlap: Optional[int] = None,
    ) -> IngestReport:
        """
        Segment, embed and store text, reporting the new record ids.

        Chunks are processed one at a time in order. The first failure stops
        the ingest; chunks stored before it are kept.

        Args:
            raw_text: Text to ingest
            chunk_size: Sentences per chunk (policy default if None)
            overlap: Sentences shared between chunks (policy default if None)

        Returns:
            IngestReport with the stored count and record ids

        Raises:
            ConfigurationError: If the chunking parameters are invalid
            IngestError: If embedding or storing a chunk fails
        """
        if chunk_size is None:
            chunk_size = self.chunking_policy.chunk_size
        if overlap is None:
            overlap = self.chunking_policy.overlap

        with RequestContext(operation="ingest") as ctx:
            chunks = segment(raw_text, chunk_size, overlap)
            total = len(chunks)
            report = IngestReport()

            log_with_context(
                logger, logging.INFO,
                f"Ingesting {total} chunks (chunk_size={chunk_size}, overlap={overlap})",
            )

            for position, chunk in enumerate(chunks, start=1):
                try:
                    embedding = self.embedder.embed(self.document_prefix + chunk.text)
                    record_id = self.store.put(chunk.text, embedding)
                except Exception as e:
                    log_with_context(
                        logger, logging.ERROR,
                        f"Ingest failed on chunk {position} of {total}: {e}",
                        chunk_index=position,
                    )
                    raise IngestError(
                        f"Ingest failed on chunk {position} of {total}: {e}",
                        chunk_index=position,
                        total_chunks=total,
                        stored_count=report.chunks_stored,
                        error=e,
                    ) from e

                report.record_ids.append(record_id)
                report.chunks_stored += 1

            log_with_context(
                logger, logging.INFO,
                f"Ingest complete: {report.chunks_stored} chunks stored",
            )
            logger.debug(f"Ingest {ctx.request_id} record ids: {report.record_ids}")

        return report

    def retrieve(self, question: str, top_k: int) -> List[RetrievalResult]:
        """
        Find the stored chunks nearest to a question.

        Raises:
            ConfigurationError: If top_k <= 0
            ProviderError: If embedding the question fails
            StorageError: If the store read fails
        """
        if top_k <= 0:
            raise ConfigurationError("top_k must be greater than 0")

        query_embedding = self.embedder.embed(self.query_prefix + question)
        results = self.store.query(query_embedding, top_k)
        logger.debug(f"Retrieved {len(results)} results for top_k={top_k}")
        return results

    def answer(self, question: str, use_retrieval: bool = True, top_k: int = 3) -> str:
        """
        Answer a question, with or without retrieved context.

        Failures from the embedder, store or chat provider propagate
        unchanged; no degraded context is substituted.

        Args:
            question: The user's question
            use_retrieval: Whether to ground the answer in stored chunks
            top_k: Number of chunks to retrieve

        Returns:
            Answer text
        """
        with RequestContext(operation="answer", top_k=top_k if use_retrieval else None):
            if not use_retrieval:
                log_with_context(logger, logging.INFO, "Answering without retrieval")
                return self.chat_provider.answer(self.system_prompt, question)

            results = self.retrieve(question, top_k)
            context = self.assembler.assemble(results)

            log_with_context(
                logger, logging.INFO,
                f"Answering with {min(len(results), self.assembler.policy.max_items)} context items",
            )
            return self.chat_provider.answer(self.system_prompt, question, context)

