"""
Ollama provider client.

Thin HTTP client for Ollama's native REST API, covering the two calls the
RAG pipeline makes:
- /api/embed for chunk and query embeddings
- /api/chat for answer generation (always non-streaming)
"""

import json
import logging
import math
from typing import Any, Dict, List, Optional, Sequence
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from ..contracts.retrieval_contracts import EmbeddingVector
from ..core.exceptions import ProviderError


logger = logging.getLogger(__name__)


DEFAULT_BASE_URL = "http://localhost:11434"
DEFAULT_CHAT_MODEL = "llama3.2"
DEFAULT_EMBED_MODEL = "nomic-embed-text"

PROVIDER_NAME = "ollama"


CONTEXT_INSTRUCTIONS = (
    "When context is provided between <context> and </context> tags, base your answer on it.\n"
    "The context items are ordered by relevance, most relevant first."
)


def build_messages(
    system_prompt: str,
    question: str,
    context: Optional[str] = None,
    images: Optional[Sequence[str]] = None,
) -> List[Dict[str, Any]]:
    """
    Build the chat messages for a question.

    When context is given, the context instructions and a <context> block
    are appended to the system prompt. The user message is the question
    prefixed with "Question: ", carrying any base64-encoded images.
    """
    system_content = system_prompt
    if context is not None:
        system_content = (
            f"{system_prompt}\n{CONTEXT_INSTRUCTIONS}\n\n<context>\n{context}\n</context>"
        )

    user_message: Dict[str, Any] = {"role": "user", "content": f"Question: {question}"}
    if images:
        user_message["images"] = list(images)

    return [
        {"role": "system", "content": system_content},
        user_message,
    ]


class OllamaClient:
    """
    HTTP client for the Ollama embedding and chat endpoints.

    Failures are never retried here; every transport, HTTP or decoding
    failure surfaces as a ProviderError.

    Example:
        >>> client = OllamaClient(embed_model="nomic-embed-text")
        >>> vector = client.embed("The cat sat.")
        >>> reply = client.answer("Be concise.", "Where did the cat sit?", context="The cat sat.")
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        chat_model: str = DEFAULT_CHAT_MODEL,
        embed_model: str = DEFAULT_EMBED_MODEL,
        timeout_seconds: Optional[float] = None,
    ):
        """
        Initialize the Ollama client.

        Args:
            base_url: Ollama server URL
            chat_model: Model used for /api/chat
            embed_model: Model used for /api/embed
            timeout_seconds: Socket timeout (None uses the global default)
        """
        self.base_url = base_url.rstrip("/")
        self.chat_model = chat_model
        self.embed_model = embed_model
        self.timeout = timeout_seconds

        logger.debug(
            f"Initialized OllamaClient: base_url={self.base_url}, "
            f"chat_model={self.chat_model}, embed_model={self.embed_model}"
        )

    def embed(self, text: str) -> EmbeddingVector:
        """
        Embed a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            ProviderError: If the request fails or no usable vector is returned
        """
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> List[EmbeddingVector]:
        """
        Embed several texts with one request.

        Args:
            texts: Texts to embed

        Returns:
            One embedding vector per input, in input order

        Raises:
            ProviderError: If the request fails, the vector count differs
                from the input count or any vector is empty or non-numeric
        """
        if not texts:
            return []

        payload = {
            "model": self.embed_model,
            "input": list(texts),
        }

        result = self._post("/api/embed", payload)

        embeddings = result.get("embeddings")
        if embeddings is not None and not isinstance(embeddings, list):
            raise ProviderError(
                f"Ollama embed returned embeddings of type {type(embeddings).__name__}",
                provider=PROVIDER_NAME,
            )

        if not embeddings:
            raise ProviderError(
                "Ollama embed returned no embeddings",
                provider=PROVIDER_NAME,
            )

        if len(embeddings) != len(texts):
            raise ProviderError(
                f"Ollama embed returned {len(embeddings)} embeddings for {len(texts)} inputs",
                provider=PROVIDER_NAME,
            )

        return [self._to_vector(embedding) for embedding in embeddings]

    def chat(self, messages: List[Dict[str, Any]]) -> str:
        """
        Generate a reply using the native /api/chat endpoint.

        Args:
            messages: List of message dicts with 'role' and 'content'

        Returns:
            The assistant message content

        Raises:
            ProviderError: If the request fails or the reply has no content
        """
        payload = {
            "model": self.chat_model,
            "messages": messages,
            "stream": False,
        }

        result = self._post("/api/chat", payload)

        message = result.get("message") or {}
        if not isinstance(message, dict):
            raise ProviderError(
                f"Ollama chat returned a message of type {type(message).__name__}",
                provider=PROVIDER_NAME,
            )

        content = message.get("content")
        if content is None:
            raise ProviderError(
                "Ollama chat response has no message content",
                provider=PROVIDER_NAME,
            )

        return content

    def answer(
        self,
        system_prompt: str,
        question: str,
        context: Optional[str] = None,
        images: Optional[Sequence[str]] = None,
    ) -> str:
        """
        Answer a question, optionally grounded in retrieved context.

        Args:
            system_prompt: Instructions for the model
            question: The user's question
            context: Assembled context, or None to answer without retrieval
            images: Base64-encoded images attached to the question

        Returns:
            Answer text
        """
        return self.chat(build_messages(system_prompt, question, context, images))

    def _to_vector(self, embedding: Any) -> EmbeddingVector:
        """Validate a raw embedding and convert it to a tuple of floats."""
        if not embedding or not isinstance(embedding, list):
            raise ProviderError(
                "Ollama embed returned an empty embedding",
                provider=PROVIDER_NAME,
            )

        try:
            vector = tuple(float(value) for value in embedding)
        except (TypeError, ValueError) as e:
            raise ProviderError(
                f"Ollama embed returned a non-numeric embedding: {e}",
                provider=PROVIDER_NAME,
            ) from e

        if not all(math.isfinite(value) for value in vector):
            raise ProviderError(
                "Ollama embed returned non-finite values",
                provider=PROVIDER_NAME,
            )

        return vector

    @staticmethod
    def _read_error_body(error: HTTPError) -> str:
        """Best-effort text of an HTTP error response."""
        if not error.fp:
            return str(error)
        try:
            return error.read().decode("utf-8", errors="replace")
        except OSError:
            return str(error)

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        POST a JSON payload to the Ollama API.

        Args:
            path: Endpoint path
            payload: Request payload

        Returns:
            Decoded JSON response

        Raises:
            ProviderError: If the request fails
        """
        url = f"{self.base_url}{path}"

        try:
            data = json.dumps(payload).encode("utf-8")
            request = Request(
                url,
                data=data,
                headers={"Content-Type": "application/json"},
                method="POST",
            )

            logger.debug(f"Making request to {url}")

            kwargs = {}
            if self.timeout is not None:
                kwargs["timeout"] = self.timeout

            with urlopen(request, **kwargs) as response:
                result = json.loads(response.read().decode("utf-8"))

        except HTTPError as e:
            error_body = self._read_error_body(e)
            logger.error(f"HTTP error from Ollama {path}: {e.code} - {error_body}")
            raise ProviderError(
                f"Ollama API error: {e.code} - {error_body}",
                provider=PROVIDER_NAME,
                status_code=e.code,
            ) from e
        except URLError as e:
            logger.error(f"Failed to connect to Ollama: {e}")
            raise ProviderError(
                f"Failed to connect to Ollama at {self.base_url}: {e}",
                provider=PROVIDER_NAME,
            ) from e
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON response from Ollama {path}: {e}")
            raise ProviderError(
                f"Invalid JSON response from Ollama: {e}",
                provider=PROVIDER_NAME,
            ) from e
        except Exception as e:
            logger.error(f"Unexpected error calling Ollama {path}: {e}")
            raise ProviderError(
                f"Unexpected error calling Ollama: {e}",
                provider=PROVIDER_NAME,
            ) from e

        if not isinstance(result, dict):
            raise ProviderError(
                f"Unexpected response shape from Ollama {path}",
                provider=PROVIDER_NAME,
            )

        return result
