"""
Answer Generator - turns a question plus retrieved chunks into an answer.

Talks to any OpenAI-compatible chat completions endpoint. The default
configuration points at a local Ollama server (http://localhost:11434/v1),
which serves small open models without an API key.

Downloading a missing model is not part of the OpenAI-compatible API, so
pull_model() calls Ollama's native /api/pull endpoint over httpx.

PATTERN: Protocol → Production impl → Test double → Factory
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAI, OpenAIError

from mini_rag.core.errors import GenerationError
from mini_rag.core.protocols import AnswerGenerator
from mini_rag.generation.prompts import FALLBACK_ANSWER, SYSTEM_PROMPT, build_user_prompt

if TYPE_CHECKING:
    from mini_rag.retrieval.document import Document

logger = logging.getLogger(__name__)

TEMPERATURE = 0.7
MAX_TOKENS = 500
TOP_P = 0.9


@dataclass
class LLMConfig:
    """Configuration for the answer generator.

    Environment Variables:
        LLM_MODEL: Model name (default: llama3.2:1b)
        LLM_BASE_URL: OpenAI-compatible base URL (default: local Ollama)
        LLM_API_KEY: API key (falls back to OPENAI_API_KEY)
        LLM_TIMEOUT_SECONDS: Request timeout; first runs can be slow (default: 300)
        OLLAMA_URL: Native Ollama API root used for model pulls
            (default: LLM_BASE_URL without the /v1 suffix)
        USE_MOCK_LLM: Use MockAnswerGenerator (default: false)
    """

    model: str = "llama3.2:1b"
    base_url: str = "http://localhost:11434/v1"
    api_key: str | None = None
    timeout_seconds: float = 300.0
    ollama_url: str | None = None
    use_mock: bool = False

    @classmethod
    def from_env(cls) -> "LLMConfig":
        """Load config from environment variables."""
        return cls(
            model=os.environ.get("LLM_MODEL", "llama3.2:1b"),
            base_url=os.environ.get("LLM_BASE_URL", "http://localhost:11434/v1"),
            api_key=os.environ.get("LLM_API_KEY") or os.environ.get("OPENAI_API_KEY") or None,
            timeout_seconds=float(os.environ.get("LLM_TIMEOUT_SECONDS", "300")),
            ollama_url=os.environ.get("OLLAMA_URL") or None,
            use_mock=os.environ.get("USE_MOCK_LLM", "false").lower() in ("true", "1", "yes"),
        )

    @property
    def native_url(self) -> str:
        """Root of the Ollama API that is not OpenAI-compatible."""
        if self.ollama_url:
            return self.ollama_url.rstrip("/")
        return self.base_url.rstrip("/").removesuffix("/v1")


class OpenAIAnswerGenerator:
    """Production answer generator using the chat completions API."""

    def __init__(
        self,
        config: LLMConfig | None = None,
        client: OpenAI | None = None,
        http_client: httpx.Client | None = None,
    ):
        self.config = config or LLMConfig.from_env()
        # Ollama ignores the key but the SDK requires one
        self._client = client or OpenAI(
            api_key=self.config.api_key or "ollama",
            base_url=self.config.base_url,
            timeout=self.config.timeout_seconds,
        )
        self._owns_http = http_client is None
        self._http = http_client or httpx.Client(
            base_url=self.config.native_url, timeout=self.config.timeout_seconds
        )

    @property
    def model(self) -> str:
        return self.config.model

    def generate(self, question: str, documents: list[Document]) -> str:
        """
        Generate an answer grounded on the documents.

        Raises:
            GenerationError: timeout, connection failure or error status
        """
        try:
            response = self._client.chat.completions.create(
                model=self.config.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": build_user_prompt(question, documents)},
                ],
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
                top_p=TOP_P,
            )
        except APITimeoutError as e:
            raise GenerationError("LLM answer generation timed out", details={"model": self.model}) from e
        except APIConnectionError as e:
            raise GenerationError(f"Failed to communicate with the LLM: {e}", details={"model": self.model}) from e
        except APIStatusError as e:
            raise GenerationError(
                f"LLM returned HTTP {e.status_code}",
                details={"model": self.model, "status_code": e.status_code},
            ) from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            logger.warning("Model %s returned an empty answer", self.model)
            return FALLBACK_ANSWER
        return content.strip()

    def is_model_available(self) -> bool:
        """
        Check whether the server lists the configured model.

        Tags are ignored: "llama3.2:1b" matches any listed "llama3.2" variant.
        """
        family = self.config.model.split(":")[0]
        try:
            models = self._client.models.list()
        except OpenAIError as e:
            logger.warning("Could not list models: %s", e)
            return False
        return any(family in model.id for model in models)

    def pull_model(self) -> str:
        """
        Download the configured model through Ollama's /api/pull.

        stream=False makes Ollama answer once, after the download finished.

        Raises:
            GenerationError: the server was unreachable or refused the pull
        """
        logger.info("Pulling model %s from %s", self.model, self.config.native_url)
        try:
            response = self._http.post("/api/pull", json={"name": self.model, "stream": False})
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise GenerationError(
                f"Model pull returned HTTP {e.response.status_code}",
                details={"model": self.model, "status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise GenerationError(f"Failed to pull model: {e}", details={"model": self.model}) from e

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}
        if isinstance(body, dict) and body.get("error"):
            raise GenerationError(f"Model pull failed: {body['error']}", details={"model": self.model})

        return f"{self.model} Model downloaded successfully"

    def close(self) -> None:
        if self._owns_http:
            self._http.close()


@dataclass
class MockAnswerGenerator:
    """
    Mock answer generator for testing without a model server.

    Records every question and the documents it was given. A successful
    pull_model() makes the model available; set pull_error to make it fail.
    """

    answer: str | None = None
    available: bool = True
    model: str = "mock-llm"
    pull_error: str | None = None
    calls: list[tuple[str, list]] = field(default_factory=list)
    pulls: int = 0

    def generate(self, question: str, documents: list[Document]) -> str:
        self.calls.append((question, list(documents)))
        if self.answer is not None:
            return self.answer
        return f"Mock answer to '{question}' using {len(documents)} documents"

    def is_model_available(self) -> bool:
        return self.available

    def pull_model(self) -> str:
        self.pulls += 1
        if self.pull_error is not None:
            raise GenerationError(self.pull_error, details={"model": self.model})
        self.available = True
        return f"{self.model} Model downloaded successfully"


def get_answer_generator(
    use_mock: bool | None = None,
    config: LLMConfig | None = None,
) -> AnswerGenerator:
    """
    Factory function to get the appropriate answer generator.

    Args:
        use_mock: If True, return MockAnswerGenerator (default: USE_MOCK_LLM)
        config: Generator configuration (loaded from env if not provided)
    """
    config = config or LLMConfig.from_env()
    if use_mock is None:
        use_mock = config.use_mock

    if use_mock:
        return MockAnswerGenerator()
    return OpenAIAnswerGenerator(config)
