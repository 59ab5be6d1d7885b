"""
Unit Tests for Embedding Providers
"""

from unittest.mock import MagicMock, patch
from types import SimpleNamespace

import httpx
import numpy as np
import pytest
from openai import APIConnectionError

from mini_rag.core.errors import EmbeddingError
from mini_rag.core.protocols import INPUT_TYPE_PASSAGE, INPUT_TYPE_QUERY
from mini_rag.embeddings import (
    EmbeddingConfig,
    MockEmbeddings,
    OpenAIEmbeddings,
    get_embedding_provider,
)


def _fake_client(vectors):
    client = MagicMock()
    client.embeddings.create.return_value = SimpleNamespace(
        data=[SimpleNamespace(embedding=v) for v in vectors]
    )
    return client


class TestMockEmbeddings:
    def test_deterministic(self):
        embeddings = MockEmbeddings(dimensions=16)
        np.testing.assert_array_equal(embeddings.embed("hello"), embeddings.embed("hello"))

    def test_different_texts_differ(self):
        embeddings = MockEmbeddings(dimensions=16)
        assert not np.array_equal(embeddings.embed("hello"), embeddings.embed("world"))

    def test_dimensions_and_finiteness(self):
        vector = MockEmbeddings(dimensions=384).embed("Caneca de Café 50ml")
        assert vector.shape == (384,)
        assert np.all(np.isfinite(vector))

    def test_batch(self):
        assert len(MockEmbeddings(dimensions=8).embed_batch(["a", "b", "c"])) == 3

    def test_input_type_does_not_change_mock_vectors(self):
        embeddings = MockEmbeddings(dimensions=16)
        np.testing.assert_array_equal(
            embeddings.embed("caneca", INPUT_TYPE_QUERY), embeddings.embed("caneca", INPUT_TYPE_PASSAGE)
        )


class TestOpenAIEmbeddings:
    def test_embed(self):
        client = _fake_client([[0.1, 0.2]])
        embeddings = OpenAIEmbeddings(model="nomic-embed-text", client=client)

        vector = embeddings.embed("hello")

        assert vector.dtype == np.float32
        np.testing.assert_allclose(vector, [0.1, 0.2], rtol=1e-6)
        client.embeddings.create.assert_called_once_with(input="hello", model="nomic-embed-text")

    def test_query_and_passage_prefixes(self):
        client = _fake_client([[0.1]])
        embeddings = OpenAIEmbeddings(
            model="multilingual-e5-small", client=client, query_prefix="query: ", passage_prefix="passage: "
        )

        embeddings.embed("Quanto custa a caneca?")
        embeddings.embed("Caneca 50ml R$ 9,90", INPUT_TYPE_PASSAGE)

        sent = [c.kwargs["input"] for c in client.embeddings.create.call_args_list]
        assert sent == ["query: Quanto custa a caneca?", "passage: Caneca 50ml R$ 9,90"]

    def test_batch_applies_prefix_to_every_text(self):
        client = _fake_client([[1.0], [2.0]])
        embeddings = OpenAIEmbeddings(client=client, passage_prefix="passage: ")

        embeddings.embed_batch(["a", "b"], input_type=INPUT_TYPE_PASSAGE)

        assert client.embeddings.create.call_args.kwargs["input"] == ["passage: a", "passage: b"]

    def test_unknown_input_type_rejected_before_request(self):
        client = _fake_client([[1.0]])

        with pytest.raises(ValueError, match="input_type"):
            OpenAIEmbeddings(client=client).embed("a", input_type="document")

        client.embeddings.create.assert_not_called()

    def test_embed_batch_empty_skips_call(self):
        client = _fake_client([])
        assert OpenAIEmbeddings(client=client).embed_batch([]) == []
        client.embeddings.create.assert_not_called()

    def test_embed_batch(self):
        client = _fake_client([[1.0], [2.0]])
        vectors = OpenAIEmbeddings(client=client).embed_batch(["a", "b"])
        assert [float(v[0]) for v in vectors] == [1.0, 2.0]

    def test_connection_failure_raises_embedding_error(self):
        client = MagicMock()
        client.embeddings.create.side_effect = APIConnectionError(
            request=httpx.Request("POST", "http://localhost:8000/v1/embeddings")
        )

        with pytest.raises(EmbeddingError) as exc_info:
            OpenAIEmbeddings(client=client).embed("hello")

        assert isinstance(exc_info.value.__cause__, APIConnectionError)

    def test_known_dimensions(self):
        assert OpenAIEmbeddings(model="text-embedding-3-large", client=MagicMock()).dimensions == 3072


class TestFactory:
    def test_mock(self):
        assert isinstance(get_embedding_provider(use_mock=True), MockEmbeddings)

    def test_config_selects_mock(self):
        assert isinstance(get_embedding_provider(config=EmbeddingConfig(use_mock=True)), MockEmbeddings)

    def test_config_from_env(self):
        with patch.dict(
            "os.environ",
            {"EMBEDDING_MODEL": "bge-m3", "EMBEDDINGS_BASE_URL": "http://embed:8000/v1", "USE_MOCK_EMBEDDINGS": "1"},
            clear=True,
        ):
            config = EmbeddingConfig.from_env()

        assert config.model == "bge-m3"
        assert config.base_url == "http://embed:8000/v1"
        assert config.api_key is None
        assert config.use_mock is True

    def test_openai_provider_uses_base_url(self):
        config = EmbeddingConfig(model="bge-m3", base_url="http://embed:8000/v1", api_key="k")
        provider = get_embedding_provider(use_mock=False, config=config)

        assert isinstance(provider, OpenAIEmbeddings)
        assert provider.model == "bge-m3"
        assert str(provider._client.base_url).startswith("http://embed:8000/v1")

    def test_prefixes_from_env_reach_provider(self):
        with patch.dict(
            "os.environ",
            {"EMBEDDING_QUERY_PREFIX": "query: ", "EMBEDDING_PASSAGE_PREFIX": "passage: ", "OPENAI_API_KEY": "k"},
            clear=True,
        ):
            config = EmbeddingConfig.from_env()

        provider = get_embedding_provider(use_mock=False, config=config)

        assert (config.query_prefix, config.passage_prefix) == ("query: ", "passage: ")
        assert provider._prefixes == {INPUT_TYPE_QUERY: "query: ", INPUT_TYPE_PASSAGE: "passage: "}
