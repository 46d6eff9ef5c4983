"""Tests for the rag_data tool adapter."""
import pytest

from mdrag.errors import InvalidRequestError
from mdrag.retrieve import DocumentRetriever
from mdrag.tools import EMPTY_DATABASE_MESSAGE, NO_RESULTS_MESSAGE, parse_arguments, rag_data


@pytest.fixture
def retriever(store, make_embedder):
    return DocumentRetriever(store, make_embedder(default=(1.0, 0.0)))


class TestParseArguments:

    def test_defaults(self):
        request = parse_arguments({"query": "backup policy"})

        assert request.query == "backup policy"
        assert request.top_k == 5
        assert request.use_reranker is False

    def test_coerces_loose_values(self):
        request = parse_arguments({"query": "q", "top_k": "3", "use_reranker": "true", "extra": 1})

        assert request.top_k == 3
        assert request.use_reranker is True

    @pytest.mark.parametrize("arguments", [None, {}, {"query": "   "}, {"query": "q", "top_k": 0}, {"query": "q", "top_k": "many"}])
    def test_invalid(self, arguments):
        with pytest.raises(InvalidRequestError):
            parse_arguments(arguments)


class TestRagData:

    def test_empty_database(self, store, retriever):
        assert rag_data({"query": "anything"}, retriever, store) == EMPTY_DATABASE_MESSAGE

    def test_results_formatted(self, store, retriever, add_document):
        add_document("/notes/keys.md", [("Rotate keys every 90 days.", [1.0, 0.0]), ("Unrelated", [0.0, 1.0])])

        text = rag_data({"query": "key rotation", "top_k": 1}, retriever, store)

        assert "Result #1 | Similarity: 1.0000" in text
        assert "File: keys.md" in text
        assert "Rotate keys every 90 days." in text
        assert "Result #2" not in text

    def test_no_results(self, store, retriever, add_document):
        """Chunks exist but none can be scored."""
        add_document("/notes/broken.md", [("broken", b"\x00\x00\x00")])

        assert rag_data({"query": "q"}, retriever, store) == NO_RESULTS_MESSAGE
