"""Tests for SimpleRAG: the full pipeline on a Chroma index in tmp_path."""

from unittest.mock import patch

import pytest

from localrag.exceptions import ConfigError, LoadError
from localrag.models.result import RAGResponse
from localrag.session import ChatSession
from localrag.techniques.simple import SimpleRAG

from conftest import KeywordEmbeddings


@pytest.fixture
def rag(rag_config, keyword_embeddings, mock_llm):
    return SimpleRAG(rag_config, embeddings=keyword_embeddings, llm=mock_llm)


class TestSimpleRAG:

    def test_capital_of_france(self, rag, docs_dir, mock_llm):
        rag.build_index(docs_dir)

        response = rag.query("What is the capital of France?", k=1)

        assert isinstance(response, RAGResponse)
        assert response.answer == "Paris"
        assert response.technique == "simple_rag"
        top = response.retrieval.documents[0]
        assert top.chunk.content == "The capital of France is Paris."
        assert top.chunk.metadata.source == str(docs_dir / "france.txt")
        assert "The capital of France is Paris." in response.generation.prompt
        assert response.generation.sources == [str(docs_dir / "france.txt")]
        mock_llm.invoke.assert_called_once_with(response.generation.prompt)

    def test_build_index_result(self, rag, docs_dir):
        result = rag.build_index(docs_dir)

        assert result.added == 2
        assert result.total == 2
        assert result.load_report.skipped_files == [str(docs_dir / "image.png")]
        assert len(result.load_report.loaded_files) == 2

    def test_rebuilding_unchanged_directory_adds_nothing(self, rag, docs_dir, keyword_embeddings):
        rag.build_index(docs_dir)
        before = rag.query("capital of France").retrieval
        calls = keyword_embeddings.document_calls

        result = rag.build_index(docs_dir)

        assert result.added == 0
        assert result.skipped == 2
        assert keyword_embeddings.document_calls == calls
        after = rag.query("capital of France").retrieval
        assert [d.chunk.content for d in after.documents] == [d.chunk.content for d in before.documents]

    def test_new_file_only_adds_its_chunks(self, rag, docs_dir):
        rag.build_index(docs_dir)
        (docs_dir / "germany.txt").write_text("The capital of Germany is Berlin.", encoding="utf-8")

        result = rag.build_index(docs_dir)

        assert result.added == 1
        assert result.total == 3

    def test_rebuild_flag_resets(self, rag, docs_dir):
        rag.build_index(docs_dir)
        (docs_dir / "fruit.md").unlink()

        result = rag.build_index(docs_dir, rebuild=True)

        assert result.added == 1
        assert result.total == 1

    def test_missing_directory(self, rag, tmp_path):
        with pytest.raises(LoadError):
            rag.build_index(tmp_path / "missing")

    def test_query_empty_index(self, rag, mock_llm):
        response = rag.query("Anything?")

        assert response.retrieval.documents == []
        assert response.answer == "Paris"
        mock_llm.invoke.assert_called_once()

    def test_invalid_k(self, rag, docs_dir, mock_llm):
        rag.build_index(docs_dir)
        with pytest.raises(ConfigError):
            rag.query("q", k=0)
        mock_llm.invoke.assert_not_called()

    def test_index_persists_across_instances(self, rag_config, docs_dir, mock_llm):
        SimpleRAG(rag_config, embeddings=KeywordEmbeddings(), llm=mock_llm).build_index(docs_dir)

        later = SimpleRAG(rag_config, embeddings=KeywordEmbeddings(), llm=mock_llm)
        response = later.query("What is the capital of France?", k=1)

        assert response.retrieval.documents[0].chunk.content == "The capital of France is Paris."

    def test_session(self, rag):
        session = rag.session(k=2, show_sources=False)
        assert isinstance(session, ChatSession)
        assert session.k == 2
        assert session.show_sources is False

    def test_stats(self, rag, docs_dir, index_dir):
        rag.build_index(docs_dir)
        stats = rag.stats()

        assert stats["directory"] == str(index_dir)
        assert stats["vector_count"] == 2
        assert stats["embedding_model"] == "ollama/nomic-embed-text"
        assert stats["embedding_dimension"] == 64

    @patch("localrag.techniques.simple.get_embedding_model")
    def test_builds_embeddings_from_config(self, mock_factory, rag_config, mock_llm):
        mock_factory.return_value = KeywordEmbeddings()
        SimpleRAG(rag_config, llm=mock_llm)
        mock_factory.assert_called_once_with(rag_config.embedding)

    @patch("localrag.generation.generate.get_llm")
    def test_indexing_does_not_build_chat_model(self, mock_get_llm, rag_config, keyword_embeddings, docs_dir):
        rag = SimpleRAG(rag_config, embeddings=keyword_embeddings)
        rag.build_index(docs_dir)
        mock_get_llm.assert_not_called()
