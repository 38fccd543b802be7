"""
Document loading.

DirectoryLoader reads the immediate entries of a folder and hands each file
to a format-specific LangChain loader:

    .pdf          → PyPDFLoader, one Document per page
    .txt, .md     → TextLoader, one Document per file
    anything else → skipped (logged, counted in the LoadReport)

A file that cannot be parsed or decoded does not stop the batch. It is
logged as a LoadError and recorded in loader.report.failed_files, and the
remaining files are still loaded.

Usage:
    loader = DirectoryLoader()
    documents = loader.load("docs/")
    print(loader.report.failed_files)
"""

from pathlib import Path
from typing import Union

import structlog
from langchain_community.document_loaders import PyPDFLoader, TextLoader
from langchain_core.documents import Document

from localrag.base.indexer import BaseLoader
from localrag.exceptions import LoadError
from localrag.models.result import LoadReport
from localrag.utils.helpers import replace_t_with_space

logger = structlog.get_logger()

PDF_EXTENSIONS = frozenset({".pdf"})
TEXT_EXTENSIONS = frozenset({".txt", ".md"})
SUPPORTED_EXTENSIONS = PDF_EXTENSIONS | TEXT_EXTENSIONS


class DirectoryLoader(BaseLoader):
    """Loads every supported file directly inside a directory (non-recursive)."""

    def __init__(self, encoding: str = "utf-8"):
        self.encoding = encoding
        self.report = LoadReport()

    def load(self, source: Union[str, Path]) -> list[Document]:
        """
        Load all supported files in a directory.

        Entries are visited in sorted name order so repeated runs produce
        documents (and therefore index insertion order) deterministically.

        Raises:
            LoadError: If the directory does not exist.
        """
        directory = Path(source)
        if not directory.is_dir():
            raise LoadError(f"Document directory not found: {directory}", path=str(directory))

        self.report = LoadReport(directory=str(directory))
        documents: list[Document] = []

        for path in sorted(directory.iterdir()):
            if not path.is_file():
                continue

            if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
                logger.debug("unsupported_file_skipped", path=str(path))
                self.report.skipped_files.append(str(path))
                continue

            try:
                loaded = self.load_file(path)
            except LoadError as e:
                logger.warning("document_load_failed", path=str(path), error=str(e))
                self.report.failed_files[str(path)] = str(e)
                continue

            documents.extend(loaded)
            self.report.loaded_files.append(str(path))

        self.report.documents = len(documents)

        logger.info(
            "documents_loaded",
            directory=str(directory),
            files=len(self.report.loaded_files),
            documents=len(documents),
            skipped=len(self.report.skipped_files),
            failed=len(self.report.failed_files),
        )

        return documents

    def load_file(self, path: Path) -> list[Document]:
        """
        Load a single supported file.

        Returns:
            One Document per page for PDFs, one Document for text/markdown.

        Raises:
            LoadError: If the extension is unsupported or the file cannot be read.
        """
        suffix = path.suffix.lower()

        try:
            if suffix in PDF_EXTENSIONS:
                documents = PyPDFLoader(str(path)).load()
            elif suffix in TEXT_EXTENSIONS:
                documents = TextLoader(str(path), encoding=self.encoding).load()
            else:
                raise LoadError(f"Unsupported file type: {path.name}", path=str(path))
        except LoadError:
            raise
        except Exception as e:
            # pypdf, decode and OS errors all surface here
            raise LoadError(f"Could not read {path.name}: {e}", path=str(path)) from e

        source = str(path)
        for doc in documents:
            doc.metadata["source"] = source
            page = doc.metadata.get("page")
            doc.metadata["doc_id"] = f"{source}#page={page}" if page is not None else source

        logger.debug("file_loaded", path=source, documents=len(documents))

        return replace_t_with_space(documents)
