"""
PDF text provider using LangChain PyPDFLoader.

Extracts ordered page texts with PyPDFLoader and the top-level outline
(bookmarks) with pypdf. Parsed documents are kept in a small in-memory
cache so the per-chapter embed jobs of one document parse it only once.

Dependencies: langchain_community.document_loaders, pypdf
System role: Document text provider for ingestion
"""

import logging
import os
from collections import OrderedDict
from pathlib import Path

from fastapi.concurrency import run_in_threadpool
from langchain_community.document_loaders import PyPDFLoader
from pypdf import PdfReader

from pagewise.core.exceptions import DocumentError, UnrecoverableInputError
from pagewise.core.interfaces import DocumentText, OutlineEntry

logger = logging.getLogger(__name__)


class PdfTextProvider:
    """Load page texts and outline of PDF files."""

    def __init__(self, cache_size: int = 4) -> None:
        """
        Initialize provider.

        Args:
            cache_size: Number of parsed documents kept in memory
        """
        self._cache_size = cache_size
        self._cache: OrderedDict[tuple[str, float], DocumentText] = OrderedDict()

    async def load(self, path: str) -> DocumentText:
        """
        Extract a PDF's page texts and outline.

        Args:
            path: Path to the PDF file

        Returns:
            DocumentText: Pages in order plus top-level outline entries

        Raises:
            DocumentError: When the file is missing or cannot be parsed
            UnrecoverableInputError: When the file is not a PDF
        """
        file_path = Path(path)
        if not file_path.exists():
            raise DocumentError(f"File not found: {path}", {"path": path})
        if file_path.suffix.lower() != ".pdf":
            raise UnrecoverableInputError(
                f"Unsupported file format: {file_path.suffix}. Only PDF files are supported.",
                {"path": path},
            )

        key = (str(file_path.resolve()), os.path.getmtime(file_path))
        cached = self._cache.get(key)
        if cached is not None:
            self._cache.move_to_end(key)
            return cached

        logger.info(f"{__name__}:load - Parsing {file_path.name}")
        document_text = await run_in_threadpool(self._parse, str(file_path))
        logger.info(
            f"{__name__}:load - Parsed {file_path.name}: "
            f"pages={document_text.page_count}, outline_entries={len(document_text.outline)}"
        )

        self._cache[key] = document_text
        while len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)
        return document_text

    def _parse(self, path: str) -> DocumentText:
        try:
            pages = [page.page_content for page in PyPDFLoader(path).load()]
        except Exception as e:
            raise DocumentError(f"Failed to parse PDF: {e}", {"path": path}) from e
        return DocumentText(pages=pages, outline=self._read_outline(path))

    @staticmethod
    def _read_outline(path: str) -> list[OutlineEntry]:
        """Top-level outline entries in page order; empty when the PDF has none."""
        try:
            reader = PdfReader(path)
            entries = []
            for item in reader.outline:
                # Nested lists hold sub-sections.
                if isinstance(item, list):
                    continue
                page_index = reader.get_destination_page_number(item)
                if page_index is None or page_index < 0:
                    continue
                entries.append(OutlineEntry(title=str(item.title).strip(), page=page_index + 1))
        except Exception as e:
            logger.warning(f"{__name__}:_read_outline - Outline unavailable for {path}: {type(e).__name__}: {e}")
            return []
        return sorted(entries, key=lambda entry: entry.page)
