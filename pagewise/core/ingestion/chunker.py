"""
Chapter chunking using RecursiveCharacterTextSplitter.

Splits a chapter's slice of the document text into overlapping chunks and
maps each chunk back to the page range it covers.

Dependencies: langchain_text_splitters
System role: Chunk production for the embed job
"""

from dataclasses import dataclass

from langchain_text_splitters import RecursiveCharacterTextSplitter

from pagewise.core.interfaces import DocumentText
from pagewise.core.token_counter import estimate_tokens


@dataclass(frozen=True)
class ChunkDraft:
    """A chunk ready to be persisted."""

    chunk_index: int
    content: str
    page_start: int
    page_end: int
    token_count: int


class ChapterChunker:
    """Split chapter text into page-attributed chunks."""

    def __init__(self, chunk_size: int = 1500, chunk_overlap: int = 200) -> None:
        """
        Initialize chunker with splitter configuration.

        Args:
            chunk_size: Maximum chunk size in characters
            chunk_overlap: Overlap between consecutive chunks
        """
        self._splitter = RecursiveCharacterTextSplitter(
            chunk_size=chunk_size,
            chunk_overlap=chunk_overlap,
            add_start_index=True,
            length_function=len,
        )

    def chunk(self, document_text: DocumentText, start_idx: int, end_idx: int) -> list[ChunkDraft]:
        """
        Chunk the text between two offsets of the document.

        Args:
            document_text: Extracted document text
            start_idx: Chapter start offset into ``document_text.full_text``
            end_idx: Chapter end offset (exclusive)

        Returns:
            list[ChunkDraft]: Chunks in reading order; empty for blank chapters
        """
        chapter_text = document_text.full_text[start_idx:end_idx]
        if not chapter_text.strip():
            return []

        drafts = []
        for piece in self._splitter.create_documents([chapter_text]):
            content = piece.page_content
            offset = start_idx + max(piece.metadata.get("start_index", 0), 0)
            drafts.append(
                ChunkDraft(
                    chunk_index=len(drafts),
                    content=content,
                    page_start=document_text.page_for_offset(offset),
                    page_end=document_text.page_for_offset(offset + max(len(content) - 1, 0)),
                    token_count=estimate_tokens(content),
                )
            )
        return drafts
