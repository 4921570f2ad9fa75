"""Language-aware chunking of source files for embedding."""

from dataclasses import dataclass
from typing import Any

from langchain_text_splitters import RecursiveCharacterTextSplitter

from .utils import language_for_path


@dataclass
class Chunk:
    """A slice of a file, prefixed with the file-name header."""

    text: str
    start_line: int  # 1-based, inclusive
    end_line: int


def chunk_header(file_path: str) -> str:
    return f"File name: {file_path}\n---\n\n"


def build_splitter(file_path: str, chunk_size: int) -> RecursiveCharacterTextSplitter:
    options: dict[str, Any] = {
        "chunk_size": chunk_size,
        "chunk_overlap": 0,
        "keep_separator": True,
        "add_start_index": True,
    }
    language = language_for_path(file_path)
    if language is None:
        return RecursiveCharacterTextSplitter(**options)
    return RecursiveCharacterTextSplitter.from_language(language, **options)


def chunk_file(file_path: str, content: str, chunk_size: int = 1000) -> list[Chunk]:
    """Split content into chunks with their 1-based line ranges."""
    if not content.strip():
        return []

    splitter = build_splitter(file_path, chunk_size)
    header = chunk_header(file_path)
    chunks: list[Chunk] = []
    search_from = 0

    for document in splitter.create_documents([content]):
        text = document.page_content
        start = document.metadata.get("start_index", -1)
        if start < 0:
            start = max(content.find(text, search_from), search_from)
        search_from = start + len(text)

        start_line = content.count("\n", 0, start) + 1
        end_line = start_line + text.count("\n")
        chunks.append(
            Chunk(text=header + text, start_line=start_line, end_line=end_line)
        )

    return chunks
