"""Utility functions and constants for code indexing."""

import hashlib
import os

from langchain_text_splitters import Language

# Extension to splitter language mapping; unknown extensions use the
# generic recursive splitter.
EXTENSION_MAP: dict[str, Language] = {
    ".py": Language.PYTHON,
    ".js": Language.JS,
    ".jsx": Language.JS,
    ".mjs": Language.JS,
    ".cjs": Language.JS,
    ".ts": Language.TS,
    ".tsx": Language.TS,
    ".go": Language.GO,
    ".java": Language.JAVA,
    ".kt": Language.KOTLIN,
    ".c": Language.C,
    ".cpp": Language.CPP,
    ".hpp": Language.CPP,
    ".cc": Language.CPP,
    ".cxx": Language.CPP,
    ".cs": Language.CSHARP,
    ".php": Language.PHP,
    ".proto": Language.PROTO,
    ".rb": Language.RUBY,
    ".rs": Language.RUST,
    ".scala": Language.SCALA,
    ".swift": Language.SWIFT,
    ".md": Language.MARKDOWN,
    ".markdown": Language.MARKDOWN,
    ".rst": Language.RST,
    ".tex": Language.LATEX,
    ".html": Language.HTML,
    ".htm": Language.HTML,
    ".sol": Language.SOL,
}


def language_for_path(path: str) -> Language | None:
    return EXTENSION_MAP.get(os.path.splitext(path)[1].lower())


def compute_content_hash(content: str, format_version: str) -> str:
    """SHA-256 of file content with the index format version appended.

    Changing the version invalidates every stored hash.
    """
    return hashlib.sha256(content.encode("utf-8")).hexdigest() + format_version
