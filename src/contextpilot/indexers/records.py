"""Embedding records and their streamed JSON persistence.

The index file is a single JSON array with one record per line:

    [
    {"filePath": ..., "hash": ..., "pageContent": ..., "vector": [...],
     "loc": {"lines": {"from": 1, "to": 20}}},
    ...
    ]

Records are written and read one at a time so the whole file is never held
in memory as a string.
"""

import contextlib
import json
import os
import tempfile
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from contextpilot.embedding.base import Vector

READ_CHUNK_SIZE = 65536


class IndexFormatError(Exception):
    """Raised when a persisted index cannot be parsed."""

    pass


@dataclass
class EmbeddingRecord:
    """One embedded chunk of a project file."""

    file_path: str  # Absolute
    hash: str
    page_content: str
    vector: Vector
    start_line: int
    end_line: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "filePath": self.file_path,
            "hash": self.hash,
            "pageContent": self.page_content,
            "vector": [float(x) for x in self.vector],
            "loc": {"lines": {"from": self.start_line, "to": self.end_line}},
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EmbeddingRecord":
        try:
            lines = data.get("loc", {}).get("lines", {})
            return cls(
                file_path=data["filePath"],
                hash=data["hash"],
                page_content=data["pageContent"],
                vector=np.asarray(data["vector"], dtype=np.float32),
                start_line=int(lines.get("from", 1)),
                end_line=int(lines.get("to", 1)),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise IndexFormatError(f"Invalid embedding record: {e}") from e


def save_records(path: Path, records: Iterable[EmbeddingRecord]) -> int:
    """Stream records into a temp file, then atomically replace path.

    Concurrent savers do not interleave; the last one to finish wins.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
    )
    count = 0
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write("[")
            for record in records:
                f.write("\n" if count == 0 else ",\n")
                json.dump(record.to_dict(), f)
                count += 1
            f.write("\n]\n")
        os.replace(tmp_name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise
    return count


def iter_records(
    path: Path, read_chunk_size: int = READ_CHUNK_SIZE
) -> Iterator[EmbeddingRecord]:
    """Incrementally parse the JSON array at path, yielding one record at a time.

    Raises:
        IndexFormatError: If the file is not a well-formed array of records
    """
    decoder = json.JSONDecoder()
    buffer = ""
    started = False
    eof = False

    with open(path, encoding="utf-8") as f:
        while True:
            if not eof:
                data = f.read(read_chunk_size)
                if data:
                    buffer += data
                else:
                    eof = True

            buffer = buffer.lstrip()
            if not started:
                if not buffer:
                    if eof:
                        raise IndexFormatError(f"Empty index file: {path}")
                    continue
                if buffer[0] != "[":
                    raise IndexFormatError(f"Index file is not a JSON array: {path}")
                buffer = buffer[1:]
                started = True
                continue

            # Drain every complete record currently buffered.
            while True:
                buffer = buffer.lstrip()
                if buffer.startswith(","):
                    buffer = buffer[1:].lstrip()
                if buffer.startswith("]"):
                    return
                if not buffer:
                    break
                try:
                    obj, end = decoder.raw_decode(buffer)
                except json.JSONDecodeError as e:
                    if eof:
                        raise IndexFormatError(
                            f"Truncated or corrupt index file {path}: {e}"
                        ) from e
                    break
                buffer = buffer[end:]
                if not isinstance(obj, dict):
                    raise IndexFormatError(f"Unexpected index entry in {path}")
                yield EmbeddingRecord.from_dict(obj)

            if eof:
                raise IndexFormatError(f"Unterminated index file: {path}")
