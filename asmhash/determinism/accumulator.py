from __future__ import annotations

import base64
from pathlib import Path
from typing import Iterable, Optional

import mmh3

DEFAULT_CHUNK_SIZE = 1024 * 1024


class HashAccumulator:
    """Incremental MurmurHash3 x64 128-bit digest over a stream of byte chunks.

    Order sensitive: feeding the same chunks in a different order yields a different
    digest. Chunk boundaries do not matter.
    """

    def __init__(self, *, seed: int = 0) -> None:
        self._hasher = mmh3.mmh3_x64_128(b"", seed)
        self._digest: Optional[str] = None

    @property
    def finalized(self) -> bool:
        return self._digest is not None

    def feed(self, data: bytes) -> None:
        if self._digest is not None:
            raise RuntimeError("accumulator already finalized")
        if data:
            self._hasher.update(data)

    def feed_all(self, chunks: Iterable[bytes]) -> None:
        for chunk in chunks:
            self.feed(chunk)

    def finalize(self) -> str:
        if self._digest is not None:
            raise RuntimeError("accumulator already finalized")
        self._digest = base64.b64encode(self._hasher.digest()).decode("ascii")
        return self._digest


def iter_file_chunks(path: Path, *, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterable[bytes]:
    if chunk_size <= 0:
        raise ValueError("chunk_size must be positive")
    with path.open("rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                return
            yield chunk


def digest_bytes(data: bytes) -> str:
    acc = HashAccumulator()
    acc.feed(data)
    return acc.finalize()
