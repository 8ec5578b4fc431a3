from __future__ import annotations

import codecs
import io
import locale
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional

from asmhash.determinism.accumulator import DEFAULT_CHUNK_SIZE, iter_file_chunks
from asmhash.normalize.categories import ArtifactCategory

RESOURCE_CONTAINER_ENCODING = "utf-16-le"

# Whole-line noise emitted by ildasm: module ids, load addresses, stamps and
# the path of the extracted Win32 resource file. `.ver` is dropped in every block,
# `.assembly extern` included: modules of one build reference each other by version,
# so a build-wide version bump must not count as a dependency change.
_IL_LINE_NOISE_RE = re.compile(
    r"^\s*(?:"
    r"//\s*(?:MVID|Image base|Time-date stamp|Timestamp|Checksum)\s*:"
    r"|//\s*WARNING:\s*Created Win32 resource file"
    r"|\.ver\s+\d+:\d+:\d+:\d+"
    r")"
)

_IL_ATTRIBUTE_NOISE_RE = re.compile(
    r"^\s*\.custom\b.*\b(?:"
    r"AssemblyVersionAttribute"
    r"|AssemblyFileVersionAttribute"
    r"|AssemblyInformationalVersionAttribute"
    r"|GuidAttribute"
    r")\b"
)

_RESOURCE_NOISE_RE = re.compile(r"FileVersion|ProductVersion|Assembly Version")


def _strip_il_comment(line: str) -> str:
    return line.split("//", 1)[0]


def _drop_il_noise(lines: Iterable[str]) -> Iterator[str]:
    # A dropped .custom blob may wrap; skip continuation lines until its ")".
    in_blob = False
    for line in lines:
        if in_blob:
            if ")" in _strip_il_comment(line):
                in_blob = False
            continue
        if _IL_LINE_NOISE_RE.match(line):
            continue
        if _IL_ATTRIBUTE_NOISE_RE.match(line):
            _, sep, blob = line.partition("= (")
            if sep and ")" not in _strip_il_comment(blob):
                in_blob = True
            continue
        yield line


def _drop_resource_noise(lines: Iterable[str]) -> Iterator[str]:
    for line in lines:
        if _RESOURCE_NOISE_RE.search(line):
            continue
        yield line


def platform_default_encoding() -> str:
    return locale.getpreferredencoding(False)


def decode_errors_for(encoding: str) -> str:
    # Resource containers are binary; UTF-16 with lone surrogates must still round-trip.
    if codecs.lookup(encoding).name.startswith("utf-16"):
        return "surrogatepass"
    return "strict"


def iter_text_lines(path: Path, *, encoding: str) -> Iterator[str]:
    """Yield decoded lines of `path` without their line terminators.

    `\\r\\n`, `\\r` and `\\n` all end a line. Decoding errors propagate.
    """

    errors = decode_errors_for(encoding)
    with path.open("rb") as raw:
        with io.TextIOWrapper(raw, encoding=encoding, errors=errors, newline=None) as reader:
            for line in reader:
                yield line[:-1] if line.endswith("\n") else line


@dataclass(frozen=True)
class StreamFilter:
    name: str
    category: ArtifactCategory
    line_oriented: bool
    drop_noise: bool

    def default_encoding(self, *, platform_encoding: Optional[str] = None) -> str:
        if self.category is ArtifactCategory.RESOURCE_CONTAINER:
            return RESOURCE_CONTAINER_ENCODING
        return platform_encoding or platform_default_encoding()

    def filter_lines(self, lines: Iterable[str]) -> Iterator[str]:
        if not self.drop_noise:
            return iter(lines)
        if self.category is ArtifactCategory.MODULE_IR:
            return _drop_il_noise(lines)
        if self.category is ArtifactCategory.RESOURCE_CONTAINER:
            return _drop_resource_noise(lines)
        return iter(lines)

    def iter_filtered_bytes(
        self,
        path: Path,
        *,
        encoding: Optional[str] = None,
        platform_encoding: Optional[str] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> Iterator[bytes]:
        """Re-open `path` and yield the bytes to hash for it.

        Every call re-derives the stream from the file, so the aggregate and the
        per-component pass observe identical input. `encoding` forces a codec for
        this artifact; `platform_encoding` only replaces the locale default.
        """

        if not self.line_oriented:
            yield from iter_file_chunks(path, chunk_size=chunk_size)
            return

        enc = encoding or self.default_encoding(platform_encoding=platform_encoding)
        errors = decode_errors_for(enc)
        for line in self.filter_lines(iter_text_lines(path, encoding=enc)):
            yield (line + "\n").encode(enc, errors)


PASS_THROUGH = StreamFilter(
    name="PASS_THROUGH",
    category=ArtifactCategory.OPAQUE,
    line_oriented=False,
    drop_noise=False,
)


def select_filter(category: ArtifactCategory, *, ignore_version_noise: bool) -> StreamFilter:
    if category in (ArtifactCategory.OPAQUE, ArtifactCategory.GENERIC_RESOURCE):
        return PASS_THROUGH
    if category is ArtifactCategory.MODULE_IR:
        name = "IL_VERSION_NOISE" if ignore_version_noise else "IL_TEXT"
    elif category is ArtifactCategory.RESOURCE_CONTAINER:
        name = "RES_VERSION_NOISE" if ignore_version_noise else "RES_TEXT"
    else:
        raise ValueError(f"unsupported artifact category: {category}")
    return StreamFilter(
        name=name,
        category=category,
        line_oriented=True,
        drop_noise=ignore_version_noise,
    )
