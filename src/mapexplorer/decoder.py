"""Byte stream to text line decoding.

:class:`StreamDecoder` turns raw response chunks into newline-delimited
frames.  Chunks carry no alignment with lines or with UTF-8 character
boundaries, so both partial lines and partial multi-byte sequences are
carried over to the next :meth:`StreamDecoder.feed`.
"""

from __future__ import annotations

import codecs
from collections.abc import AsyncIterable, AsyncIterator


class StreamDecoder:
    """Incrementally decodes bytes into complete text lines.

    Malformed byte sequences decode to U+FFFD; ``feed`` and ``flush``
    never raise.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(
            errors="replace"
        )
        self._buffer = ""

    def feed(self, chunk: bytes) -> list[str]:
        """Decode *chunk* and return every line it completes, in order."""
        self._buffer += self._decoder.decode(chunk)
        *lines, self._buffer = self._buffer.split("\n")
        return [_strip_cr(line) for line in lines]

    def flush(self) -> str | None:
        """Return the unterminated remainder at end of stream, if any."""
        self._buffer += self._decoder.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        if not remainder:
            return None
        return _strip_cr(remainder)

    async def iter_lines(
        self, chunks: AsyncIterable[bytes]
    ) -> AsyncIterator[str]:
        """Yield decoded lines from an async byte iterator.

        The decoder is flushed once *chunks* is exhausted.  If the
        iteration is abandoned early nothing further is fed.
        """
        async for chunk in chunks:
            for line in self.feed(chunk):
                yield line
        final = self.flush()
        if final is not None:
            yield final


def _strip_cr(line: str) -> str:
    return line[:-1] if line.endswith("\r") else line
