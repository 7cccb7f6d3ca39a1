"""Incremental decoding of consecutive JSON values from a byte stream.

Upstream streams are either bare JSON values back to back or server-sent
event lines (``data: {...}``) ending with ``data: [DONE]``. Both are read here.
"""
from __future__ import annotations
import codecs
import json
from typing import Any, Iterable, Iterator

from completion_gateway.common.errors import StreamDecodeError

_SSE_FIELD = "data:"
_SSE_DONE = "[DONE]"
_WHITESPACE = " \t\r\n"
_MAX_PARTIAL_TOKEN = 6


class JSONValueStream:
    """Iterator over the JSON values contained in ``chunks``.

    Raises StreamDecodeError on the first value that cannot be decoded.
    """

    def __init__(self, chunks: Iterable[bytes]) -> None:
        self._chunks = iter(chunks)
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._decoder = json.JSONDecoder()
        self._buffer = ""
        self._exhausted = False

    def __iter__(self) -> Iterator[Any]:
        return self

    def __next__(self) -> Any:
        while True:
            self._buffer = self._buffer.lstrip(_WHITESPACE)
            if not self._buffer:
                if not self._fill():
                    raise StopIteration
                continue

            if self._awaits_prefix():
                continue
            if self._buffer.startswith(_SSE_FIELD):
                self._buffer = self._buffer[len(_SSE_FIELD):]
                continue
            if self._buffer.startswith(_SSE_DONE):
                self._buffer = ""
                self._exhausted = True
                raise StopIteration

            try:
                value, end = self._decoder.raw_decode(self._buffer)
            except json.JSONDecodeError as exc:
                if self._exhausted or not self._incomplete(exc):
                    raise StreamDecodeError(str(exc)) from exc
                self._fill()
                continue

            # "12" may be the head of "123"; wait for a delimiter.
            if end == len(self._buffer) and not isinstance(value, (dict, list)) and not self._exhausted:
                self._fill()
                continue

            self._buffer = self._buffer[end:]
            return value

    def _awaits_prefix(self) -> bool:
        """Read more when the buffer could still grow into a framing token."""
        if self._exhausted:
            return False
        for token in (_SSE_FIELD, _SSE_DONE):
            if len(self._buffer) < len(token) and token.startswith(self._buffer):
                self._fill()
                return True
        return False

    def _incomplete(self, exc: json.JSONDecodeError) -> bool:
        """Whether more input could still turn the buffer into valid JSON."""
        if exc.msg.startswith("Unterminated string"):
            return True
        # Cut literals, numbers and \uXXXX escapes fail within a few characters of the end.
        return len(self._buffer) - exc.pos <= _MAX_PARTIAL_TOKEN

    def _fill(self) -> bool:
        """Append the next upstream chunk to the buffer; False once exhausted."""
        if self._exhausted:
            return False
        try:
            for chunk in self._chunks:
                text = self._utf8.decode(chunk)
                if text:
                    self._buffer += text
                    return True
            self._buffer += self._utf8.decode(b"", final=True)
        except UnicodeDecodeError as exc:
            raise StreamDecodeError(str(exc)) from exc
        self._exhausted = True
        return False


def iter_json_values(chunks: Iterable[bytes]) -> Iterator[Any]:
    return JSONValueStream(chunks)
