"""Translation of upstream completion responses into gateway replies.

Non-streaming bodies become a single GenerationResponse. Streaming bodies are
relayed fragment by fragment; the first undecodable chunk ends the relay
without surfacing an error, since the caller has already received headers.
"""
from __future__ import annotations
import enum
import logging
from typing import Iterator

import httpx
from pydantic import ValidationError

from completion_gateway.common.errors import StreamDecodeError, UpstreamError
from completion_gateway.common.schema import GenerationResponse, UpstreamChunk, UpstreamResult
from completion_gateway.serve.jsonstream import iter_json_values

LOGGER = logging.getLogger("completion_gateway.serve.translator")

STREAM_HEADERS = {
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
}


def translate_completion(response: httpx.Response, model: str) -> GenerationResponse:
    """
    Decode a complete upstream body into the caller's reply.

    Args:
        response: Open upstream response; read fully but not closed here.
        model: Model name echoed back to the caller.
    """
    try:
        body = response.read()
    except httpx.HTTPError as e:
        raise UpstreamError(f"request failed: {e}") from e

    try:
        result = UpstreamResult.model_validate_json(body)
    except ValidationError as e:
        raise UpstreamError(f"failed to decode response: {e}") from e

    if not result.choices:
        raise UpstreamError("no choices returned")
    return GenerationResponse(model=model, response=result.choices[0].text)


class StreamOutcome(str, enum.Enum):
    COMPLETED = "completed"
    TRUNCATED = "truncated"


class StreamRelay:
    """Iterator of UTF-8 text fragments taken from a streamed upstream response.

    Each yielded item is one write to the caller. ``outcome`` is None until the
    relay ends, then tells whether upstream ran out or a chunk failed to decode.
    The upstream response is closed on every exit path.
    """

    def __init__(self, response: httpx.Response) -> None:
        self._response = response
        self.outcome: StreamOutcome | None = None
        self.fragments = 0

    def __iter__(self) -> Iterator[bytes]:
        try:
            yield from self._relay()
        finally:
            self._response.close()

    def _relay(self) -> Iterator[bytes]:
        try:
            for value in iter_json_values(self._response.iter_bytes()):
                text = UpstreamChunk.model_validate(value).fragment()
                if text:
                    self.fragments += 1
                    yield text.encode("utf-8")
        except (StreamDecodeError, ValidationError, httpx.HTTPError) as e:
            self.outcome = StreamOutcome.TRUNCATED
            LOGGER.warning("Stream truncated after %d fragments: %s", self.fragments, e)
            return
        self.outcome = StreamOutcome.COMPLETED
        LOGGER.debug("Stream completed with %d fragments", self.fragments)
