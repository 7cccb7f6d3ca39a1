from __future__ import annotations

import json

import httpx
import pytest

from completion_gateway.common.errors import UpstreamError
from completion_gateway.serve.translator import StreamOutcome, StreamRelay, translate_completion


def _chunk(text: str) -> bytes:
    return ('{"choices":[{"delta":{"content":%s}}]}' % json.dumps(text)).encode()


def _response(*chunks: bytes) -> httpx.Response:
    return httpx.Response(200, content=iter(chunks))


def test_translate_completion_takes_first_choice() -> None:
    response = httpx.Response(200, json={"choices": [{"text": "first"}, {"text": "second"}]})
    result = translate_completion(response, "m")
    assert result.model == "m"
    assert result.response == "first"
    assert result.created_at is None
    assert result.model_dump(exclude_none=True) == {"model": "m", "response": "first"}


def test_translate_completion_without_choices() -> None:
    response = httpx.Response(200, json={"choices": []})
    with pytest.raises(UpstreamError, match="no choices returned"):
        translate_completion(response, "m")


def test_translate_completion_missing_choices_key() -> None:
    response = httpx.Response(200, json={"error": {"message": "bad model"}})
    with pytest.raises(UpstreamError, match="no choices returned"):
        translate_completion(response, "m")


def test_translate_completion_rejects_non_json() -> None:
    response = httpx.Response(200, content=b"not json")
    with pytest.raises(UpstreamError, match="failed to decode response"):
        translate_completion(response, "m")


def test_relay_yields_one_write_per_fragment() -> None:
    response = _response(_chunk("Hi"), _chunk(" there"))
    relay = StreamRelay(response)
    assert list(relay) == [b"Hi", b" there"]
    assert relay.outcome is StreamOutcome.COMPLETED
    assert relay.fragments == 2
    assert response.is_closed


def test_relay_skips_empty_fragments_and_choices() -> None:
    response = _response(
        b'{"choices":[]}',
        b'{"choices":[{"delta":{}}]}',
        b'{"choices":[{"delta":{"content":null}}]}',
        b'{"id":"x"}',
        _chunk("ok"),
    )
    relay = StreamRelay(response)
    assert list(relay) == [b"ok"]
    assert relay.outcome is StreamOutcome.COMPLETED


def test_relay_truncates_on_malformed_chunk() -> None:
    response = _response(_chunk("Hi"), b"\n{broken\n", _chunk("never"))
    relay = StreamRelay(response)
    assert list(relay) == [b"Hi"]
    assert relay.outcome is StreamOutcome.TRUNCATED
    assert response.is_closed


def test_relay_truncates_on_unexpected_shape() -> None:
    response = _response(_chunk("a"), b'{"choices": "nope"}', _chunk("b"))
    relay = StreamRelay(response)
    assert list(relay) == [b"a"]
    assert relay.outcome is StreamOutcome.TRUNCATED


def test_relay_handles_server_sent_event_framing() -> None:
    response = _response(
        b"data: " + _chunk("Hel") + b"\n\n",
        b"data: " + _chunk("lo") + b"\n\ndata: [DONE]\n\n",
    )
    relay = StreamRelay(response)
    assert b"".join(relay) == b"Hello"
    assert relay.outcome is StreamOutcome.COMPLETED


def test_relay_preserves_unicode() -> None:
    response = _response(_chunk("café ☕"))
    assert b"".join(StreamRelay(response)).decode("utf-8") == "café ☕"


def test_relay_closes_upstream_when_abandoned() -> None:
    response = _response(_chunk("a"), _chunk("b"))
    it = iter(StreamRelay(response))
    assert next(it) == b"a"
    it.close()
    assert response.is_closed


def test_relay_outcome_unset_until_finished() -> None:
    relay = StreamRelay(_response(_chunk("a")))
    assert relay.outcome is None
