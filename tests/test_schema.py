from __future__ import annotations

import pytest
from pydantic import ValidationError

from completion_gateway.common.schema import GenerationRequest, UpstreamChunk


def test_defaults_applied_to_zero_values() -> None:
    req = GenerationRequest.model_validate_json(b'{"prompt": "p"}').with_defaults()
    assert req.model == "meta-llama/Llama-3-8b-chat-hf"
    assert req.max_tokens == 512
    assert req.temperature == 0.1
    assert req.stream is False


def test_explicit_zero_temperature_is_treated_as_unset() -> None:
    req = GenerationRequest(prompt="p", temperature=0).with_defaults("custom/model")
    assert req.temperature == 0.1
    assert req.model == "custom/model"


def test_nulls_read_as_zero_values() -> None:
    req = GenerationRequest.model_validate_json(b'{"model": null, "prompt": "p", "max_tokens": null}')
    assert req.model == ""
    assert req.max_tokens == 0


def test_integer_temperature_accepted() -> None:
    assert GenerationRequest.model_validate_json(b'{"temperature": 1}').temperature == 1.0


def test_request_is_immutable() -> None:
    req = GenerationRequest(prompt="p")
    with pytest.raises(ValidationError):
        req.prompt = "q"  # type: ignore[misc]
    assert req.with_defaults() is not req


def test_chunk_fragment() -> None:
    assert UpstreamChunk.model_validate({"choices": []}).fragment() == ""
    assert UpstreamChunk.model_validate({}).fragment() == ""
    chunk = UpstreamChunk.model_validate({"choices": [{"delta": {"content": "a"}}, {"delta": {"content": "b"}}]})
    assert chunk.fragment() == "a"
