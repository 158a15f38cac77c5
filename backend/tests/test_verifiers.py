"""
Tests for signature verifiers
"""
import pytest

from wormhole.components.contracts import FetchResponse
from wormhole.services.verifiers import (allow_all_verifier,
                                         hmac_signature_verifier, sign_source)

SOURCE = "exports.default = lambda: 1"


def test_sign_source_is_deterministic_per_secret():
    assert sign_source(SOURCE, "one") == sign_source(SOURCE, "one")
    assert sign_source(SOURCE, "one") != sign_source(SOURCE, "two")
    assert len(sign_source(SOURCE, "one")) == 64


@pytest.mark.asyncio
@pytest.mark.parametrize("header", ["X-Signature", "x-signature"])
async def test_valid_signature_passes(header):
    verify = hmac_signature_verifier("s3cret")
    response = FetchResponse(data=SOURCE, headers={header: sign_source(SOURCE, "s3cret")})
    assert await verify(response) is True


@pytest.mark.asyncio
@pytest.mark.parametrize("headers", [
    {},
    {"X-Signature": ""},
    {"X-Signature": sign_source(SOURCE, "other")},
    {"X-Signature": sign_source(SOURCE + "\n", "s3cret")},
])
async def test_invalid_signature_fails(headers):
    verify = hmac_signature_verifier("s3cret")
    assert await verify(FetchResponse(data=SOURCE, headers=headers)) is False


@pytest.mark.asyncio
async def test_custom_header_name():
    verify = hmac_signature_verifier("s3cret", header="X-Csrf-Token")
    response = FetchResponse(data=SOURCE, headers={"X-Csrf-Token": sign_source(SOURCE, "s3cret")})
    assert await verify(response) is True


def test_empty_secret_is_refused():
    with pytest.raises(ValueError):
        hmac_signature_verifier("")


@pytest.mark.asyncio
async def test_allow_all_verifier():
    assert await allow_all_verifier(FetchResponse(data=SOURCE)) is True
