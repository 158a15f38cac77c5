"""
Verifier helpers

The resolution pipeline only consumes a boolean verdict; these build
verify() callables for the HMAC signatures produced by the dev server.
"""
import hashlib
import hmac
from typing import Awaitable, Callable

from wormhole.components.contracts import FetchResponse
from wormhole.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)


def sign_source(source: str, secret: str) -> str:
    """HMAC-SHA256 hex digest of the source text"""
    return hmac.new(secret.encode("utf-8"), source.encode("utf-8"), hashlib.sha256).hexdigest()


def _header(response: FetchResponse, name: str) -> str:
    wanted = name.lower()
    for key, value in response.headers.items():
        if key.lower() == wanted:
            return value
    return ""


def hmac_signature_verifier(secret: str, header: str = "X-Signature") -> Callable[[FetchResponse], Awaitable[bool]]:
    """
    Build a verifier checking the response's signature header

    Args:
        secret: Shared signing secret
        header: Name of the header carrying the hex signature

    Returns:
        An async verify(response) callable
    """
    if not secret:
        raise ValueError("A signing secret is required to verify sources")

    async def verify(response: FetchResponse) -> bool:
        signature = _header(response, header)
        if not signature or not isinstance(response.data, str):
            logger.debug(f"No {header} signature on {response.url or 'response'}")
            return False
        return hmac.compare_digest(signature, sign_source(response.data, secret))

    return verify


async def allow_all_verifier(response: FetchResponse) -> bool:
    """Accepts every response. Development only."""
    logger.warning(f"Accepting unverified source {response.url or '<unknown>'}")
    return True
