"""
Request Coalescer

Joins concurrent requests for the same uri onto a single
fetch -> verify -> compile attempt and fans the outcome out to every waiter.
"""
import asyncio
import inspect
from collections.abc import Mapping
from typing import Any, Awaitable, Callable, List, Optional, Set, Union

from pydantic import ValidationError

from wormhole.components.contracts import FetchRequest, FetchResponse
from wormhole.core.errors import (AllocationFailedError,
                                  ComponentUnavailableError,
                                  DynamicComponentError,
                                  InvalidResponseShapeError, TransportError,
                                  VerificationFailedError, normalize_error)
from wormhole.core.logging_config import LoggingConfig
from wormhole.services.resolution_cache import (ResolutionCache, Waiter,
                                                WaiterRegistry)
from wormhole.services.sandbox_compiler import SandboxCompiler

logger = LoggingConfig.get_logger(__name__)

Fetcher = Callable[[FetchRequest], Union[FetchResponse, Awaitable[FetchResponse]]]
Verifier = Callable[[FetchResponse], Union[bool, Awaitable[bool]]]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _cancel_requested() -> bool:
    """True when the running task itself has a pending cancel() request"""
    task = asyncio.current_task()
    cancelling = getattr(task, "cancelling", None)
    return bool(cancelling is not None and cancelling())


class RequestCoalescer:
    """
    Owns the cache/registry pair of one resolution context.

    ``open_uri`` is synchronous: the check-cache, check-registry,
    register-or-join sequence never yields to the event loop.
    """

    def __init__(
        self,
        cache: ResolutionCache,
        registry: WaiterRegistry,
        fetch: Fetcher,
        verify: Verifier,
        compiler: SandboxCompiler,
        retry_failed: bool = False
    ):
        self.cache = cache
        self.registry = registry
        self.fetch = fetch
        self.verify = verify
        self.compiler = compiler
        self.retry_failed = retry_failed
        self._attempts: Set[asyncio.Task] = set()

    def open_uri(self, uri: str, waiter: Waiter) -> None:
        """
        Settle waiter from cache, attach it to the in-flight attempt, or start one
        """
        if self.cache.has_component(uri):
            logger.debug(f"Cache hit for uri {uri}")
            waiter.resolve(self.cache.get(uri))
            return

        if self.cache.has_failed(uri) and not self.retry_failed:
            waiter.reject(
                ComponentUnavailableError(f"Component at uri \"{uri}\" could not be instantiated.")
            )
            return

        if uri in self.registry:
            logger.debug(f"Joining in-flight attempt for uri {uri}")
            self.registry.join(uri, waiter)
            return

        self.registry.register(uri, waiter)
        self._start_attempt(uri)

    def _start_attempt(self, uri: str) -> None:
        logger.info(f"Starting resolution attempt for uri {uri}")
        task = asyncio.ensure_future(self._request_open_uri(uri))
        self._attempts.add(task)
        task.add_done_callback(self._attempts.discard)

    async def _fetch_source(self, uri: str) -> FetchResponse:
        try:
            response = await _maybe_await(self.fetch(FetchRequest(url=uri, method="GET")))
        except Exception as e:
            raise normalize_error(e, TransportError)

        if isinstance(response, Mapping):
            try:
                response = FetchResponse.model_validate(dict(response))
            except ValidationError as e:
                raise InvalidResponseShapeError(
                    f"Invalid fetch response: {e.error_count()} validation error(s)."
                ) from e
        if not isinstance(response, FetchResponse):
            raise InvalidResponseShapeError(
                f"Expected fetch response, encountered {type(response).__name__}."
            )
        if not isinstance(response.data, str):
            raise InvalidResponseShapeError(
                f"Expected string data, encountered {type(response.data).__name__}."
            )
        return response

    async def _verify_source(self, uri: str, response: FetchResponse) -> None:
        try:
            verified = await _maybe_await(self.verify(response))
        except Exception as e:
            raise normalize_error(e, VerificationFailedError)
        if verified is not True:
            raise VerificationFailedError(f"Failed to verify \"{uri}\".")

    async def _request_open_uri(self, uri: str) -> None:
        """
        Run one fetch -> verify -> compile attempt for uri.

        Every outcome is written to the cache and dispatched, including an
        attempt that dies on cancellation. Cancellation is re-raised only
        when the attempt task itself was cancelled.
        """
        error: Optional[DynamicComponentError] = None
        try:
            response = await self._fetch_source(uri)
            await self._verify_source(uri, response)
            component = await self.compiler.compile(response.data)
            self.cache.store_component(uri, component)
        except Exception as e:
            error = normalize_error(e)
        except asyncio.CancelledError as e:
            error = AllocationFailedError(f"Resolution of uri \"{uri}\" was cancelled.")
            error.__cause__ = e
            if _cancel_requested():
                raise
        finally:
            if not self.cache.has_component(uri):
                self.cache.store_failure(uri)
                error_type = type(error).__name__ if error is not None else "AllocationFailedError"
                logger.warning(
                    f"Resolution attempt for uri {uri} failed: {error_type}: {error}",
                    extra={"uri": uri, "error_type": error_type}
                )
            self.complete(uri, error)

    def complete(self, uri: str, error: Optional[BaseException] = None) -> None:
        """
        Dispatch the settled cache entry for uri to every queued waiter
        """
        waiters = self.registry.drain(uri)
        if self.cache.has_component(uri):
            component = self.cache.get(uri)
            for waiter in waiters:
                waiter.resolve(component)
        else:
            failure = error or AllocationFailedError(
                f"Failed to allocate for uri \"{uri}\"."
            )
            for waiter in waiters:
                waiter.reject(failure)
        logger.debug(f"Completed uri {uri} for {len(waiters)} waiter(s)")

    def pending(self) -> List[str]:
        """Uris with an attempt currently in flight"""
        return list(self.registry)

    async def wait_idle(self) -> None:
        """Wait until every outstanding attempt has settled"""
        while self._attempts:
            await asyncio.gather(*list(self._attempts), return_exceptions=True)
