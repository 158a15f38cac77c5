"""
Resolution Context: one isolated cache/registry pair with its public operations
"""
from typing import Any, Callable, List, Mapping, Optional

from wormhole.components.dynamic_component import DynamicComponent
from wormhole.core.config import get_settings
from wormhole.core.errors import MissingVerifierError
from wormhole.core.logging_config import LoggingConfig
from wormhole.services.fetcher import HttpFetcher
from wormhole.services.request_coalescer import (Fetcher, RequestCoalescer,
                                                 Verifier)
from wormhole.services.resolution_cache import ResolutionCache, WaiterRegistry
from wormhole.services.sandbox_compiler import (SandboxCompiler,
                                                default_global_namespace)
from wormhole.services.source_router import Source, SourceRouter

logger = LoggingConfig.get_logger(__name__)


class DynamicComponentContext:
    """
    Public surface of one resolution context

    Contains:
    - open(source, options): resolve a source into a component
    - preload(uri): warm the cache for a uri
    - dynamic_component(source, ...): a DynamicComponent handle bound to open()
    """

    __slots__ = ("_router", "_coalescer")

    def __init__(self, router: SourceRouter, coalescer: RequestCoalescer):
        object.__setattr__(self, "_router", router)
        object.__setattr__(self, "_coalescer", coalescer)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    async def open(self, source: Source, options: Any = None) -> Callable[..., Any]:
        """Resolve a source into a component"""
        return await self._router.open(source, options)

    async def preload(self, uri: str) -> None:
        """Resolve uri without handing the component back"""
        await self._router.open({"uri": uri}, {"allow_inline_execution": False})

    def dynamic_component(self, source: Source, **kwargs: Any) -> DynamicComponent:
        """Build a DynamicComponent handle bound to this context"""
        return DynamicComponent(source, open_source=self.open, **kwargs)

    @property
    def pending(self) -> List[str]:
        """Uris with a resolution attempt in flight"""
        return self._coalescer.pending()

    async def wait_idle(self) -> None:
        """Wait until all in-flight attempts have settled"""
        await self._coalescer.wait_idle()


def create_dynamic_component(
    *,
    verify: Optional[Verifier] = None,
    fetch: Optional[Fetcher] = None,
    global_namespace: Optional[Mapping[str, Any]] = None,
    retry_failed: Optional[bool] = None
) -> DynamicComponentContext:
    """
    Create an isolated resolution context

    Args:
        verify: Mandatory verify(response) -> bool callable (sync or async)
        fetch: fetch(FetchRequest) -> FetchResponse callable; defaults to HttpFetcher
        global_namespace: Bindings exposed to compiled sources; frozen on construction
        retry_failed: Start a fresh attempt for failed uris on next demand
            (defaults to the retry_failed_sources setting)

    Returns:
        A DynamicComponentContext with its own cache and waiter registry

    Raises:
        MissingVerifierError: If verify is not callable
    """
    if not callable(verify):
        raise MissingVerifierError(
            "To create a DynamicComponent context, you **must** pass a verify() function."
        )

    settings = get_settings()
    if global_namespace is None:
        global_namespace = default_global_namespace(settings.sandbox_allowed_modules_list)
    if retry_failed is None:
        retry_failed = settings.retry_failed_sources

    compiler = SandboxCompiler(global_namespace)
    coalescer = RequestCoalescer(
        cache=ResolutionCache(),
        registry=WaiterRegistry(),
        fetch=fetch if fetch is not None else HttpFetcher(),
        verify=verify,
        compiler=compiler,
        retry_failed=retry_failed,
    )
    router = SourceRouter(coalescer, compiler)
    logger.debug(f"Created resolution context (retry_failed={retry_failed})")
    return DynamicComponentContext(router, coalescer)
