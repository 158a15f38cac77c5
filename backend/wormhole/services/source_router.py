"""
Source Router

Sends inline strings straight to the sandbox (opt-in only) and uri sources
through the request coalescer.
"""
import asyncio
from collections.abc import Mapping
from typing import Any, Callable, Optional, Union

from pydantic import ValidationError

from wormhole.components.contracts import OpenOptions, UriSource
from wormhole.core.errors import (InlineExecutionDisallowedError,
                                  InvalidSourceError)
from wormhole.core.logging_config import LoggingConfig
from wormhole.services.request_coalescer import RequestCoalescer
from wormhole.services.resolution_cache import Waiter
from wormhole.services.sandbox_compiler import SandboxCompiler

logger = LoggingConfig.get_logger(__name__)

Source = Union[str, UriSource, Mapping]


def _coerce_options(options: Any) -> OpenOptions:
    if options is None:
        return OpenOptions()
    if isinstance(options, OpenOptions):
        return options
    return OpenOptions.model_validate(options)


def _uri_of(source: Any) -> Optional[str]:
    if isinstance(source, UriSource):
        return source.uri
    if isinstance(source, Mapping):
        uri = source.get("uri")
        if isinstance(uri, str):
            return uri
    return None


class SourceRouter:
    """Dispatches a source to the sandbox or to the cached uri path"""

    def __init__(self, coalescer: RequestCoalescer, compiler: SandboxCompiler):
        self.coalescer = coalescer
        self.compiler = compiler

    async def open(self, source: Source, options: Any = None) -> Callable[..., Any]:
        """
        Resolve a source into a component

        Args:
            source: Inline source text, a UriSource, or a mapping with a "uri" string
            options: OpenOptions or a mapping of its fields

        Returns:
            The resolved component

        Raises:
            InlineExecutionDisallowedError: Inline source without allow_inline_execution
            InvalidSourceError: Unsupported source shape
        """
        try:
            options = _coerce_options(options)
        except ValidationError as e:
            raise InvalidSourceError(f"Invalid options: {e}") from e

        if isinstance(source, str):
            if options.allow_inline_execution is True:
                logger.debug("Compiling inline source")
                return await self.compiler.compile(source)
            raise InlineExecutionDisallowedError(
                "Attempted to open an inline string source, but allow_inline_execution was not true."
            )

        uri = _uri_of(source)
        if uri is not None:
            future = asyncio.get_running_loop().create_future()
            self.coalescer.open_uri(uri, Waiter.from_future(future))
            return await future

        raise InvalidSourceError(f"Expected valid source, encountered {type(source).__name__}.")
