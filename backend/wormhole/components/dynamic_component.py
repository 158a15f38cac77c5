"""
Dynamic Component: handle over a resolved source.

Role: track loading -> ready | error for one source and guard calls into the
loaded component the way an error boundary would.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from wormhole.components.contracts import ComponentState, OpenOptions
from wormhole.core.errors import DynamicComponentError, normalize_error
from wormhole.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

ErrorSink = Callable[[DynamicComponentError], None]


def _log_error(error: DynamicComponentError) -> None:
    logger.error(f"Dynamic component failed: {type(error).__name__}: {error}")


def _render_nothing(*args: Any, **kwargs: Any) -> None:
    return None


class DynamicComponent:
    """
    Handle over one source resolved through ``open_source``.

    ``load()`` moves the handle from LOADING to READY or ERROR. Calling the
    handle renders the component when ready, ``render_error`` after a failure
    (including one raised by the component itself) and ``render_loading``
    otherwise. Every failure is also passed to ``on_error``, which defaults
    to the module logger.
    """

    def __init__(
        self,
        source: Any,
        *,
        open_source: Callable[..., Awaitable[Callable[..., Any]]],
        render_loading: Callable[[], Any] = _render_nothing,
        render_error: Callable[[DynamicComponentError], Any] = _render_nothing,
        allow_inline_execution: bool = False,
        on_error: Optional[ErrorSink] = None,
    ):
        self.source = source
        self.open_source = open_source
        self.render_loading = render_loading
        self.render_error = render_error
        self.options = OpenOptions(allow_inline_execution=allow_inline_execution)
        self.on_error = on_error or _log_error
        self.state = ComponentState.LOADING
        self.component: Optional[Callable[..., Any]] = None
        self.error: Optional[DynamicComponentError] = None

    def _fail(self, error: DynamicComponentError) -> None:
        self.state = ComponentState.ERROR
        self.component = None
        self.error = error
        self.on_error(error)

    async def load(self) -> ComponentState:
        try:
            self.component = await self.open_source(self.source, self.options)
            self.error = None
            self.state = ComponentState.READY
        except Exception as e:
            self._fail(normalize_error(e))
        return self.state

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        if self.state is ComponentState.READY:
            try:
                return self.component(*args, **kwargs)
            except Exception as e:
                failure = DynamicComponentError("Failed to render.")
                failure.__cause__ = e
                self.on_error(failure)
                return self.render_error(failure)
        if self.state is ComponentState.ERROR:
            return self.render_error(self.error)
        return self.render_loading()
