"""
Resolution cache and waiter registry, owned by one resolution context
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional


class _FailureSentinel:
    """Marks a uri whose last resolution attempt failed"""

    _instance: Optional['_FailureSentinel'] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "FAILED"

    def __bool__(self) -> bool:
        return False


FAILED = _FailureSentinel()


@dataclass(frozen=True)
class Waiter:
    """A pending caller: one resolve and one reject callback"""

    resolve: Callable[[Any], None]
    reject: Callable[[BaseException], None]

    @classmethod
    def from_future(cls, future: asyncio.Future) -> 'Waiter':
        """Wrap a future; settling a future that is already done is a no-op"""

        def resolve(component: Any) -> None:
            if not future.done():
                future.set_result(component)

        def reject(error: BaseException) -> None:
            if not future.done():
                future.set_exception(error)

        return cls(resolve=resolve, reject=reject)


class ResolutionCache:
    """
    Mapping from uri to a resolved component or the FAILED sentinel.

    Entries are added lazily and never evicted; once present an entry is
    never removed, only replaced by a later settled attempt.
    """

    def __init__(self):
        self._entries: Dict[str, Any] = {}

    def __contains__(self, uri: str) -> bool:
        return uri in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, uri: str) -> Any:
        return self._entries.get(uri)

    def has_component(self, uri: str) -> bool:
        return uri in self._entries and self._entries[uri] is not FAILED

    def has_failed(self, uri: str) -> bool:
        return self._entries.get(uri) is FAILED

    def store_component(self, uri: str, component: Any) -> None:
        self._entries[uri] = component

    def store_failure(self, uri: str) -> None:
        self._entries[uri] = FAILED


class WaiterRegistry:
    """
    Mapping from uri to the ordered waiters of its in-flight attempt.

    A uri is present exactly while one attempt for it is outstanding.
    """

    def __init__(self):
        self._waiters: Dict[str, List[Waiter]] = {}

    def __contains__(self, uri: str) -> bool:
        return uri in self._waiters

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._waiters))

    def register(self, uri: str, waiter: Waiter) -> None:
        if uri in self._waiters:
            raise RuntimeError(f"Attempt for uri {uri!r} is already in flight")
        self._waiters[uri] = [waiter]

    def join(self, uri: str, waiter: Waiter) -> None:
        self._waiters[uri].append(waiter)

    def drain(self, uri: str) -> List[Waiter]:
        """Remove and return the waiters for uri, in arrival order"""
        return self._waiters.pop(uri, [])
