"""Deferred values for entity fields that need an extra request."""

import logging
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LazyState(str, Enum):
    """Resolution state of a LazyValue."""
    UNRESOLVED = "unresolved"
    RESOLVED = "resolved"


class LazyValue(Generic[T]):
    """A value that is either known already or fetched once on first access.

    The fetch callback is captured when the owning entity is built. After the
    first successful call the callback is dropped and the result is kept for
    the lifetime of the wrapper. A failing fetch leaves the value unresolved.
    """

    __slots__ = ("_value", "_fetch", "_state", "_label")

    def __init__(self, fetch: Optional[Callable[[], T]] = None, label: str = "value"):
        self._value: Optional[T] = None
        self._fetch = fetch
        self._state = LazyState.UNRESOLVED
        self._label = label

    @classmethod
    def resolved(cls, value: T, label: str = "value") -> "LazyValue[T]":
        """Create a wrapper that already holds its value."""
        lazy: LazyValue[T] = cls(label=label)
        lazy._value = value
        lazy._state = LazyState.RESOLVED
        return lazy

    @property
    def state(self) -> LazyState:
        return self._state

    @property
    def is_resolved(self) -> bool:
        return self._state is LazyState.RESOLVED

    def peek(self) -> Optional[T]:
        """Return the value if resolved, None otherwise, without fetching."""
        return self._value

    def get(self) -> Optional[T]:
        """Return the value, fetching it first if needed.

        A wrapper with no callback resolves to None.
        """
        if self._state is LazyState.UNRESOLVED:
            if self._fetch is not None:
                logger.debug("%s was not loaded, requesting it", self._label)
                self._value = self._fetch()
            self._fetch = None
            self._state = LazyState.RESOLVED
        return self._value

    def __repr__(self) -> str:
        if self.is_resolved:
            return f"LazyValue({self._label}={self._value!r})"
        return f"LazyValue({self._label}, unresolved)"
