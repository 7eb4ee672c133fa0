"""Observable state container: get, update, subscribe.

``Store`` holds one value. ``update(fn)`` replaces it with ``fn(current)``
under a lock and then calls every listener with the new value::

    store = Store({})
    unsubscribe = store.subscribe(print)   # prints {} immediately
    store.update(lambda s: {**s, "a": 1})  # prints {'a': 1}
    unsubscribe()

Transforms must return a new value rather than mutating the current one;
listeners may hold on to older snapshots.

Thread-safety:
    - The read-modify-write in ``update`` and ``set`` runs under a Lock
    - Listeners are called outside the lock, in subscription order
"""

import threading
from collections.abc import Callable


class Store[T]:
    """A single observable value."""

    __slots__ = ("_listeners", "_lock", "_next_token", "_value")

    def __init__(self, value: T) -> None:
        self._value = value
        # token -> listener, insertion ordered
        self._listeners: dict[int, Callable[[T], None]] = {}
        self._next_token = 0
        self._lock = threading.Lock()

    def get(self) -> T:
        """Return the current snapshot."""
        return self._value

    def set(self, value: T) -> None:
        """Replace the value and notify listeners."""
        with self._lock:
            self._value = value
            listeners = list(self._listeners.values())
        self._notify(listeners, value)

    def update(self, transform: Callable[[T], T]) -> T:
        """Apply *transform* to the current value atomically.

        Returns the new value. If *transform* raises, the value is left
        unchanged and no listener is called.
        """
        with self._lock:
            value = transform(self._value)
            self._value = value
            listeners = list(self._listeners.values())
        self._notify(listeners, value)
        return value

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        """Register *listener* and call it once with the current value.

        Returns a function that removes the listener. Calling it more than
        once is harmless.
        """
        with self._lock:
            token = self._next_token
            self._next_token += 1
            self._listeners[token] = listener
            value = self._value

        def unsubscribe() -> None:
            with self._lock:
                self._listeners.pop(token, None)

        listener(value)
        return unsubscribe

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    @staticmethod
    def _notify(listeners: list[Callable[[T], None]], value: T) -> None:
        for listener in listeners:
            listener(value)
