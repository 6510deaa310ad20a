"""Fragment cache for rendered output.

A fragment renderer writes its markup to stdout (or returns it); the
captured text is cached like any other object. Capture is per thread, so
renderers running concurrently in the warmer pool never see each other's
output.
"""

from __future__ import annotations

import io
import logging
import sys
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TextIO

from cinecache.services.object_cache import TTL, ObjectCache
from cinecache.shared.constants import CacheGroup

logger = logging.getLogger(__name__)

Renderer = Callable[[], Any]


class _ThreadRoutingStdout(io.TextIOBase):
    """sys.stdout replacement that routes writes to a per-thread buffer.

    Threads without an active capture write through to the original stream.
    """

    def __init__(self, original: TextIO) -> None:
        self.original = original
        self._local = threading.local()

    def push(self) -> io.StringIO:
        stack = self._stack()
        buffer = io.StringIO()
        stack.append(buffer)
        return buffer

    def pop(self) -> None:
        self._stack().pop()

    def _stack(self) -> list[io.StringIO]:
        if not hasattr(self._local, "buffers"):
            self._local.buffers = []
        return self._local.buffers

    def _target(self) -> TextIO:
        stack = self._stack()
        return stack[-1] if stack else self.original

    def write(self, text: str) -> int:
        return self._target().write(text)

    def flush(self) -> None:
        self._target().flush()

    def writable(self) -> bool:
        return True


_install_lock = threading.Lock()
_router: _ThreadRoutingStdout | None = None
_router_users = 0


@contextmanager
def capture_output() -> Iterator[io.StringIO]:
    """Capture text written to sys.stdout by the current thread.

    Example:
        >>> with capture_output() as buffer:
        ...     print("<div>card</div>", end="")
        >>> buffer.getvalue()
        '<div>card</div>'
    """
    global _router, _router_users  # noqa: PLW0603

    with _install_lock:
        if _router is None:
            _router = _ThreadRoutingStdout(sys.stdout)
            sys.stdout = _router
        _router_users += 1
        router = _router

    buffer = router.push()
    try:
        yield buffer
    finally:
        router.pop()
        with _install_lock:
            _router_users -= 1
            if _router_users == 0:
                if sys.stdout is router:
                    sys.stdout = router.original
                _router = None


def render_to_string(renderer: Renderer) -> str:
    """Run a renderer and return its markup.

    A renderer that returns a string supplies the fragment directly;
    otherwise whatever it printed is used.
    """
    with capture_output() as buffer:
        result = renderer()
    if isinstance(result, str):
        return result
    return buffer.getvalue()


class FragmentCache:
    """Get-or-compute cache for rendered fragments.

    Args:
        object_cache: Underlying object cache
        group: Group fragments are stored in (default: fragments)
    """

    def __init__(self, object_cache: ObjectCache, group: str = CacheGroup.FRAGMENTS) -> None:
        self.object_cache = object_cache
        self.group = group

    def get(self, key: str, renderer: Renderer, ttl: TTL = None) -> str:
        """Return the cached fragment, rendering and storing it on a miss."""
        return self.object_cache.get(key, self.group, lambda: render_to_string(renderer), ttl)

    def refresh(self, key: str, renderer: Renderer, ttl: TTL = None) -> str:
        """Render and store a fragment whether or not a live entry exists."""
        return self.object_cache.refresh(key, self.group, lambda: render_to_string(renderer), ttl)

    def peek(self, key: str) -> Any:
        """Return the cached fragment or MISS without rendering."""
        return self.object_cache.get(key, self.group)

    def delete(self, key: str, *, fail_open: bool = True) -> bool:
        return self.object_cache.delete(key, self.group, fail_open=fail_open)

    def flush(self, *, fail_open: bool = True) -> bool:
        return self.object_cache.flush_group(self.group, fail_open=fail_open)
