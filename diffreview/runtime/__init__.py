"""Review runtime: state snapshots, transitions, and the session driver.

The session module pulls in git retrieval, so it is imported lazily to keep
``import diffreview.runtime.screen`` light for search and tests.
"""

from __future__ import annotations


def open_session(*args, **kwargs):
    """Lazily import session bootstrap to avoid package-import cycles."""
    from .session import open_session as _open_session

    return _open_session(*args, **kwargs)


def __getattr__(name: str):
    if name in {"ReviewSession", "TaskRunner"}:
        from . import session as _session

        return getattr(_session, name)
    if name in {"ReviewState", "ViewLevel", "FocusedPanel"}:
        from . import state as _state

        return getattr(_state, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "FocusedPanel",
    "ReviewSession",
    "ReviewState",
    "TaskRunner",
    "ViewLevel",
    "open_session",
]
