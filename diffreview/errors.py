"""Error taxonomy shared by git retrieval and review runtime.

None of these are fatal: the resolver converts them into empty results plus
an error string, and the session keeps accepting input afterwards.
"""

from __future__ import annotations


class ReviewError(Exception):
    """Base class for diffreview errors."""


class RetrievalFailure(ReviewError):
    """External git process or file read failed."""


class NotFound(RetrievalFailure):
    """A commit, branch, or blob referenced by the view no longer resolves."""


class GitCommandError(RetrievalFailure):
    """A git subcommand exited non-zero, timed out, or could not start."""

    def __init__(self, args: list[str], message: str, returncode: int | None = None) -> None:
        self.git_args = list(args)
        self.returncode = returncode
        super().__init__(message)

    def __str__(self) -> str:
        command = " ".join(["git", *self.git_args])
        base = super().__str__()
        if self.returncode is None:
            return f"{command}: {base}"
        return f"{command} (exit {self.returncode}): {base}"
