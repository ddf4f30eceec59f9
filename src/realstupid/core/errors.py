"""Exception hierarchy for RealStupid.

Services raise these; the HTTP layer maps them to status codes. The hierarchy is:

    RealStupidError
    ├── Unauthenticated
    ├── NotFound
    ├── ValidationFailed(errors)
    ├── ConflictFailed
    ├── StorageFailed
    └── VoteFailed(post_id, missing_post)
"""

from __future__ import annotations

from pydantic import ValidationError


class RealStupidError(Exception):
    """Base exception for all RealStupid errors."""


class Unauthenticated(RealStupidError):
    """An operation that needs a user identity was attempted without one."""


class NotFound(RealStupidError):
    """A referenced entity does not exist."""


class ValidationFailed(RealStupidError):
    """Input to a creation operation violated field constraints.

    ``errors`` maps field names to a human-readable message so callers can
    render per-field feedback.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        summary = "; ".join(f"{field}: {msg}" for field, msg in self.errors.items())
        super().__init__(f"Validation failed ({summary})")

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> ValidationFailed:
        errors: dict[str, str] = {}
        for error in exc.errors():
            field = ".".join(str(part) for part in error["loc"]) or "__root__"
            errors.setdefault(field, error["msg"])
        return cls(errors)


class ConflictFailed(RealStupidError):
    """A unique constraint was violated (e.g. a duplicate community name)."""


class StorageFailed(RealStupidError):
    """The store could not complete a transaction; nothing was written."""


class VoteFailed(RealStupidError):
    """A vote could not be applied; the transaction was rolled back."""

    def __init__(self, post_id: int, message: str, *, missing_post: bool = False) -> None:
        self.post_id = post_id
        self.missing_post = missing_post
        super().__init__(f"[post {post_id}] {message}")
