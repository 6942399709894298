"""Exception types raised at the Jira boundary."""

from __future__ import annotations


class JiraBoardError(RuntimeError):
    """Base class for failures surfaced to the user."""


class FetchError(JiraBoardError):
    """Search or issue retrieval failed (network, auth, or payload parse)."""


class MutationError(JiraBoardError):
    """Transition, update, create, or worklog request failed."""
