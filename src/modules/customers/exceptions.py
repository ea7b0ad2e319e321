"""Customer domain exceptions."""

from __future__ import annotations

from modules.core.exceptions import NotFoundError


class CustomerNotFound(NotFoundError):
    """The requested customer does not exist."""
