"""Cross-module exceptions.

Every "entity is absent" condition derives from ``NotFoundError`` so
callers can treat missing data uniformly, apart from system errors.
"""

from __future__ import annotations


class NotFoundError(Exception):
    """A requested entity (order, customer, book, statistic) does not exist."""


class ConcurrentUpdate(Exception):
    """The entity was modified by another writer since it was loaded.

    Raised by repositories when the optimistic version check fails.
    The caller should reload the entity and retry the operation.
    """
