"""Generic repository interface (Dependency Inversion Principle).

Provides ``IRepository[T]``, the base abstract class that all
domain-specific repository interfaces extend, and ``storage_guard``,
which concrete repositories use to turn driver errors into
``StorageFailure``.  Service-layer code depends on these abstractions,
never on Django ORM directly.
"""

from __future__ import annotations

import functools
from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Optional, TypeVar

import structlog
from django.db import DatabaseError

from modules.core.exceptions import StorageFailure

logger = structlog.get_logger(__name__)

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])


class IRepository(ABC, Generic[T]):
    """Base generic repository contract.

    Type parameter ``T`` represents the domain entity managed by the
    repository (e.g. ``Order``, ``Product``).
    """

    @abstractmethod
    def get_by_id(self, id: str) -> Optional[T]:
        """Retrieve an entity by its primary key."""

    @abstractmethod
    def save(self, entity: T) -> T:
        """Persist (create or update) an entity."""


def storage_guard(func: F) -> F:
    """Wrap a repository method so database errors surface as ``StorageFailure``.

    The original exception is logged with its traceback and chained, but
    its message never reaches the caller.
    """

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except DatabaseError as exc:
            logger.exception(
                "storage.failure",
                operation=func.__qualname__,
                error_type=type(exc).__name__,
            )
            raise StorageFailure(f"{func.__qualname__} failed: {exc}") from exc

    return wrapper  # type: ignore[return-value]
