"""Cart Store interface as consumed by the order engine."""

from __future__ import annotations

from abc import ABC, abstractmethod


class ICartRepository(ABC):
    @abstractmethod
    def clear_for_customer(self, customer_id: str) -> int:
        """Delete every cart line of *customer_id*; return the number removed."""
