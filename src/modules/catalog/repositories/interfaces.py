"""Product/Stock Store interface.

The order engine needs only three things from the catalog: read an
active product, take stock away conditionally, and give stock back.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import TYPE_CHECKING, Optional

from modules.core.repositories.interfaces import IRepository

if TYPE_CHECKING:
    from modules.catalog.models import Product


class IProductRepository(IRepository["Product"]):
    """Repository contract for the Product aggregate."""

    @abstractmethod
    def get_active(self, id: str) -> Optional[Product]:
        """Return the product if it exists and is active, else ``None``."""

    @abstractmethod
    def conditional_decrement_stock(self, id: str, quantity: int) -> bool:
        """Atomically reduce ``in_stock`` by *quantity*.

        Succeeds only when the product is active and holds at least
        *quantity* units at the moment of the update.  Returns ``False``
        when no row qualified.
        """

    @abstractmethod
    def restock(self, id: str, quantity: int) -> bool:
        """Atomically add *quantity* units back to ``in_stock``."""
