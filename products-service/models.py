from typing import Any, Iterable, Iterator, List, Optional, Union
from pydantic import BaseModel

class Product(BaseModel):
    id: str
    name: Any
    description: Any
    price: Optional[Union[int, float]] = None  # None quand la valeur n'est pas numérique
    category: Any
    inStock: bool = False


def seed_products() -> List[Product]:
    return [
        Product(
            id="1",
            name="Laptop",
            description="High-performance laptop with 16GB RAM",
            price=1200,
            category="electronics",
            inStock=True,
        ),
        Product(
            id="2",
            name="Smartphone",
            description="Latest model with 128GB storage",
            price=800,
            category="electronics",
            inStock=True,
        ),
        Product(
            id="3",
            name="Coffee Maker",
            description="Programmable coffee maker with timer",
            price=50,
            category="kitchen",
            inStock=False,
        ),
    ]


class ProductStore:
    """Ordered in-memory collection of products, keyed by id."""

    def __init__(self, products: Optional[Iterable[Product]] = None):
        self._products: List[Product] = []
        self.reset(products)

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self) -> Iterator[Product]:
        return iter(list(self._products))

    def reset(self, products: Optional[Iterable[Product]] = None) -> None:
        """Replace the whole collection, defaulting to the seed set."""
        self._products = list(products) if products is not None else seed_products()

    def all(self) -> List[Product]:
        return list(self._products)

    def get(self, product_id: str) -> Optional[Product]:
        return next((p for p in self._products if p.id == product_id), None)

    def next_id(self) -> str:
        """
        Id of the next created product: collection size + 1.
        Bumped while that id is still taken (after a delete), so ids stay unique.
        """
        taken = {p.id for p in self._products}
        candidate = len(self._products) + 1
        while str(candidate) in taken:
            candidate += 1
        return str(candidate)

    def insert(self, product: Product) -> Product:
        if self.get(product.id) is not None:
            raise ValueError(f"Product id {product.id} already exists")
        self._products.append(product)
        return product

    def replace(self, product: Product) -> Optional[Product]:
        for index, existing in enumerate(self._products):
            if existing.id == product.id:
                self._products[index] = product
                return product
        return None

    def remove(self, product_id: str) -> bool:
        remaining = [p for p in self._products if p.id != product_id]
        if len(remaining) == len(self._products):
            return False
        self._products = remaining
        return True


# Stockage en mémoire (exemple)
products_db = ProductStore()
