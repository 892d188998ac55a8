"""Clothing catalog collected from ``shopproductlist`` responses.

Response shape::

    {
        "shopID": <int>,
        "shopProductList": {
            <any key>: [
                {"type": "CLOTH", "clip": "...", "id": <int>, "colors": ["3", "7"]},
                ...
            ],
            ...
        }
    }

Servers in the wild send partial or odd entries, so every read below is an
attempt: a bad field drops that entry only, never the whole response.
"""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from typing import Any, Callable, TypeVar

from .protocol import SfsObject

logger = logging.getLogger(__name__)

T = TypeVar("T")

CLOTH_TYPE = "CLOTH"

_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")

# Errors a typed SFS accessor raises on a missing key or a type mismatch
_READ_ERRORS = (KeyError, IndexError, TypeError, ValueError)


@dataclass(frozen=True)
class ClothProduct:
    shop_id: int
    product_id: int
    clip: str
    colors: tuple[int, ...] = ()

    @property
    def key(self) -> tuple[int, int]:
        return (self.shop_id, self.product_id)


def attempt(read: Callable[..., T], *args: Any) -> T | None:
    """Run a typed accessor; ``None`` when the value is absent or mistyped."""
    try:
        return read(*args)
    except _READ_ERRORS:
        return None


def parse_positive_int(value: object) -> int | None:
    """Leading-integer parse of ``value``; ``None`` unless the result is > 0."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if value > 0 else None
    m = _LEADING_INT_RE.match(str(value))
    if not m:
        return None
    n = int(m.group(1))
    return n if n > 0 else None


def parse_colors(product: SfsObject) -> tuple[int, ...]:
    colors = attempt(product.get_sfs_array, "colors")
    if colors is None:
        return ()
    size = attempt(colors.size) or 0
    out = []
    for i in range(size):
        n = parse_positive_int(attempt(colors.get_utf_string, i))
        if n is not None:
            out.append(n)
    return tuple(out)


def parse_cloth_product(shop_id: int, product: SfsObject) -> ClothProduct | None:
    """Catalog entry for one product object, or ``None`` if it is not usable."""
    kind = attempt(product.get_utf_string, "type")
    if not kind or str(kind).upper() != CLOTH_TYPE:
        return None
    clip = attempt(product.get_utf_string, "clip")
    if not clip:
        return None
    product_id = attempt(product.get_int, "id")
    if isinstance(product_id, bool) or not isinstance(product_id, int) or product_id <= 0:
        return None
    return ClothProduct(
        shop_id=shop_id,
        product_id=product_id,
        clip=str(clip),
        colors=parse_colors(product),
    )


def parse_shop_products(params: SfsObject) -> list[ClothProduct]:
    """All usable cloth products of a ``shopproductlist`` response."""
    shop_id = attempt(params.get_int, "shopID")
    if isinstance(shop_id, bool) or not isinstance(shop_id, int):
        shop_id = 0

    shop_list = attempt(params.get_sfs_object, "shopProductList")
    if shop_list is None:
        return []

    products: list[ClothProduct] = []
    for key in attempt(shop_list.get_keys) or ():
        arr = attempt(shop_list.get_sfs_array, key)
        if arr is None:
            continue
        for i in range(attempt(arr.size) or 0):
            obj = attempt(arr.get_sfs_object, i)
            if obj is None:
                continue
            product = parse_cloth_product(shop_id, obj)
            if product is not None:
                products.append(product)
    return products


class ClothCatalog:
    """Ordered set of cloth products, unique by (shop id, product id)."""

    def __init__(self) -> None:
        self._products: list[ClothProduct] = []
        self._keys: set[tuple[int, int]] = set()

    def __len__(self) -> int:
        return len(self._products)

    def __iter__(self):
        return iter(self._products)

    def add(self, product: ClothProduct) -> bool:
        if product.key in self._keys:
            return False
        self._keys.add(product.key)
        self._products.append(product)
        return True

    def collect(self, params: SfsObject) -> int:
        """Merge a shop response into the catalog; returns entries added."""
        return sum(1 for p in parse_shop_products(params) if self.add(p))

    def pick(self, rng: random.Random) -> ClothProduct | None:
        if not self._products:
            return None
        return rng.choice(self._products)


def pick_color(product: ClothProduct, rng: random.Random) -> int:
    """Random color of the product, or 0 meaning "no color"."""
    if not product.colors:
        return 0
    return rng.choice(product.colors)
