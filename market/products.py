from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Tuple
from shared.config import settings
from shared.errors import NotFound
from shared.kv import KVStore
from shared.models import Product, UserIdentity, new_id, product_key, user_key
from shared.schemas import ProductIn
from .ecoscore import compute_eco_score
from .users import award_points, reduced_projection, require_caller

logger = logging.getLogger(__name__)

PRODUCT_PREFIX = "product:"


def _newest_first(products: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(
        products,
        key=lambda p: (p.get("createdAt") or "", p.get("id") or ""),
        reverse=True,
    )


def create_product(
    store: KVStore,
    caller: Optional[UserIdentity],
    data: ProductIn,
) -> Dict[str, Any]:
    caller = require_caller(caller)
    product = Product(
        id=new_id(),
        seller_id=caller.id,
        title=data.title,
        description=data.description,
        price=data.price,
        category=data.category,
        condition=data.condition,
        material=data.material,
        images=list(data.images),
        location=data.location,
        eco_score=compute_eco_score(data.material, data.condition),
    )
    item = product.to_item()
    store.set(product_key(product.id), item)
    logger.info("User %s listed product %s (ecoScore=%d)", caller.id, product.id, product.eco_score)

    award_points(store, caller.id, settings.eco_points_per_listing)
    return item


def list_products(
    store: KVStore,
    category: Optional[str] = None,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    products = store.get_by_prefix(PRODUCT_PREFIX)

    if category and category != "all":
        products = [p for p in products if p.get("category") == category]

    if search:
        needle = search.lower()
        products = [
            p for p in products
            if needle in (p.get("title") or "").lower()
            or needle in (p.get("description") or "").lower()
        ]

    return _newest_first(products)


def get_product(store: KVStore, product_id: str) -> Tuple[Dict[str, Any], Optional[Dict[str, Any]]]:
    """Fetch a product for its detail page, counting the view.

    Returns ``(product, seller)``; seller is the public projection of the
    listing user's profile, or None when that profile does not exist.
    """
    product = store.incr(product_key(product_id), "views", 1)
    if product is None:
        raise NotFound("Product not found")

    seller = store.get(user_key(product.get("sellerId") or ""))
    return product, (reduced_projection(seller) if seller else None)


def list_user_products(store: KVStore, caller: Optional[UserIdentity]) -> List[Dict[str, Any]]:
    caller = require_caller(caller)
    return _newest_first(
        [p for p in store.get_by_prefix(PRODUCT_PREFIX) if p.get("sellerId") == caller.id]
    )
