from __future__ import annotations
import logging
from typing import List, Tuple
from shared.kv import KVStore
from shared.models import Product, new_id, product_key
from .ecoscore import compute_eco_score

logger = logging.getLogger(__name__)

_IMG = "https://images.unsplash.com/{}?w=400&h=400&fit=crop"

# seller, title, description, price, category, condition, material, image, views, likes, location
DEMO_PRODUCTS: List[Tuple] = [
    ("demo-seller-1", "Vintage Denim Jacket",
     "Beautiful vintage denim jacket in excellent condition. Perfect for sustainable fashion lovers.",
     45, "clothing", "excellent", "cotton", "photo-1551028719-00167b16eac5", 12, 3, "San Francisco, CA"),
    ("demo-seller-2", "Bamboo Laptop Stand",
     "Eco-friendly bamboo laptop stand, adjustable height, perfect for remote work.",
     35, "electronics", "good", "bamboo", "photo-1527864550417-7fd91fc51a46", 8, 2, "Portland, OR"),
    ("demo-seller-3", "Reclaimed Wood Coffee Table",
     "Handcrafted coffee table made from reclaimed barn wood. Unique piece with character.",
     180, "furniture", "excellent", "recycled", "photo-1586023492125-27b2c045efd7", 15, 7, "Austin, TX"),
    ("demo-seller-4", "Organic Cotton Sweater",
     "Cozy organic cotton sweater, size medium, barely worn. Soft and sustainable.",
     28, "clothing", "good", "organic", "photo-1434389677669-e08b4cac3105", 6, 1, "Seattle, WA"),
    ("demo-seller-5", "Classic Literature Collection",
     "Set of 12 classic literature books in great condition. Perfect for book lovers.",
     25, "books", "good", "recycled", "photo-1481627834876-b7833e8f5570", 9, 4, "Boston, MA"),
    ("demo-seller-6", "Wooden Building Blocks Set",
     "Natural wooden building blocks set, safe for children, eco-friendly paint.",
     22, "toys", "excellent", "organic", "photo-1558618047-3c8c76ca7d13", 11, 5, "Denver, CO"),
    ("demo-seller-7", "Yoga Mat - Eco-Friendly",
     "Non-toxic, biodegradable yoga mat made from natural rubber. Excellent grip.",
     42, "sports", "good", "organic", "photo-1588286840104-8957b019727f", 7, 2, "Los Angeles, CA"),
    ("demo-seller-8", "Succulent Garden Starter Kit",
     "Complete starter kit with 6 different succulents and recycled planters.",
     32, "home", "excellent", "organic", "photo-1416879595882-3373a0480b5b", 14, 8, "Miami, FL"),
]


def seed_products(store: KVStore) -> int:
    for (seller, title, desc, price, category, condition, material,
         image, views, likes, location) in DEMO_PRODUCTS:
        p = Product(
            id=new_id(),
            seller_id=seller,
            title=title,
            description=desc,
            price=price,
            category=category,
            condition=condition,
            material=material,
            images=[_IMG.format(image)],
            location=location,
            eco_score=compute_eco_score(material, condition),
            views=views,
            likes=likes,
        )
        store.set(product_key(p.id), p.to_item())
    logger.info("Seeded %d demo products", len(DEMO_PRODUCTS))
    return len(DEMO_PRODUCTS)
