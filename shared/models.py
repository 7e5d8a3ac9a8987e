from __future__ import annotations
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any
from .errors import ValidationError

def new_id() -> str:
    return str(uuid.uuid4())

def now_iso() -> str:
    # fixed-width UTC so string order == time order
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")

def user_key(user_id: str) -> str: return f"user:{user_id}"
def product_key(product_id: str) -> str: return f"product:{product_id}"
def message_key(message_id: str) -> str: return f"message:{message_id}"
def wishlist_prefix(user_id: str) -> str:
    # a ':' in the user id would let this prefix match another user's entries
    if not user_id or ":" in user_id:
        raise ValidationError("Invalid user id")
    return f"wishlist:{user_id}:"
def wishlist_key(user_id: str, product_id: str) -> str: return f"{wishlist_prefix(user_id)}{product_id}"

@dataclass(frozen=True)
class UserIdentity:
    id: str
    email: str = ""
    name: str = ""

    def to_item(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "name": self.name}

@dataclass
class UserProfile:
    id: str
    email: str
    name: str
    eco_points: int = 0
    badges: List[str] = field(default_factory=list)
    joined_at: str = field(default_factory=now_iso)

    def to_item(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "ecoPoints": self.eco_points,
            "badges": list(self.badges),
            "joinedAt": self.joined_at,
        }

@dataclass
class Product:
    id: str
    seller_id: str
    title: str
    description: str
    price: float
    category: str
    condition: str
    material: str
    eco_score: int
    images: List[str] = field(default_factory=list)
    location: Optional[str] = None
    created_at: str = field(default_factory=now_iso)
    views: int = 0
    likes: int = 0

    def to_item(self) -> Dict[str, Any]:
        item = {
            "id": self.id,
            "sellerId": self.seller_id,
            "title": self.title,
            "description": self.description,
            "price": self.price,
            "category": self.category,
            "condition": self.condition,
            "material": self.material,
            "images": list(self.images),
            "ecoScore": self.eco_score,
            "createdAt": self.created_at,
            "views": self.views,
            "likes": self.likes,
        }
        if self.location is not None:
            item["location"] = self.location
        return item

@dataclass
class WishlistEntry:
    user_id: str
    product_id: str
    added_at: str = field(default_factory=now_iso)

    def to_item(self) -> Dict[str, Any]:
        return {"userId": self.user_id, "productId": self.product_id, "addedAt": self.added_at}

@dataclass
class ChatMessage:
    id: str
    sender_id: str
    recipient_id: str
    message: str
    product_id: Optional[str] = None
    timestamp: str = field(default_factory=now_iso)
    read: bool = False

    def to_item(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "senderId": self.sender_id,
            "recipientId": self.recipient_id,
            "message": self.message,
            "productId": self.product_id,
            "timestamp": self.timestamp,
            "read": self.read,
        }
