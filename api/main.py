from __future__ import annotations
import logging
import os
import time
from typing import Optional
from fastapi import APIRouter, Depends, FastAPI, Header, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from shared.auth import IdentityProvider, bearer_token, get_identity_provider
from shared.config import settings
from shared.errors import MarketError, NotFound, Unauthorized, error_body
from shared.kv import KVStore, get_store
from shared.logs import setup_logging
from shared.models import UserIdentity
from shared.schemas import MessageIn, ProductIn, SignupBody, validation_message
from market import chat, leaderboard, products, users, wishlist
from market.ecoscore import compute_eco_score, estimate_impact
from market.seed import seed_products

setup_logging()
logger = logging.getLogger("ecofinds.api")

app = FastAPI(title="EcoFinds Marketplace API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        response = JSONResponse({"error": "Internal server error"}, status_code=500)
    elapsed = (time.perf_counter() - started) * 1000
    logger.info("%s %s -> %d (%.1f ms)", request.method, request.url.path, response.status_code, elapsed)
    return response


@app.exception_handler(MarketError)
async def market_error_handler(_request: Request, exc: MarketError):
    if exc.status_code >= 500:
        logger.error("Service failure: %s", exc.message)
    return JSONResponse(error_body(exc), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_request: Request, exc: RequestValidationError):
    return JSONResponse({"error": validation_message(exc.errors())}, status_code=400)


# Dependencies; tests swap these through app.dependency_overrides
def get_kv() -> KVStore:
    return get_store()

def get_idp() -> IdentityProvider:
    return get_identity_provider()

def get_caller(
    authorization: Optional[str] = Header(None),
    idp: IdentityProvider = Depends(get_idp),
) -> Optional[UserIdentity]:
    return idp.resolve_caller(bearer_token(authorization))

def require_user(caller: Optional[UserIdentity] = Depends(get_caller)) -> UserIdentity:
    if caller is None:
        raise Unauthorized()
    return caller


router = APIRouter(prefix=settings.api_prefix)

@router.post("/signup")
def signup(body: SignupBody, store: KVStore = Depends(get_kv), idp: IdentityProvider = Depends(get_idp)):
    user = users.signup(store, idp, body.email, body.password, body.name)
    return {"user": user.to_item()}

@router.get("/products")
def list_products(
    category: Optional[str] = Query(None),
    search: Optional[str] = Query(None),
    store: KVStore = Depends(get_kv),
):
    return {"products": products.list_products(store, category=category, search=search)}

@router.post("/products")
def create_product(body: ProductIn, caller: UserIdentity = Depends(require_user), store: KVStore = Depends(get_kv)):
    return {"product": products.create_product(store, caller, body)}

@router.get("/products/{product_id}")
def get_product(product_id: str, store: KVStore = Depends(get_kv)):
    product, seller = products.get_product(store, product_id)
    return {
        "product": product,
        "seller": seller,
        "impact": estimate_impact(product.get("price"), product.get("ecoScore")),
    }

@router.get("/user/profile")
def user_profile(caller: UserIdentity = Depends(require_user), store: KVStore = Depends(get_kv)):
    return {"profile": users.get_profile(store, caller)}

@router.get("/user/products")
def user_products(caller: UserIdentity = Depends(require_user), store: KVStore = Depends(get_kv)):
    return {"products": products.list_user_products(store, caller)}

@router.post("/wishlist/{product_id}")
def wishlist_add(product_id: str, caller: UserIdentity = Depends(require_user), store: KVStore = Depends(get_kv)):
    wishlist.add(store, caller, product_id)
    return {"success": True}

@router.delete("/wishlist/{product_id}")
def wishlist_remove(product_id: str, caller: UserIdentity = Depends(require_user), store: KVStore = Depends(get_kv)):
    wishlist.remove(store, caller, product_id)
    return {"success": True}

@router.get("/wishlist")
def wishlist_list(caller: UserIdentity = Depends(require_user), store: KVStore = Depends(get_kv)):
    return {"products": wishlist.list_products(store, caller)}

@router.post("/chat/message")
def chat_send(body: MessageIn, caller: UserIdentity = Depends(require_user), store: KVStore = Depends(get_kv)):
    msg = chat.send_message(store, caller, body.recipientId, body.message, body.productId)
    return {"message": msg}

@router.get("/chat/{other_user_id}")
def chat_conversation(other_user_id: str, caller: UserIdentity = Depends(require_user), store: KVStore = Depends(get_kv)):
    return {"messages": chat.list_conversation(store, caller, other_user_id)}

@router.get("/leaderboard")
def leaderboard_top(limit: Optional[int] = Query(None, ge=1, le=100), store: KVStore = Depends(get_kv)):
    return {"leaderboard": leaderboard.top_users(store, limit or settings.leaderboard_size)}

@router.get("/ecoscore")
def ecoscore_preview(material: str = Query(""), condition: str = Query("")):
    return {"material": material, "condition": condition, "ecoScore": compute_eco_score(material, condition)}

@router.post("/seed-products")
def seed(store: KVStore = Depends(get_kv)):
    if not settings.seed_enabled:
        raise NotFound("Seeding is disabled")
    count = seed_products(store)
    return {"message": "Sample products created successfully", "count": count}

@router.get("/ping")
def ping():
    return {
        "ok": True,
        "region": settings.aws_region,
        "stage": settings.stage,
        "kvBackend": settings.kv_backend,
    }

app.include_router(router)


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
