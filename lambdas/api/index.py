from __future__ import annotations
import base64
import binascii
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple
from shared.auth import IdentityProvider, bearer_token, get_identity_provider
from shared.config import settings
from shared.errors import MarketError, NotFound, Unauthorized, ValidationError, error_body
from shared.kv import KVStore, get_store
from shared.logs import setup_logging
from shared.models import UserIdentity
from shared.schemas import MessageIn, ProductIn, SignupBody, parse_body
from market import chat, leaderboard, products, users, wishlist
from market.ecoscore import compute_eco_score, estimate_impact
from market.seed import seed_products

setup_logging()
logger = logging.getLogger("ecofinds.lambda")


def _allowed_origin(origin: Optional[str]) -> Optional[str]:
    allowed = settings.cors_origin_list
    if "*" in allowed:
        return "*"
    if origin and origin in allowed:
        return origin
    return None


def _ok(b, c=200, origin=None):
    headers = {
        "Content-Type": "application/json",
        "Access-Control-Allow-Headers": "Content-Type,Authorization",
        "Access-Control-Allow-Methods": "GET,POST,PUT,DELETE,OPTIONS",
    }
    allow = _allowed_origin(origin)
    if allow:
        headers["Access-Control-Allow-Origin"] = allow
        if allow != "*":
            headers["Vary"] = "Origin"
    return {
        "statusCode": c,
        "headers": headers,
        "body": json.dumps(b, ensure_ascii=False, allow_nan=False),
    }


@dataclass
class Call:
    store: KVStore
    idp: IdentityProvider
    params: Dict[str, str]
    query: Dict[str, str]
    raw_body: Optional[str]
    base64_body: bool = False
    caller: Optional[UserIdentity] = None

    def json(self) -> Any:
        if not self.raw_body:
            return {}
        raw = self.raw_body
        try:
            if self.base64_body:
                raw = base64.b64decode(raw, validate=True).decode("utf-8")
            return json.loads(raw)
        except (binascii.Error, UnicodeDecodeError) as e:
            raise ValidationError("Invalid request body") from e
        except json.JSONDecodeError as e:
            raise ValidationError("Invalid JSON body") from e


def _signup(c: Call):
    body = parse_body(SignupBody, c.json())
    user = users.signup(c.store, c.idp, body.email, body.password, body.name)
    return {"user": user.to_item()}

def _list_products(c: Call):
    return {"products": products.list_products(c.store, c.query.get("category"), c.query.get("search"))}

def _create_product(c: Call):
    data = parse_body(ProductIn, c.json())
    return {"product": products.create_product(c.store, c.caller, data)}

def _get_product(c: Call):
    product, seller = products.get_product(c.store, c.params["id"])
    return {
        "product": product,
        "seller": seller,
        "impact": estimate_impact(product.get("price"), product.get("ecoScore")),
    }

def _profile(c: Call):
    return {"profile": users.get_profile(c.store, c.caller)}

def _user_products(c: Call):
    return {"products": products.list_user_products(c.store, c.caller)}

def _wishlist_add(c: Call):
    wishlist.add(c.store, c.caller, c.params["productId"])
    return {"success": True}

def _wishlist_remove(c: Call):
    wishlist.remove(c.store, c.caller, c.params["productId"])
    return {"success": True}

def _wishlist_list(c: Call):
    return {"products": wishlist.list_products(c.store, c.caller)}

def _chat_send(c: Call):
    body = parse_body(MessageIn, c.json())
    return {"message": chat.send_message(c.store, c.caller, body.recipientId, body.message, body.productId)}

def _chat_list(c: Call):
    return {"messages": chat.list_conversation(c.store, c.caller, c.params["otherUserId"])}

def _leaderboard(c: Call):
    raw = c.query.get("limit")
    try:
        n = int(raw) if raw else settings.leaderboard_size
    except ValueError as e:
        raise ValidationError("limit must be an integer") from e
    if not 1 <= n <= 100:
        raise ValidationError("limit must be between 1 and 100")
    return {"leaderboard": leaderboard.top_users(c.store, n)}

def _ecoscore(c: Call):
    material = c.query.get("material", "")
    condition = c.query.get("condition", "")
    return {"material": material, "condition": condition, "ecoScore": compute_eco_score(material, condition)}

def _seed(c: Call):
    if not settings.seed_enabled:
        raise NotFound("Seeding is disabled")
    return {"message": "Sample products created successfully", "count": seed_products(c.store)}

def _ping(_c: Call):
    return {"ok": True, "region": settings.aws_region, "stage": settings.stage, "kvBackend": settings.kv_backend}


Handler = Callable[[Call], Dict[str, Any]]

# method, path pattern, handler, auth required
ROUTES: List[Tuple[str, "re.Pattern[str]", Handler, bool]] = [
    (m, re.compile(f"^{p}$"), h, a) for m, p, h, a in [
        ("POST",   r"/signup", _signup, False),
        ("GET",    r"/products", _list_products, False),
        ("POST",   r"/products", _create_product, True),
        ("GET",    r"/products/(?P<id>[^/]+)", _get_product, False),
        ("GET",    r"/user/profile", _profile, True),
        ("GET",    r"/user/products", _user_products, True),
        ("POST",   r"/wishlist/(?P<productId>[^/]+)", _wishlist_add, True),
        ("DELETE", r"/wishlist/(?P<productId>[^/]+)", _wishlist_remove, True),
        ("GET",    r"/wishlist", _wishlist_list, True),
        ("POST",   r"/chat/message", _chat_send, True),
        ("GET",    r"/chat/(?P<otherUserId>[^/]+)", _chat_list, True),
        ("GET",    r"/leaderboard", _leaderboard, False),
        ("GET",    r"/ecoscore", _ecoscore, False),
        ("POST",   r"/seed-products", _seed, False),
        ("GET",    r"/ping", _ping, False),
    ]
]


def _strip_prefix(path: str) -> str:
    prefix = settings.api_prefix
    if prefix:
        i = path.find(prefix + "/")
        if i >= 0:
            path = path[i + len(prefix):]
        elif path.endswith(prefix):
            path = "/"
    return path.rstrip("/") or "/"

def _match(method: str, path: str) -> Tuple[Optional[Handler], bool, Dict[str, str], bool]:
    """Return (handler, auth, params, path_known)."""
    path_known = False
    for m, rx, h, auth in ROUTES:
        mt = rx.match(path)
        if not mt:
            continue
        path_known = True
        if m == method:
            return h, auth, mt.groupdict(), True
    return None, False, {}, path_known

def _header(headers: Dict[str, str], name: str) -> Optional[str]:
    for k, v in (headers or {}).items():
        if k.lower() == name:
            return v
    return None

def handle(event: Dict[str, Any], store: KVStore, idp: IdentityProvider) -> Dict[str, Any]:
    method = (event.get("httpMethod")
              or event.get("requestContext", {}).get("http", {}).get("method")
              or "GET").upper()
    path = _strip_prefix(event.get("path") or event.get("rawPath") or "/")
    origin = _header(event.get("headers"), "origin")

    def reply(b, c=200):
        return _ok(b, c, origin)

    if method == "OPTIONS":
        return reply({}, 204)

    try:
        h, auth, params, path_known = _match(method, path)
        if h is None:
            if path_known:
                return reply({"error": "Method not allowed"}, 405)
            raise NotFound("Route not found")

        call = Call(
            store=store,
            idp=idp,
            params=params,
            query=event.get("queryStringParameters") or {},
            raw_body=event.get("body"),
            base64_body=bool(event.get("isBase64Encoded")),
        )
        if auth:
            call.caller = idp.resolve_caller(bearer_token(_header(event.get("headers"), "authorization")))
            if call.caller is None:
                raise Unauthorized()
        return reply(h(call))
    except MarketError as e:
        if e.status_code >= 500:
            logger.error("Service failure on %s %s: %s", method, path, e.message)
        return reply(error_body(e), e.status_code)
    except Exception:
        logger.exception("Unhandled error on %s %s", method, path)
        return reply({"error": "Internal server error"}, 500)


def handler(event, _ctx):
    return handle(event, get_store(), get_identity_provider())
