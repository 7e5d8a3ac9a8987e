"""
Request bodies accepted by the HTTP surfaces.

Field names are the camelCase wire names so both FastAPI and the Lambda handler
can validate raw JSON with the same models.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from .errors import ValidationError

M = TypeVar("M", bound=BaseModel)


class SignupBody(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None
    name: Optional[str] = None


class ProductIn(BaseModel):
    title: str = Field(..., min_length=1, max_length=140)
    description: str = Field(..., max_length=5000)
    price: float = Field(..., ge=0, allow_inf_nan=False)
    category: str = Field(..., min_length=1)
    condition: str
    material: str
    images: List[str] = Field(default_factory=list)
    location: Optional[str] = None


class MessageIn(BaseModel):
    recipientId: Optional[str] = None
    message: Optional[str] = None
    productId: Optional[str] = None


def validation_message(errors: Sequence[Dict[str, Any]]) -> str:
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


def parse_body(model: Type[M], payload: Any) -> M:
    try:
        return model.model_validate(payload if payload is not None else {})
    except PydanticValidationError as e:
        raise ValidationError(validation_message(e.errors())) from e
