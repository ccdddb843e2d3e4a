"""Pydantic models for API I/O and agent contracts."""
from enum import Enum
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Literal, Optional

from ..data.models import UserRole


class AppUser(BaseModel):
    """Authenticated caller, as returned by /login and echoed back by the client."""
    id: int
    email: str
    full_name: str = ""
    role: UserRole


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class Plan(BaseModel):
    """Planner output: a reply and at most one raw action descriptor."""
    reply: str = ""
    action: Optional[Dict[str, Any]] = None


class ResultStatus(str, Enum):
    ok = "ok"
    noop = "noop"
    denied = "denied"
    not_found = "not_found"
    invalid = "invalid"
    failed = "failed"
    partial = "partial"
    confirmation_required = "confirmation_required"


class ActionResult(BaseModel):
    agent: str
    operation: str
    status: ResultStatus = ResultStatus.ok
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)


class ChatRequest(BaseModel):
    messages: List[ChatMessage]
    user: Optional[AppUser] = None


class ChatResponse(BaseModel):
    reply: str


class ActionRequest(BaseModel):
    action: Dict[str, Any]
    user: Optional[AppUser] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    user: AppUser


class CategoryStock(BaseModel):
    category: str
    stock: int


class DailyPurchaseTotal(BaseModel):
    date: str
    total: int


class DashboardSummary(BaseModel):
    product_count: int
    stock_total: int
    purchase_total_30d: int
    purchases_7d: List[DailyPurchaseTotal]
    stock_by_category: List[CategoryStock]
