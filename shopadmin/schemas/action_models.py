"""Typed CRUD action schemas.

Every (entity, operation) pair has its own parameter model. The planner speaks
camelCase (``newStock``, ``productName``), so the models use camelCase aliases
while still accepting snake_case field names. Numeric fields go through
``normalize_number`` so localized strings like "1.500.000" become ints.
"""
from enum import Enum
from typing import Any, Dict, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from ..nlu.rules import normalize_number


class Entity(str, Enum):
    product = "product"
    purchase = "purchase"


class Operation(str, Enum):
    create = "create"
    read = "read"
    update = "update"
    delete = "delete"


class ActionParams(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    @field_validator("*", mode="before")
    @classmethod
    def blank_to_none(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


def _numbers(*fields):
    """Build a before-validator normalizing the given numeric fields."""
    def normalize(v, info):
        return normalize_number(v, field=info.field_name)
    return field_validator(*fields, mode="before")(normalize)


def _scope(v):
    if isinstance(v, str) and v.strip().lower() == "all":
        return "all"
    return None


# -- PRODUCT --

class ProductCreateParams(ActionParams):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[int] = None
    description: Optional[str] = None
    initial_stock: Optional[int] = None

    normalize_numbers = _numbers("price", "initial_stock")


class ProductReadParams(ActionParams):
    id: Optional[int] = None
    name: Optional[str] = None
    query: Optional[str] = None

    normalize_numbers = _numbers("id")


class ProductUpdateParams(ActionParams):
    id: Optional[int] = None
    name: Optional[str] = None
    scope: Optional[str] = None
    new_name: Optional[str] = None
    new_category: Optional[str] = None
    new_price: Optional[int] = None
    new_description: Optional[str] = None
    new_stock: Optional[int] = None

    normalize_numbers = _numbers("id", "new_price", "new_stock")

    @field_validator("scope", mode="before")
    @classmethod
    def normalize_scope(cls, v):
        return _scope(v)


class ProductDeleteParams(ActionParams):
    id: Optional[int] = None
    name: Optional[str] = None
    scope: Optional[str] = None
    confirm_delete_all: bool = False

    normalize_numbers = _numbers("id")

    @field_validator("scope", mode="before")
    @classmethod
    def normalize_scope(cls, v):
        return _scope(v)

    @field_validator("confirm_delete_all", mode="before")
    @classmethod
    def none_is_false(cls, v):
        if v is None or (isinstance(v, str) and not v.strip()):
            return False
        return v


# -- PURCHASE --

class PurchaseCreateParams(ActionParams):
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    quantity: Optional[int] = None
    buyer_name: Optional[str] = None

    normalize_numbers = _numbers("product_id", "quantity")


class PurchaseReadParams(ActionParams):
    id: Optional[int] = None

    normalize_numbers = _numbers("id")


class PurchaseUpdateParams(ActionParams):
    id: Optional[int] = None
    new_status: Optional[str] = None
    new_quantity: Optional[int] = None
    new_buyer_name: Optional[str] = None

    normalize_numbers = _numbers("id", "new_quantity")

    @property
    def is_edit(self) -> bool:
        return self.new_quantity is not None or self.new_buyer_name is not None


class PurchaseDeleteParams(ActionParams):
    id: Optional[int] = None

    normalize_numbers = _numbers("id")


PARAMS_SCHEMAS: Dict[tuple, Type[ActionParams]] = {
    (Entity.product, Operation.create): ProductCreateParams,
    (Entity.product, Operation.read): ProductReadParams,
    (Entity.product, Operation.update): ProductUpdateParams,
    (Entity.product, Operation.delete): ProductDeleteParams,
    (Entity.purchase, Operation.create): PurchaseCreateParams,
    (Entity.purchase, Operation.read): PurchaseReadParams,
    (Entity.purchase, Operation.update): PurchaseUpdateParams,
    (Entity.purchase, Operation.delete): PurchaseDeleteParams,
}

# raw keys that turn a purchase update into an admin-only edit
PURCHASE_EDIT_KEYS = ("newQuantity", "new_quantity", "newBuyerName", "new_buyer_name")


class ActionDescriptor(BaseModel):
    """One requested database operation, as produced by the planner."""
    model_config = ConfigDict(extra="ignore")

    entity: Entity
    operation: Operation
    params: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("entity", "operation", mode="before")
    @classmethod
    def lowercase(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("params", mode="before")
    @classmethod
    def none_is_empty(cls, v):
        return {} if v is None else v

    def typed_params(self) -> ActionParams:
        """Validate ``params`` against the schema for this pair."""
        schema = PARAMS_SCHEMAS[(self.entity, self.operation)]
        return schema.model_validate(self.params)


def describe_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ())) or "params"
        msg = err.get("msg", "invalid value")
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        parts.append(f"{field}: {msg}")
    return "; ".join(parts)
