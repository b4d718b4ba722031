"""
Database Schemas

MongoDB collection schemas and request payloads, as Pydantic models.
Python attributes are snake_case; documents and JSON use camelCase aliases
(image_url -> imageUrl, user_obj -> userObj), so collection models are
dumped with `by_alias=True` before insertion.

Collection models:
- User -> "users"
- Category -> "categories", SubCategory -> "subcategories"
- Product -> "products"
- Address -> "addresses"
- Cart -> "carts"
- Order -> "orders"
"""

import re
from typing import Annotated, List, Optional

from bson import ObjectId
from pydantic import AfterValidator, BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

DEFAULT_ORDER_STATUS = "Order Placed"


def _check_object_id(v: str) -> str:
    if not ObjectId.is_valid(v):
        raise ValueError("must be a valid object id")
    return v


ObjectIdStr = Annotated[str, AfterValidator(_check_object_id)]
Required = Annotated[str, Field(min_length=1)]


def check_strong_password(v: str) -> str:
    if (
        len(v) < 8
        or not re.search(r"[a-z]", v)
        or not re.search(r"[A-Z]", v)
        or not re.search(r"\d", v)
        or not re.search(r"[^A-Za-z0-9]", v)
    ):
        raise ValueError(
            "Strong password is required (8+ characters with upper, lower, digit and symbol)"
        )
    return v


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )


# Collections

class User(CamelModel):
    username: str
    email: EmailStr
    password: str = Field(..., description="BCrypt hashed password")
    image_url: str
    is_admin: bool = False
    is_super_admin: bool = False


class SubCategory(CamelModel):
    name: str
    description: str


class Category(CamelModel):
    name: str
    description: str
    sub_categories: List[ObjectId] = Field(default_factory=list)


class Product(CamelModel):
    title: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    brand: Optional[str] = None
    price: float = Field(..., ge=0)
    quantity: int = Field(0, ge=0)
    sold: int = 0
    category_obj: ObjectId
    sub_category_obj: Optional[ObjectId] = None
    user_obj: ObjectId


class Address(CamelModel):
    name: str
    email: EmailStr
    mobile: str
    flat: str
    landmark: Optional[str] = None
    street: str
    city: str
    state: str
    country: str
    pin_code: str
    user_obj: ObjectId


class LineItem(CamelModel):
    product: ObjectId
    count: int
    price: float


class Cart(CamelModel):
    products: List[LineItem] = Field(default_factory=list)
    total: float
    tax: float
    grand_total: float
    user_obj: ObjectId


class Order(CamelModel):
    products: List[LineItem]
    total: float
    tax: float
    grand_total: float
    payment_type: str
    order_status: str = DEFAULT_ORDER_STATUS
    order_by: ObjectId


# Request payloads

class RegisterInput(CamelModel):
    username: Required
    email: EmailStr
    password: str

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return check_strong_password(v)

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class LoginInput(CamelModel):
    email: EmailStr
    password: Required

    @field_validator("email")
    @classmethod
    def lower_email(cls, v: str) -> str:
        return v.lower()


class ProfilePictureInput(CamelModel):
    image_url: Required


class ChangePasswordInput(CamelModel):
    password: str

    @field_validator("password")
    @classmethod
    def strong_password(cls, v: str) -> str:
        return check_strong_password(v)


class RoleInput(CamelModel):
    is_admin: Optional[bool] = None
    is_super_admin: Optional[bool] = None


class CategoryInput(CamelModel):
    name: Required
    description: Required


class ProductInput(CamelModel):
    title: Required
    description: Optional[str] = None
    image_url: Optional[str] = None
    brand: Optional[str] = None
    price: float = Field(..., ge=0)
    quantity: int = Field(0, ge=0)
    category_id: ObjectIdStr
    sub_category_id: Optional[ObjectIdStr] = None


class AddressInput(CamelModel):
    mobile: Required
    flat: Required
    landmark: Optional[str] = None
    street: Required
    city: Required
    state: Required
    country: Required
    pin_code: Required


class LineItemInput(CamelModel):
    product: ObjectIdStr
    count: int = Field(..., ge=1)
    price: float = Field(..., ge=0)

    def to_line_item(self) -> LineItem:
        return LineItem(product=ObjectId(self.product), count=self.count, price=self.price)


class CartInput(CamelModel):
    products: List[LineItemInput]
    total: float = Field(..., ge=0)
    tax: float = Field(..., ge=0)
    grand_total: float = Field(..., ge=0)


class OrderInput(CamelModel):
    products: List[LineItemInput] = Field(..., min_length=1)
    total: float = Field(..., ge=0)
    tax: float = Field(..., ge=0)
    grand_total: float = Field(..., ge=0)
    payment_type: Required


class OrderStatusInput(CamelModel):
    order_status: Required
