"""
Database Schemas for the shop backend

Each document model corresponds to a MongoDB collection; the collection
name is the lowercase plural of the class name (User -> "users").
Request and response shapes for the JSON API live at the bottom.
"""
from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field

Number = Union[int, float]


class User(BaseModel):
    username: str = Field(..., min_length=3)
    email: EmailStr
    password: str = Field(..., description="BCrypt hash of the password")
    last_login: Optional[datetime] = None


class CartItem(BaseModel):
    # stored as strings even when the client sends numbers
    model_config = ConfigDict(coerce_numbers_to_str=True)

    name: Optional[str] = None
    price: Optional[Number] = None
    quantity: Optional[Number] = None


class Cart(BaseModel):
    username: str
    items: List[CartItem] = []


class Payment(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    username: str
    nameOnCard: str
    cardNumber: str
    expiryDate: str
    cvv: str
    amount: Number


class Order(BaseModel):
    username: str
    cart: str = Field(..., description="Cart ObjectId")
    payment: str = Field(..., description="Payment ObjectId")
    status: Literal["Pending"] = "Pending"


# Request bodies. Presence is checked by the services so that an empty
# string and a missing key are rejected the same way.
class SignupIn(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginIn(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class CartIn(BaseModel):
    username: Optional[str] = None
    items: Optional[List[CartItem]] = None


class PaymentIn(BaseModel):
    model_config = ConfigDict(coerce_numbers_to_str=True)

    username: Optional[str] = None
    nameOnCard: Optional[str] = None
    cardNumber: Optional[str] = None
    expiryDate: Optional[str] = None
    cvv: Optional[str] = None
    amount: Optional[Number] = None


class OrderIn(BaseModel):
    username: Optional[str] = None
    cartId: Optional[str] = None
    paymentId: Optional[str] = None


# Responses
class MessageOut(BaseModel):
    message: str


class LoginOut(MessageOut):
    email: str


class CartOut(MessageOut):
    cartId: str


class PaymentOut(MessageOut):
    paymentId: str


class OrderOut(MessageOut):
    orderId: str


class UserOut(BaseModel):
    username: str
    email: str
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


class UserLookupOut(BaseModel):
    user: UserOut
