"""
Checkout sequence: cart snapshot, payment record, order.

The three writes are independent. A failure on a later step leaves the
earlier documents in place; the client resubmits.
"""
import logging
from typing import Any, List, Optional

from bson import ObjectId
from pydantic import ValidationError as SchemaError
from pymongo.database import Database

from database import CARTS, ORDERS, PAYMENTS, create_document
from errors import ValidationError
from schemas import Cart, Order, Payment

logger = logging.getLogger(__name__)


class CartRecorder:
    def __init__(self, db: Database):
        self.db = db

    def save_cart(self, username: str, items: Optional[List[Any]]) -> str:
        """Store a snapshot of the client's cart. Every call makes a new
        document; carts are never merged or updated."""
        if not username or not isinstance(items, list):
            raise ValidationError("Invalid cart data.")

        try:
            cart = Cart(username=username, items=items)
        except SchemaError:
            raise ValidationError("Invalid cart data.")
        cart_id = create_document(self.db, CARTS, cart)
        logger.info("Saved cart %s for %s (%d items)", cart_id, username, len(items))
        return cart_id


class PaymentRecorder:
    def __init__(self, db: Database):
        self.db = db

    def save_payment(
        self,
        username: str,
        name_on_card: str,
        card_number: str,
        expiry_date: str,
        cvv: str,
        amount: float,
    ) -> str:
        # Card fields are stored as given; format checks happen in the browser
        if not all([username, name_on_card, card_number, expiry_date, cvv, amount]):
            raise ValidationError("Invalid payment data.")

        try:
            payment = Payment(
                username=username,
                nameOnCard=name_on_card,
                cardNumber=card_number,
                expiryDate=expiry_date,
                cvv=cvv,
                amount=amount,
            )
        except SchemaError:
            raise ValidationError("Invalid payment data.")
        payment_id = create_document(self.db, PAYMENTS, payment)
        logger.info("Saved payment %s for %s", payment_id, username)
        return payment_id


class OrderLinker:
    def __init__(self, db: Database):
        self.db = db

    def create_order(self, username: str, cart_id: str, payment_id: str) -> str:
        """Link a stored cart and payment into a Pending order.
        Neither id is looked up; ownership is not checked."""
        if not username or not cart_id or not payment_id:
            raise ValidationError("Invalid order data.")
        if not ObjectId.is_valid(cart_id) or not ObjectId.is_valid(payment_id):
            raise ValidationError("Invalid order data.")

        order = Order(username=username, cart=cart_id, payment=payment_id)
        doc = order.model_dump()
        doc["cart"] = ObjectId(order.cart)
        doc["payment"] = ObjectId(order.payment)
        order_id = create_document(self.db, ORDERS, doc)
        logger.info("Created order %s for %s (cart %s, payment %s)", order_id, username, cart_id, payment_id)
        return order_id
