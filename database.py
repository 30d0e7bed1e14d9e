"""
MongoDB access

The client is opened once at startup by `connect()` and handed to request
handlers through the `get_db` dependency; nothing here is a module global.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from fastapi import Request
from pydantic import BaseModel
from pymongo import ASCENDING, MongoClient
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import Settings
from errors import ConflictError

logger = logging.getLogger(__name__)

USERS = "users"
CARTS = "carts"
PAYMENTS = "payments"
ORDERS = "orders"

# Fields returned by user lookups; the password hash is never projected.
PUBLIC_USER_FIELDS = {"_id": 0, "username": 1, "email": 1, "created_at": 1, "last_login": 1}


def connect(settings: Settings) -> MongoClient:
    client = MongoClient(
        settings.DATABASE_URL,
        tz_aware=True,
        serverSelectionTimeoutMS=settings.MONGO_TIMEOUT_MS,
    )
    logger.info("MongoDB client created for database %s", settings.DATABASE_NAME)
    return client


def close(client: Optional[MongoClient]) -> None:
    if client is not None:
        client.close()
        logger.info("MongoDB client closed")


def ensure_indexes(db: Database) -> None:
    """Unique indexes are what actually keep usernames and emails unique
    when two signups race past the existence check."""
    db[USERS].create_index([("username", ASCENDING)], unique=True)
    db[USERS].create_index([("email", ASCENDING)], unique=True)


def get_db(request: Request) -> Database:
    return request.app.state.db


def create_document(db: Database, collection_name: str, data: Union[BaseModel, Dict[str, Any]]) -> str:
    """Insert a single document stamped with created_at and return its id"""
    if isinstance(data, BaseModel):
        data_dict = data.model_dump(exclude_none=True)
    else:
        data_dict = dict(data)
    data_dict["created_at"] = datetime.now(timezone.utc)
    result = db[collection_name].insert_one(data_dict)
    return str(result.inserted_id)


class UserStore:
    """Credential store over the users collection."""

    def __init__(self, db: Database):
        self.db = db
        self.collection = db[USERS]

    def exists(self, username: str, email: str) -> bool:
        return self.collection.find_one({"$or": [{"username": username}, {"email": email}]}) is not None

    def create(self, user: BaseModel) -> str:
        try:
            return create_document(self.db, USERS, user)
        except DuplicateKeyError:
            raise ConflictError("Username or email already exists.")

    def find_credentials(self, username: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"username": username}, {"username": 1, "email": 1, "password": 1})

    def find_public(self, username: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"username": username}, PUBLIC_USER_FIELDS)

    def touch_last_login(self, user_id: Any) -> datetime:
        now = datetime.now(timezone.utc)
        self.collection.update_one({"_id": user_id}, {"$set": {"last_login": now}})
        return now
