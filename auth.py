import logging
from typing import Any, Dict

from passlib.context import CryptContext
from pydantic import ValidationError as SchemaError
from pymongo.database import Database

from database import UserStore
from errors import AuthError, ConflictError, NotFoundError, ValidationError
from schemas import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Invalid username or password."


def make_pwd_context(rounds: int = 10) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


class Accounts:
    """
    Signup, login and profile lookup.
    Login is a plain credential check; no token or session comes out of it.
    """

    def __init__(self, db: Database, pwd_context: CryptContext):
        self.users = UserStore(db)
        self.pwd_context = pwd_context

    def get_password_hash(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return self.pwd_context.verify(plain_password, hashed_password)

    def register(self, username: str, email: str, password: str) -> str:
        if not username or not email or not password:
            raise ValidationError("Please provide username, email, and password.")

        if self.users.exists(username, email):
            raise ConflictError("Username or email already exists.")

        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")

        try:
            user = User(username=username, email=email, password=self.get_password_hash(password))
        except SchemaError as e:
            field = e.errors()[0]["loc"][0]
            raise ValidationError(f"Invalid {field}.")

        user_id = self.users.create(user)
        logger.info("Registered user %s", username)
        return user_id

    def authenticate(self, username: str, password: str) -> str:
        if not username or not password:
            raise ValidationError("Please provide username and password.")

        user = self.users.find_credentials(username)
        if not user:
            # Burn the same hashing time as a real check
            self.pwd_context.dummy_verify()
            logger.info("Rejected login for %s", username)
            raise AuthError(INVALID_CREDENTIALS)

        if not self.verify_password(password, user["password"]):
            logger.info("Rejected login for %s", username)
            raise AuthError(INVALID_CREDENTIALS)

        self.users.touch_last_login(user["_id"])
        logger.info("User %s logged in", username)
        return user["email"]

    def lookup(self, username: str) -> Dict[str, Any]:
        user = self.users.find_public(username)
        if not user:
            raise NotFoundError("User not found.")
        user.setdefault("last_login", None)
        return user
