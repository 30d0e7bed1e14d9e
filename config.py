import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    # MONGODB_URI is the older name, still honoured
    DATABASE_URL: str = os.getenv("DATABASE_URL") or os.getenv("MONGODB_URI", "mongodb://localhost:27017")
    DATABASE_NAME: str = os.getenv("DATABASE_NAME", "loginapp")
    MONGO_TIMEOUT_MS: int = int(os.getenv("MONGO_TIMEOUT_MS", "5000"))
    BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))
    FRONTEND_DIR: str = os.getenv("FRONTEND_DIR", os.path.join(os.path.dirname(os.path.abspath(__file__)), "frontend"))
    PORT: int = int(os.getenv("PORT", "3000"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


@lru_cache
def get_settings():
    return Settings()
