import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import Accounts, make_pwd_context
from database import ensure_indexes
from main import create_app


@pytest.fixture
def db():
    return mongomock.MongoClient()["shop_test"]


@pytest.fixture
def pwd_context():
    # lowest cost bcrypt allows, keeps the suite fast
    return make_pwd_context(rounds=4)


@pytest.fixture
def accounts(db, pwd_context):
    ensure_indexes(db)
    return Accounts(db, pwd_context)


@pytest.fixture
def client(db, pwd_context):
    app = create_app(db=db, pwd_context=pwd_context)
    with TestClient(app) as c:
        yield c
