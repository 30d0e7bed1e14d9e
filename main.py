import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from passlib.context import CryptContext
from pymongo.database import Database
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

from auth import Accounts, make_pwd_context
from checkout import CartRecorder, OrderLinker, PaymentRecorder
from config import Settings, get_settings
from database import close, connect, ensure_indexes, get_db
from errors import InternalError, ServiceError
from schemas import (
    CartIn,
    CartOut,
    LoginIn,
    LoginOut,
    MessageOut,
    OrderIn,
    OrderOut,
    PaymentIn,
    PaymentOut,
    SignupIn,
    UserLookupOut,
)

logging.basicConfig(
    level=get_settings().LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Message returned when a body does not even parse into the request shape
VALIDATION_MESSAGES = {
    "/api/signup": "Please provide username, email, and password.",
    "/api/login": "Please provide username and password.",
    "/api/cart": "Invalid cart data.",
    "/api/payment": "Invalid payment data.",
    "/api/order": "Invalid order data.",
}


# Dependencies
def get_accounts(request: Request, db: Database = Depends(get_db)) -> Accounts:
    return Accounts(db, request.app.state.pwd_context)


def get_cart_recorder(db: Database = Depends(get_db)) -> CartRecorder:
    return CartRecorder(db)


def get_payment_recorder(db: Database = Depends(get_db)) -> PaymentRecorder:
    return PaymentRecorder(db)


def get_order_linker(db: Database = Depends(get_db)) -> OrderLinker:
    return OrderLinker(db)


api = APIRouter(prefix="/api")


@api.get("/health")
def health(db: Database = Depends(get_db)):
    response = {
        "backend": "Running",
        "database": "Not Available",
        "collections": [],
    }
    try:
        response["collections"] = db.list_collection_names()[:10]
        response["database"] = "Connected"
    except PyMongoError as e:
        logger.warning("Health check could not reach the database: %s", e)
        response["database"] = "Connection Error"
    return response


# Auth endpoints
@api.post("/signup", status_code=status.HTTP_201_CREATED, response_model=MessageOut)
def signup(payload: SignupIn, accounts: Accounts = Depends(get_accounts)):
    accounts.register(payload.username, payload.email, payload.password)
    return {"message": "User registered successfully."}


@api.post("/login", response_model=LoginOut)
def login(payload: LoginIn, accounts: Accounts = Depends(get_accounts)):
    email = accounts.authenticate(payload.username, payload.password)
    return {"message": "Login successful.", "email": email}


@api.get("/user/{username}", response_model=UserLookupOut)
def get_user(username: str, accounts: Accounts = Depends(get_accounts)):
    return {"user": accounts.lookup(username)}


# Checkout endpoints, called by the client in this order
@api.post("/cart", status_code=status.HTTP_201_CREATED, response_model=CartOut)
def save_cart(payload: CartIn, recorder: CartRecorder = Depends(get_cart_recorder)):
    cart_id = recorder.save_cart(payload.username, payload.items)
    return {"message": "Cart saved successfully.", "cartId": cart_id}


@api.post("/payment", status_code=status.HTTP_201_CREATED, response_model=PaymentOut)
def save_payment(payload: PaymentIn, recorder: PaymentRecorder = Depends(get_payment_recorder)):
    payment_id = recorder.save_payment(
        payload.username,
        payload.nameOnCard,
        payload.cardNumber,
        payload.expiryDate,
        payload.cvv,
        payload.amount,
    )
    return {"message": "Payment saved successfully.", "paymentId": payment_id}


@api.post("/order", status_code=status.HTTP_201_CREATED, response_model=OrderOut)
def create_order(payload: OrderIn, linker: OrderLinker = Depends(get_order_linker)):
    try:
        order_id = linker.create_order(payload.username, payload.cartId, payload.paymentId)
    except ServiceError:
        raise
    except Exception:
        # cart and payment stay stored; nothing is rolled back
        logger.error(
            "Creating order failed for %s, leaving cart %s and payment %s orphaned",
            payload.username, payload.cartId, payload.paymentId,
        )
        raise
    return {"message": "Order placed successfully.", "orderId": order_id}


# Error handlers
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.status_code, content={"message": exc.message})


async def request_validation_handler(request: Request, exc: RequestValidationError):
    message = VALIDATION_MESSAGES.get(request.url.path, "Invalid request data.")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def catch_unhandled(request: Request, call_next):
    """Any failure a handler did not map becomes a bare 500; the detail
    stays in the server log."""
    try:
        return await call_next(request)
    except Exception:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=InternalError.status_code,
            content={"message": InternalError.default_message},
        )


def create_app(
    db: Optional[Database] = None,
    settings: Optional[Settings] = None,
    pwd_context: Optional[CryptContext] = None,
) -> FastAPI:
    """Build the app. When `db` is given it is used as is and the app
    neither opens nor closes a client of its own."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        client = None
        if db is None:
            client = connect(settings)
            app.state.db = client[settings.DATABASE_NAME]
        else:
            app.state.db = db
        try:
            ensure_indexes(app.state.db)
        except PyMongoError as e:
            logger.error("Could not create user indexes: %s", e)
        yield
        close(client)

    app = FastAPI(title="Shop API", lifespan=lifespan)
    app.state.settings = settings
    app.state.pwd_context = pwd_context or make_pwd_context(settings.BCRYPT_ROUNDS)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.middleware("http")(catch_unhandled)
    app.include_router(api)

    frontend_root = os.path.realpath(settings.FRONTEND_DIR)

    # Registered last so it only sees paths no API route claimed
    @app.get("/{path:path}", include_in_schema=False)
    def frontend(path: str):
        target = os.path.realpath(os.path.join(frontend_root, path))
        if path and target.startswith(frontend_root + os.sep) and os.path.isfile(target):
            return FileResponse(target)
        return FileResponse(os.path.join(frontend_root, "index.html"))

    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().PORT)
