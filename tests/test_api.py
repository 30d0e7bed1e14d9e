from bson import ObjectId

from database import PUBLIC_USER_FIELDS


def signup(client, username="alice", email="alice@x.com", password="secret1"):
    return client.post("/api/signup", json={"username": username, "email": email, "password": password})


def test_signup_then_duplicate_username(client):
    r = signup(client)
    assert r.status_code == 201
    assert r.json() == {"message": "User registered successfully."}

    r = signup(client, email="other@x.com", password="pw2")
    assert r.status_code == 409
    assert r.json() == {"message": "Username or email already exists."}


def test_signup_duplicate_email(client):
    signup(client)
    r = signup(client, username="bob", password="secret2")
    assert r.status_code == 409


def test_signup_missing_fields(client):
    r = client.post("/api/signup", json={"username": "alice"})
    assert r.status_code == 400
    assert r.json() == {"message": "Please provide username, email, and password."}


def test_signup_malformed_body_is_400_not_422(client):
    r = client.post("/api/signup", json={"username": ["alice"], "email": "a@x.com", "password": "secret1"})
    assert r.status_code == 400
    assert "message" in r.json()


def test_login_success(client):
    signup(client)
    r = client.post("/api/login", json={"username": "alice", "password": "secret1"})
    assert r.status_code == 200
    assert r.json() == {"message": "Login successful.", "email": "alice@x.com"}


def test_login_wrong_password_and_unknown_user_look_the_same(client):
    signup(client)
    wrong = client.post("/api/login", json={"username": "alice", "password": "wrong"})
    unknown = client.post("/api/login", json={"username": "nobody", "password": "wrong"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"message": "Invalid username or password."}


def test_login_missing_fields(client):
    r = client.post("/api/login", json={"username": "alice"})
    assert r.status_code == 400


def test_user_lookup(client):
    signup(client)
    client.post("/api/login", json={"username": "alice", "password": "secret1"})

    r = client.get("/api/user/alice")
    assert r.status_code == 200
    user = r.json()["user"]
    assert set(user) == {k for k, v in PUBLIC_USER_FIELDS.items() if v}
    assert user["username"] == "alice"
    assert user["email"] == "alice@x.com"
    assert user["last_login"] is not None
    assert "password" not in user


def test_user_lookup_not_found(client):
    r = client.get("/api/user/ghost")
    assert r.status_code == 404
    assert r.json() == {"message": "User not found."}


def test_checkout_sequence(client, db):
    r = client.post("/api/cart", json={
        "username": "alice",
        "items": [{"name": "Widget", "price": 9.99, "quantity": 2}],
    })
    assert r.status_code == 201
    cart_id = r.json()["cartId"]

    r = client.post("/api/payment", json={
        "username": "alice",
        "nameOnCard": "Alice A",
        "cardNumber": "4111111111111111",
        "expiryDate": "12/30",
        "cvv": "123",
        "amount": 19.98,
    })
    assert r.status_code == 201
    payment_id = r.json()["paymentId"]

    r = client.post("/api/order", json={"username": "alice", "cartId": cart_id, "paymentId": payment_id})
    assert r.status_code == 201
    body = r.json()
    assert body["message"] == "Order placed successfully."

    order = db["orders"].find_one({"_id": ObjectId(body["orderId"])})
    assert order["status"] == "Pending"
    assert order["cart"] == ObjectId(cart_id)
    assert order["payment"] == ObjectId(payment_id)


def test_order_with_only_username_creates_nothing(client, db):
    r = client.post("/api/order", json={"username": "alice"})
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid order data."}
    assert db["orders"].count_documents({}) == 0


def test_cart_items_must_be_a_list(client, db):
    r = client.post("/api/cart", json={"username": "alice", "items": "Widget"})
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid cart data."}
    assert db["carts"].count_documents({}) == 0


def test_payment_missing_cvv(client):
    r = client.post("/api/payment", json={
        "username": "alice",
        "nameOnCard": "Alice A",
        "cardNumber": "4111111111111111",
        "expiryDate": "12/30",
        "amount": 19.98,
    })
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid payment data."}


def test_store_failure_is_a_generic_500(client, db, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("connection reset by mongod at 10.0.0.5")

    monkeypatch.setattr(db["carts"].__class__, "insert_one", boom)

    r = client.post("/api/cart", json={"username": "alice", "items": []})
    assert r.status_code == 500
    assert r.json() == {"message": "Server error."}


def test_health(client):
    r = client.get("/api/health")
    assert r.status_code == 200
    assert r.json()["database"] == "Connected"


def test_unmatched_paths_serve_index(client):
    r = client.get("/some/client/route")
    assert r.status_code == 200
    assert "<html" in r.text


def test_existing_frontend_file_is_served(client):
    r = client.get("/login.html")
    assert r.status_code == 200
    assert "loginForm" in r.text


def test_path_traversal_falls_back_to_index(client):
    r = client.get("/..%2Fmain.py")
    assert r.status_code == 200
    assert "create_app" not in r.text


def test_numeric_card_fields_are_stored_as_strings(client, db):
    r = client.post("/api/payment", json={
        "username": "alice",
        "nameOnCard": "Alice A",
        "cardNumber": 4111111111111111,
        "expiryDate": "12/30",
        "cvv": 123,
        "amount": 19.98,
    })
    assert r.status_code == 201

    doc = db["payments"].find_one({"_id": ObjectId(r.json()["paymentId"])})
    assert doc["cardNumber"] == "4111111111111111"
    assert doc["cvv"] == "123"


def test_numeric_item_name_is_stored_as_string(client, db):
    r = client.post("/api/cart", json={"username": "alice", "items": [{"name": 42, "price": 1, "quantity": 1}]})
    assert r.status_code == 201

    doc = db["carts"].find_one({"_id": ObjectId(r.json()["cartId"])})
    assert doc["items"][0]["name"] == "42"


def test_unknown_method_answers_with_message(client):
    r = client.post("/api/nope", json={})
    assert r.status_code == 405
    assert r.json() == {"message": "Method Not Allowed"}


def test_order_store_failure_is_a_generic_500(client, db, monkeypatch, caplog):
    def boom(*args, **kwargs):
        raise RuntimeError("write concern timeout")

    monkeypatch.setattr(db["orders"].__class__, "insert_one", boom)

    cart_id, payment_id = str(ObjectId()), str(ObjectId())
    r = client.post("/api/order", json={"username": "alice", "cartId": cart_id, "paymentId": payment_id})
    assert r.status_code == 500
    assert r.json() == {"message": "Server error."}
    assert "write concern timeout" not in r.text
    assert cart_id in caplog.text


def test_signup_and_cart_pages_are_served(client):
    signup_page = client.get("/signup.html")
    assert "/api/signup" in signup_page.text

    cart_page = client.get("/cart.html")
    for endpoint in ("/api/cart", "/api/payment", "/api/order"):
        assert endpoint in cart_page.text


def test_form_encoded_body_is_rejected_with_message(client, db):
    r = client.post("/api/cart", data={"username": "alice", "items": "Widget"})
    assert r.status_code == 400
    assert r.json() == {"message": "Invalid cart data."}
    assert db["carts"].count_documents({}) == 0
