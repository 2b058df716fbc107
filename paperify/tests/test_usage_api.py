"""
Tests for the usage check/track routes.
"""
RECEIVING_NUMBER = "03448007154"
PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16


def _pay(client, headers, plan, transaction_id="12345678901", books=None):
    form = {"plan": plan, "transaction_id": transaction_id, "payment_number": RECEIVING_NUMBER}
    if books is not None:
        form["books"] = books
    resp = client.post(
        "/api/payment/submit",
        data=form,
        files={"screenshot": ("receipt.png", PNG, "image/png")},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text


def test_guest_demo_flow(client):
    for expected in (1, 2, 3):
        assert client.get("/api/demo/check", params={"user_id": "guest_42"}).json()["allowed"] is True
        assert client.post("/api/demo/track", json={"user_id": "guest_42"}).json()["count"] == expected

    body = client.get("/api/demo/check", params={"user_id": "guest_42"}).json()
    assert body["status"] == "DEMO_LIMITED"
    assert body["allowed"] is False
    assert body["count"] == 3
    assert body["limit"] == 3
    assert body["error"] == "Demo limit reached. Please purchase a plan."


def test_anonymous_call_defaults_to_guest(client):
    body = client.get("/api/demo/check").json()
    assert body["status"] == "DEMO_LIMITED"
    assert body["allowed"] is True


def test_user_id_without_session_requires_login(client):
    body = client.get("/api/demo/check", params={"user_id": "user-1"}).json()
    assert body["status"] == "LOGIN_REQUIRED"
    assert body["allowed"] is False

    resp = client.post("/api/demo/track", json={"user_id": "user-1"})
    assert resp.status_code == 401


def test_member_without_plan_uses_demo(client, register_user):
    headers, user_id = register_user()
    client.post("/api/demo/track", json={"user_id": user_id}, headers=headers)
    body = client.get("/api/demo/check", params={"user_id": user_id}, headers=headers).json()
    assert body["status"] == "DEMO_LIMITED"
    assert body["count"] == 1


def test_unlimited_plan_is_not_metered(client, register_user):
    headers, user_id = register_user()
    _pay(client, headers, "ultimate")

    body = client.get("/api/demo/check", params={"user_id": user_id}, headers=headers).json()
    assert body["status"] == "UNLIMITED"
    assert body["unlimited"] is True
    assert body["plan_display"] == "ultimate"

    receipt = client.post("/api/demo/track", json={"user_id": user_id}, headers=headers).json()
    assert receipt == {"count": 0, "limit": None, "unlimited": True, "plan": "monthly_unlimited"}


def test_monthly_plan_flow(client, register_user):
    headers, user_id = register_user()
    _pay(client, headers, "monthly")

    body = client.get("/api/demo/check", params={"user_id": user_id, "subject": "Physics"}, headers=headers).json()
    assert body["status"] == "NEEDS_BOOK_SELECTION"
    assert body["needs_book_selection"] is True

    client.post("/api/user/subscription/lock-book", json={"books": ["Physics"]}, headers=headers)

    denied = client.get("/api/demo/check", params={"user_id": user_id, "subject": "Chemistry"}, headers=headers).json()
    assert denied["status"] == "SUBJECT_DENIED"
    assert denied["allowed_books"] == ["Physics"]

    receipt = client.post("/api/demo/track", json={"user_id": user_id, "subject": "Physics"}, headers=headers).json()
    assert receipt["count"] == 1
    assert receipt["limit"] == 30

    body = client.get("/api/demo/check", params={"user_id": user_id, "subject": "physics"}, headers=headers).json()
    assert body["status"] == "SUBJECT_LIMITED"
    assert body["count"] == 1
    assert body["allowed"] is True
