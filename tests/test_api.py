import forms
from errors import NotAuthenticatedError
from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD

PNG = ("pothole.png", b"\x89PNG" + b"\x00" * 32, "image/png")
PDF = ("report.pdf", b"%PDF-1.4", "application/pdf")


def submit(client, files=None, **fields):
    data = {"type": "Garbage", "location": "Main St", "description": "Trash not collected for two weeks"}
    data.update(fields)
    return client.post("/complaints", data=data, files=files or [])


def login_admin(client):
    response = client.post("/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    return response


def test_root_and_diagnostics(client):
    assert "running" in client.get("/").json()["message"]
    assert client.get("/test").json()["store"] == "memory"


def test_register_user(client, test_user_data):
    response = client.post("/auth/register", json=test_user_data)

    assert response.status_code == 200
    user = response.json()["user"]
    assert user["email"] == test_user_data["email"]
    assert user["role"] == "user"
    assert "createdAt" in user

    me = client.get("/auth/me").json()
    assert me["authenticated"] is True
    assert me["isAdmin"] is False


def test_register_duplicate_email(client, test_user_data):
    client.post("/auth/register", json=test_user_data)

    response = client.post("/auth/register", json=test_user_data)

    assert response.status_code == 409
    assert response.json()["code"] == "DUPLICATE_EMAIL"
    assert "already registered" in response.json()["detail"]


def test_register_password_mismatch(client, test_user_data):
    test_user_data["confirmPassword"] = "something-else"

    response = client.post("/auth/register", json=test_user_data)

    assert response.status_code == 422
    assert response.json()["details"]["errors"] == {"confirmPassword": "Passwords do not match"}


def test_login_admin_redirects_to_admin(client):
    data = login_admin(client).json()
    assert data["user"]["role"] == "admin"
    assert data["redirect"] == "/admin"


def test_login_invalid_credentials(client):
    response = client.post("/auth/login", json={"email": "nobody@x.com", "password": "whatever"})

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid email or password"


def test_logout(client, test_user_data):
    client.post("/auth/register", json=test_user_data)

    assert client.post("/auth/logout").json() == {"ok": True}
    assert client.get("/auth/me").json() == {"authenticated": False}


def test_submit_requires_login(client):
    response = submit(client)
    assert response.status_code == 401


def test_citizen_flow_with_attachments(client, test_user_data):
    client.post("/auth/register", json=test_user_data)

    response = submit(client, files=[("files", PNG), ("files", PDF)])

    assert response.status_code == 200
    body = response.json()
    complaint = body["complaint"]
    assert complaint["status"] == "pending"
    assert complaint["isUrgent"] is False
    assert [a["name"] for a in complaint["attachments"]] == ["pothole.png"]
    assert body["fileError"].startswith("File type not allowed")
    assert body["rejectedFiles"] == ["report.pdf"]

    upload = client.get(complaint["attachments"][0]["url"])
    assert upload.status_code == 200
    assert upload.headers["content-type"] == "image/png"

    mine = client.get("/complaints/mine").json()
    assert [c["id"] for c in mine["items"]] == [complaint["id"]]
    assert mine["types"] == ["Garbage"]
    assert client.get(f"/complaints/{complaint['id']}").json()["id"] == complaint["id"]


def test_submit_short_description_rejected(client, test_user_data):
    client.post("/auth/register", json=test_user_data)

    response = submit(client, description="123456789")

    assert response.status_code == 422
    assert "description" in response.json()["details"]["errors"]
    assert client.get("/complaints/mine").json()["items"] == []


def test_failed_submit_releases_uploaded_files(client, test_user_data, monkeypatch):
    client.post("/auth/register", json=test_user_data)

    def session_expired(fields):
        raise NotAuthenticatedError()

    monkeypatch.setattr(client.app.state.complaints, "add_complaint", session_expired)

    response = submit(client, files=[("files", PNG)])

    assert response.status_code == 401
    assert len(client.app.state.blobs) == 0


def test_submit_starts_no_reset_timer(client, test_user_data, monkeypatch):
    client.post("/auth/register", json=test_user_data)
    timers = []
    monkeypatch.setattr(forms.threading, "Timer", lambda *args, **kwargs: timers.append(args))

    for _ in range(3):
        assert submit(client).status_code == 200

    assert timers == []
    assert len(client.get("/complaints/mine").json()["items"]) == 3


def test_admin_routes_forbidden_for_citizen(client, test_user_data):
    client.post("/auth/register", json=test_user_data)

    assert client.get("/complaints").status_code == 403
    assert client.get("/complaints/export.csv").status_code == 403


def test_admin_lists_updates_and_exports(client, test_user_data):
    client.post("/auth/register", json=test_user_data)
    garbage = submit(client).json()["complaint"]
    urgent = submit(client, type="Public Safety", description="Open manhole").json()["complaint"]
    assert urgent["isUrgent"] is True

    login_admin(client)

    listing = client.get("/complaints", params={"sort": "urgent"}).json()
    assert [c["id"] for c in listing["items"]] == [urgent["id"], garbage["id"]]
    assert listing["statusCounts"] == {"pending": 2, "in-progress": 0, "resolved": 0}
    assert listing["totalPages"] == 1

    by_name = client.get("/complaints", params={"search": test_user_data["name"]}).json()
    assert by_name["total"] == 2

    response = client.patch(f"/complaints/{garbage['id']}/status", json={"status": "resolved"})
    assert response.status_code == 200
    updated = response.json()
    assert updated["status"] == "resolved"
    assert updated["createdAt"] == garbage["createdAt"]

    backward = client.patch(f"/complaints/{garbage['id']}/status", json={"status": "pending"})
    assert backward.status_code == 409

    missing = client.patch("/complaints/CMP-NOPE/status", json={"status": "resolved"})
    assert missing.status_code == 404

    resolved = client.get("/complaints", params={"status": "resolved"}).json()
    assert [c["id"] for c in resolved["items"]] == [garbage["id"]]

    export = client.get("/complaints/export.csv", params={"type": "Public Safety"})
    assert export.status_code == 200
    assert export.headers["content-type"].startswith("text/csv")
    assert "attachment; filename=\"complaints-" in export.headers["content-disposition"]
    rows = export.text.split("\n")
    assert rows[0] == "ID,Type,Location,Description,Status,User,Created At,Updated At,Urgent"
    assert len(rows) == 2
    assert rows[1].startswith(f'{urgent["id"]},"Public Safety"')
    assert rows[1].endswith(",Yes")


def test_citizen_cannot_read_other_users_complaint(client, test_user_data):
    client.post("/auth/register", json=test_user_data)
    complaint = submit(client).json()["complaint"]
    client.post("/auth/register", json={
        "name": "Ben", "email": "b@x.com", "password": "secret1", "confirmPassword": "secret1",
    })

    assert client.get(f"/complaints/{complaint['id']}").status_code == 404
