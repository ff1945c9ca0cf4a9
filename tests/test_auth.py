from jread.core import config
from jread.core.config import PLACEHOLDER_ANON_KEY

PASSWORD = "password123"


async def signup(client, email="reader@example.com", **fields):
    payload = {"username": "reader", "email": email, "password": PASSWORD}
    payload.update(fields)
    return await client.post("/auth/signup", json=payload)


async def test_signup_logs_the_user_in(client):
    response = await signup(client)
    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Signup successful!"

    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "reader@example.com"
    assert me.json()["role"] == "USER"
    assert me.json()["bookmarks_are_public"] is False
    assert me.json()["activity_is_public"] is True


async def test_duplicate_email_is_rejected(client):
    await signup(client)
    response = await signup(client, email="READER@example.com")
    assert response.status_code == 400
    assert response.json()["detail"] == "Email already registered"


async def test_author_signup_requires_pen_name(client):
    response = await signup(client, role="AUTHOR")
    assert response.status_code == 400

    response = await signup(client, role="AUTHOR", pen_name="Quill")
    assert response.status_code == 201


async def test_signup_cannot_claim_admin(client):
    response = await signup(client, role="ADMIN")
    assert response.status_code == 400


async def test_login(client):
    await signup(client)

    response = await client.post("/auth/login", json={"email": "reader@example.com", "password": PASSWORD})
    assert response.status_code == 200
    assert response.json()["token_type"] == "bearer"

    response = await client.post("/auth/login", json={"email": "reader@example.com", "password": "wrong-password"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Incorrect email or password"


async def test_refresh_issues_new_access_token(client):
    tokens = (await signup(client)).json()

    response = await client.post("/auth/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert response.status_code == 200
    access = response.json()["access_token"]
    me = await client.get("/auth/me", headers={"Authorization": f"Bearer {access}"})
    assert me.status_code == 200

    # 访问令牌不能当刷新令牌用
    response = await client.post("/auth/refresh", json={"refresh_token": tokens["access_token"]})
    assert response.status_code == 401


async def test_logout_revokes_the_token(client):
    tokens = (await signup(client)).json()
    headers = {"Authorization": f"Bearer {tokens['access_token']}"}

    response = await client.post("/auth/logout", headers=headers)
    assert response.status_code == 200

    response = await client.get("/auth/me", headers=headers)
    assert response.status_code == 401


async def test_update_profile_syncs_author_name(client, make_user, make_novel):
    author, headers = await make_user(role="AUTHOR", pen_name="Old Name")
    novel = await make_novel(headers, status="PUBLISHED")
    assert novel["author_name"] == "Old Name"

    response = await client.patch("/auth/me", json={"pen_name": "New Name", "bookmarks_are_public": True},
                                  headers=headers)
    assert response.status_code == 200
    assert response.json()["bookmarks_are_public"] is True

    detail = (await client.get(f"/novels/{novel['id']}")).json()
    assert detail["author_name"] == "New Name"


async def test_delete_account_cascades_to_novels(client, make_user, make_novel, make_chapter):
    author, headers = await make_user(role="AUTHOR", pen_name="Gone")
    novel = await make_novel(headers, status="PUBLISHED")
    await make_chapter(headers, novel["id"])

    response = await client.delete("/auth/me", headers=headers)
    assert response.status_code == 200

    assert (await client.get(f"/novels/{novel['id']}")).status_code == 404
    assert (await client.get(f"/users/{author.id}")).status_code == 404


async def test_requests_need_api_key(client):
    response = await client.get("/health", headers={"apikey": "wrong"})
    assert response.status_code == 401

    response = await client.get("/health")
    assert response.status_code == 200


async def test_missing_configuration_blocks_every_request(client, monkeypatch):
    monkeypatch.setattr(config.settings, "ANON_KEY", PLACEHOLDER_ANON_KEY)

    for path in ("/health", "/novels"):
        response = await client.get(path)
        assert response.status_code == 503
        assert response.json()["detail"] == "Configuration required"
        assert "SECRET_KEY" in response.json()["remediation"]
