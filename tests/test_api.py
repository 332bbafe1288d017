import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from lexcircle.main import app
from lexcircle.modules.social_graph.domain.models.user_record import RelationKind, UserRole
from lexcircle.modules.social_graph.infrastructure.database.models import NotificationModel
from lexcircle.shared.core.security import create_access_token
from lexcircle.shared.infrastructure.database.session import get_session_factory


@pytest.fixture
async def client(session_factory):
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture
async def users(make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    admin = await make_user("root", role=UserRole.ADMIN)
    return {"alice": alice, "bob": bob, "admin": admin}


def auth(user_id, roles=None):
    return {"Authorization": f"Bearer {create_access_token(user_id, roles=roles)}"}


async def test_health_is_public(client):
    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_missing_token_is_rejected(client):
    response = await client.get("/api/v1/subscriptions")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_REQUIRED"


async def test_invalid_token_is_rejected(client):
    response = await client.get("/api/v1/subscriptions", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


async def test_follow_flow(client, users, session_factory):
    headers = auth(users["alice"])

    response = await client.post("/api/v1/subscriptions/follow/bob", headers=headers)
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["user"]["username"] == "bob"
    assert body["notification_sent"] is True

    response = await client.get("/api/v1/subscriptions/is-following/bob", headers=headers)
    assert response.json()["is_following"] is True

    response = await client.get(f"/api/v1/users/{users['bob']}/counts", headers=headers)
    assert response.json()["followers_count"] == 1

    response = await client.get("/api/v1/users/bob/followers", headers=headers)
    assert [u["username"] for u in response.json()["users"]] == ["alice"]

    async with session_factory() as session:
        notifications = (await session.execute(select(NotificationModel))).scalars().all()
    assert [(n.recipient_id, n.type) for n in notifications] == [(users["bob"], "follow")]


async def test_follow_errors_use_envelope(client, users):
    headers = auth(users["alice"])

    response = await client.post("/api/v1/subscriptions/follow/alice", headers=headers)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "SELF_REFERENCE"

    response = await client.post("/api/v1/subscriptions/follow/ghost", headers=headers)
    assert response.status_code == 404

    await client.post("/api/v1/subscriptions/follow/bob", headers=headers)
    response = await client.post("/api/v1/subscriptions/follow/bob", headers=headers)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ALREADY_FOLLOWING"

    response = await client.delete("/api/v1/subscriptions/block/bob", headers=headers)
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "NOT_BLOCKED"


async def test_block_and_unblock(client, users):
    alice, bob = auth(users["alice"]), auth(users["bob"])
    await client.post("/api/v1/subscriptions/follow/bob", headers=alice)
    await client.post("/api/v1/subscriptions/follow/alice", headers=bob)

    response = await client.get("/api/v1/subscriptions/connections", headers=alice)
    assert response.json()["count"] == 1

    response = await client.post("/api/v1/subscriptions/block/bob", headers=alice)
    assert response.status_code == 200
    assert response.json()["message"] == "User blocked successfully"

    summary = (await client.get("/api/v1/subscriptions", headers=alice)).json()
    assert summary["following"] == [] and summary["followers"] == []
    assert (summary["following_count"], summary["followers_count"]) == (0, 0)

    blocked = (await client.get("/api/v1/subscriptions/blocked", headers=alice)).json()
    assert [u["username"] for u in blocked["users"]] == ["bob"]

    response = await client.delete("/api/v1/subscriptions/block/bob", headers=alice)
    assert response.status_code == 200
    assert (await client.get("/api/v1/subscriptions/is-blocked/bob", headers=alice)).json()["is_blocked"] is False


async def test_follow_while_blocked_is_rejected(client, users):
    alice, bob = auth(users["alice"]), auth(users["bob"])
    await client.post("/api/v1/subscriptions/block/bob", headers=alice)

    response = await client.post("/api/v1/subscriptions/follow/bob", headers=alice)
    assert response.status_code == 400
    error = response.json()["error"]
    assert error["code"] == "USER_BLOCKED"
    assert error["status_code"] == 400
    assert error["details"]["rule"] == "no_follow_while_blocked"
    assert "timestamp" in error and "request_id" in error

    response = await client.post("/api/v1/subscriptions/follow/alice", headers=bob)
    assert response.status_code == 404

    followers = (await client.get("/api/v1/subscriptions/followers", headers=alice)).json()
    assert followers["count"] == 0


async def test_unfollow(client, users):
    headers = auth(users["alice"])
    await client.post("/api/v1/subscriptions/follow/bob", headers=headers)

    response = await client.delete("/api/v1/subscriptions/follow/bob", headers=headers)

    assert response.status_code == 200
    assert response.json()["message"] == "User unfollowed successfully"
    following = (await client.get("/api/v1/subscriptions/following", headers=headers)).json()
    assert following["count"] == 0


async def test_repair_endpoints_require_admin(client, users):
    headers = auth(users["alice"])

    for path in (
        "/api/v1/admin/repair-subscription-counters",
        "/api/v1/admin/quick-repair-counters",
        "/api/v1/admin/users/alice/sync-counters",
    ):
        response = await client.post(path, headers=headers)
        assert response.status_code == 403
        assert response.json()["error"]["code"] == "AUTHORIZATION_ERROR"


async def test_admin_repair(client, users, add_relation, delete_user):
    await add_relation(users["alice"], RelationKind.FOLLOWING, users["bob"])
    await delete_user(users["bob"])
    headers = auth(users["admin"], roles=["admin"])

    response = await client.post("/api/v1/admin/repair-subscription-counters", headers=headers)

    assert response.status_code == 200
    stats = response.json()["stats"]
    assert stats["users_scanned"] == 2
    assert stats["orphaned_references_removed"] == 1
    assert stats["users_corrected"] == 1


async def test_admin_quick_repair_and_sync(client, users, add_relation):
    await add_relation(users["alice"], RelationKind.FOLLOWING, users["bob"])
    headers = auth(users["admin"], roles=["admin"])

    response = await client.post("/api/v1/admin/users/alice/sync-counters", headers=headers)
    assert response.json()["changed"] is True

    response = await client.post("/api/v1/admin/quick-repair-counters", params={"limit": 10}, headers=headers)
    assert response.status_code == 200
    assert response.json()["stats"]["corrections"] == 0
