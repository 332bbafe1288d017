import asyncio

import pytest

from lexcircle.modules.social_graph.domain.models.user_record import RelationKind
from lexcircle.modules.social_graph.domain.services.subscription_graph_service import (
    SubscriptionGraphService,
)
from lexcircle.modules.social_graph.infrastructure.database.user_record_store_impl import (
    SQLAlchemyUserRecordStore,
)
from lexcircle.shared.core.exceptions import (
    AlreadyBlockedError,
    AlreadyFollowingError,
    BlockedRelationshipError,
    NotBlockedError,
    NotFollowingError,
    SelfReferenceError,
    StoreFailureError,
    UserNotFoundError,
)

from .conftest import RecordingDispatcher


@pytest.fixture
async def trio(make_user):
    a = await make_user("alice", first_name="Alice", organization="Barreau de Lyon")
    b = await make_user("bob")
    c = await make_user("carol")
    return a, b, c


# =========================================================================
# FOLLOW / UNFOLLOW
# =========================================================================

async def test_follow_updates_both_records(service, store, trio, dispatcher):
    a, b, _ = trio

    result = await service.follow(a, b)

    alice = await store.get_by_id(a)
    bob = await store.get_by_id(b)
    assert b in alice.following
    assert a in bob.followers
    assert alice.following_count == 1
    assert bob.followers_count == 1
    assert result.target.username == "bob"
    assert result.notification_sent is True
    assert dispatcher.sent == [{
        "recipient_id": b,
        "actor_id": a,
        "event_type": "follow",
        "message": "alice started following you",
    }]


async def test_follow_by_username(service, store, trio):
    a, b, _ = trio

    await service.follow(a, "bob")

    assert await service.is_following(a, b)
    assert await service.is_following(a, "bob")


async def test_second_follow_is_rejected_without_changes(service, store, trio):
    a, b, _ = trio
    await service.follow(a, b)

    with pytest.raises(AlreadyFollowingError):
        await service.follow(a, "bob")

    alice = await store.get_by_id(a)
    bob = await store.get_by_id(b)
    assert alice.following == {b}
    assert alice.following_count == 1
    assert bob.followers_count == 1


async def test_unfollow_restores_previous_state(service, store, trio):
    a, b, _ = trio
    before_a = await store.get_by_id(a)
    before_b = await store.get_by_id(b)

    await service.follow(a, b)
    result = await service.unfollow(a, b)

    after_a = await store.get_by_id(a)
    after_b = await store.get_by_id(b)
    assert result.target.user_id == b
    assert after_a.following == before_a.following
    assert after_b.followers == before_b.followers
    assert after_a.following_count == before_a.following_count
    assert after_b.followers_count == before_b.followers_count


async def test_unfollow_when_not_following(service, trio):
    a, b, _ = trio

    with pytest.raises(NotFollowingError):
        await service.unfollow(a, b)


async def test_follow_unknown_target(service, trio):
    a, _, _ = trio

    with pytest.raises(UserNotFoundError):
        await service.follow(a, "ghost")
    with pytest.raises(UserNotFoundError):
        await service.follow(a, "6f1c1f64-3f49-4d40-9a53-8f3e1d7b2a10")


async def test_follow_hidden_or_deleted_target(service, make_user, trio):
    a, _, _ = trio
    hidden = await make_user("hidden", hide_from_suggestions=True)
    gone = await make_user("gone", is_deleted=True)

    with pytest.raises(UserNotFoundError):
        await service.follow(a, hidden)
    with pytest.raises(UserNotFoundError):
        await service.follow(a, gone)


async def test_deleted_actor_cannot_follow(service, make_user, trio):
    _, b, _ = trio
    gone = await make_user("gone", is_deleted=True)

    with pytest.raises(UserNotFoundError):
        await service.follow(gone, b)


async def test_self_reference_rejected(service, store, trio):
    a, _, _ = trio

    with pytest.raises(SelfReferenceError):
        await service.follow(a, a)
    with pytest.raises(SelfReferenceError):
        await service.follow(a, "alice")
    with pytest.raises(SelfReferenceError):
        await service.block(a, a)
    with pytest.raises(SelfReferenceError):
        await service.unfollow(a, a)

    alice = await store.get_by_id(a)
    assert alice.following == set()
    assert alice.followers == set()
    assert alice.blocked_users == set()
    assert alice.following_count == 0


# =========================================================================
# BLOCK / UNBLOCK
# =========================================================================

async def test_block_severs_connection_both_ways(service, store, trio):
    a, b, _ = trio
    await service.follow(a, b)
    await service.follow(b, a)
    assert [p.user_id for p in await service.get_connections(a)] == [b]

    await service.block(a, b)

    alice = await store.get_by_id(a)
    bob = await store.get_by_id(b)
    assert b not in alice.following
    assert b not in alice.followers
    assert a not in bob.following
    assert a not in bob.followers
    assert b in alice.blocked_users
    assert await service.get_connections(a) == []
    assert alice.counters_match()
    assert bob.counters_match()
    assert await service.is_blocked(a, "bob")


async def test_block_twice(service, trio):
    a, b, _ = trio
    await service.block(a, b)

    with pytest.raises(AlreadyBlockedError):
        await service.block(a, "bob")


async def test_unblock_does_not_restore_follows(service, store, trio):
    a, b, _ = trio
    await service.follow(a, b)
    await service.follow(b, a)
    await service.block(a, b)

    await service.unblock(a, b)

    alice = await store.get_by_id(a)
    bob = await store.get_by_id(b)
    assert alice.blocked_users == set()
    assert b not in alice.following
    assert a not in bob.followers
    assert (alice.following_count, alice.followers_count) == (0, 0)


async def test_unblock_when_not_blocked(service, trio):
    a, b, _ = trio

    with pytest.raises(NotBlockedError):
        await service.unblock(a, b)


async def test_follow_rejected_in_both_directions_while_blocked(service, store, trio, dispatcher):
    a, b, _ = trio
    await service.block(a, b)

    with pytest.raises(BlockedRelationshipError):
        await service.follow(a, b)
    with pytest.raises(UserNotFoundError):
        await service.follow(b, a)
    with pytest.raises(UserNotFoundError):
        await service.follow(b, "alice")

    alice = await store.get_by_id(a)
    bob = await store.get_by_id(b)
    assert alice.blocked_users == {b}
    assert alice.following == set() and alice.followers == set()
    assert bob.following == set() and bob.followers == set()
    assert (alice.following_count, alice.followers_count) == (0, 0)
    assert dispatcher.sent == []


async def test_follow_allowed_again_after_unblock(service, trio):
    a, b, _ = trio
    await service.block(a, b)
    await service.unblock(a, b)

    await service.follow(b, a)
    await service.follow(a, b)

    assert [p.user_id for p in await service.get_connections(a)] == [b]


async def test_blocked_users_listed(service, trio):
    a, b, c = trio
    await service.block(a, c)
    await service.block(a, b)

    assert [p.username for p in await service.get_blocked_users(a)] == ["bob", "carol"]


# =========================================================================
# QUERIES
# =========================================================================

async def test_three_user_scenario(service, trio):
    a, b, c = trio
    await service.follow(a, b)
    await service.follow(b, a)
    await service.follow(a, c)

    assert [p.user_id for p in await service.get_connections(a)] == [b]
    assert [p.user_id for p in await service.get_following(a)] == [b, c]
    assert [p.user_id for p in await service.get_followers(a)] == [b]
    assert await service.is_following(a, c) is True
    assert await service.is_following(c, a) is False
    assert await service.get_following_count("alice") == 2
    assert await service.get_followers_count(a) == 1


async def test_connections_are_the_intersection(service, make_user, trio):
    a, b, c = trio
    d = await make_user("dave")
    await service.follow(a, b)
    await service.follow(a, c)
    await service.follow(c, a)
    await service.follow(d, a)
    await service.follow(b, d)

    alice_following = {p.user_id for p in await service.get_following(a)}
    alice_followers = {p.user_id for p in await service.get_followers(a)}
    connections = {p.user_id for p in await service.get_connections(a)}

    assert connections == alice_following & alice_followers == {c}


async def test_is_following_unknown_username_is_false(service, trio):
    a, _, _ = trio

    assert await service.is_following(a, "ghost") is False
    assert await service.is_blocked(a, "ghost") is False


async def test_relationship_checks_accept_any_id_spelling(service, trio):
    a, b, _ = trio
    await service.follow(a, b)
    await service.block(a, "carol")

    for actor in (a.upper(), "{" + a + "}"):
        assert await service.is_following(actor, b) is True
        assert await service.is_following(actor, b.upper()) is True
        assert await service.is_blocked(actor, "carol") is True
    assert await service.is_following("alice-not-an-id", b) is False


async def test_counts_come_from_cached_counters(service, make_user):
    drifted = await make_user("drifted", following_count=5, followers_count=2)

    assert await service.get_following_count(drifted) == 5
    assert await service.get_followers_count("drifted") == 2


async def test_subscription_summary(service, trio):
    a, b, c = trio
    await service.follow(a, b)
    await service.follow(c, a)

    summary = await service.get_subscription_summary(a)

    assert [p.username for p in summary.following] == ["bob"]
    assert [p.username for p in summary.followers] == ["carol"]
    assert (summary.following_count, summary.followers_count) == (1, 1)


async def test_profiles_expose_public_fields(service, trio):
    a, b, _ = trio
    await service.follow(b, a)

    [profile] = await service.get_following(b)

    assert profile.first_name == "Alice"
    assert profile.organization == "Barreau de Lyon"
    assert not hasattr(profile, "role")


async def test_queries_on_unknown_user(service):
    with pytest.raises(UserNotFoundError):
        await service.get_followers("ghost")
    with pytest.raises(UserNotFoundError):
        await service.get_followers_count("ghost")


# =========================================================================
# NOTIFICATION ISOLATION
# =========================================================================

async def test_notification_failure_does_not_fail_follow(store, trio):
    a, b, _ = trio
    service = SubscriptionGraphService(store, RecordingDispatcher(error=RuntimeError("smtp down")))

    result = await service.follow(a, b)

    assert result.notification_sent is False
    assert await service.is_following(a, b)


class SlowDispatcher(RecordingDispatcher):
    async def dispatch(self, recipient_id, actor_id, event_type, message):
        await asyncio.sleep(5)


async def test_slow_notification_is_cut_off(store, trio):
    a, b, _ = trio
    service = SubscriptionGraphService(store, SlowDispatcher(), notification_timeout=0.05)

    result = await service.follow(a, b)

    assert result.notification_sent is False
    assert (await store.get_by_id(b)).followers == {a}


# =========================================================================
# PARTIAL FAILURE AND REPAIR
# =========================================================================

class FailingMirrorStore(SQLAlchemyUserRecordStore):
    """Fails every write to a followers set, as if the store went away mid-operation."""

    async def add_to_set(self, owner_id, kind, member_id):
        if kind == RelationKind.FOLLOWERS:
            raise StoreFailureError(operation="add_to_set")
        return await super().add_to_set(owner_id, kind, member_id)


async def test_second_write_failure_keeps_first_write(session_factory, store, trio, dispatcher):
    a, b, _ = trio
    flaky = SubscriptionGraphService(FailingMirrorStore(session_factory), dispatcher)

    with pytest.raises(StoreFailureError):
        await flaky.follow(a, b)

    # first write kept, no rollback
    alice = await store.get_by_id(a)
    bob = await store.get_by_id(b)
    assert alice.following == {b}
    assert bob.followers == set()
    assert dispatcher.sent == []
    assert alice.following_count == 1
    assert bob.followers_count == 0

    healthy = SubscriptionGraphService(store, dispatcher)
    with pytest.raises(AlreadyFollowingError):
        await healthy.follow(a, b)


async def test_first_write_failure_is_side_effect_free(session_factory, store, trio, dispatcher):
    a, b, _ = trio

    class FailingStore(SQLAlchemyUserRecordStore):
        async def add_to_set(self, owner_id, kind, member_id):
            raise StoreFailureError(operation="add_to_set")

    with pytest.raises(StoreFailureError):
        await SubscriptionGraphService(FailingStore(session_factory), dispatcher).follow(a, b)

    assert (await store.get_by_id(a)).following == set()
    assert (await store.get_by_id(b)).followers == set()
