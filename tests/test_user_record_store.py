import pytest

from lexcircle.modules.social_graph.domain.models.user_record import RelationKind


async def test_get_by_id_and_username_load_relations(store, make_user, add_relation):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await add_relation(alice, RelationKind.FOLLOWING, bob)

    by_id = await store.get_by_id(alice)
    by_name = await store.get_by_username("alice")

    assert by_id.user_id == alice
    assert by_id.following == {bob}
    assert by_name.user_id == alice
    assert await store.get_by_username("nobody") is None


async def test_get_by_id_without_relations(store, make_user, add_relation):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await add_relation(alice, RelationKind.FOLLOWING, bob)

    record = await store.get_by_id(alice, load_relations=False)

    assert record.following == set()


async def test_add_to_set_is_conditional(store, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    assert await store.add_to_set(alice, RelationKind.FOLLOWING, bob) is True
    assert await store.add_to_set(alice, RelationKind.FOLLOWING, bob) is False

    record = await store.get_by_id(alice)
    assert record.following == {bob}
    assert record.following_count == 1


async def test_blocked_set_has_no_counter(store, make_user):
    alice = await make_user("alice")
    bob = await make_user("bob")

    await store.add_to_set(alice, RelationKind.BLOCKED, bob)

    record = await store.get_by_id(alice)
    assert record.blocked_users == {bob}
    assert record.following_count == 0
    assert record.followers_count == 0


async def test_remove_from_set_never_goes_negative(store, make_user, add_relation):
    alice = await make_user("alice")
    bob = await make_user("bob")
    # relation present but counter already drifted to zero
    await add_relation(alice, RelationKind.FOLLOWERS, bob)

    assert await store.remove_from_set(alice, RelationKind.FOLLOWERS, bob) is True
    assert await store.remove_from_set(alice, RelationKind.FOLLOWERS, bob) is False

    record = await store.get_by_id(alice)
    assert record.followers == set()
    assert record.followers_count == 0


async def test_recompute_counters(store, make_user, add_relation):
    alice = await make_user("alice", following_count=7, followers_count=3)
    bob = await make_user("bob")
    await add_relation(alice, RelationKind.FOLLOWING, bob)

    assert await store.recompute_counters(alice) == (1, 0)
    record = await store.get_by_id(alice)
    assert (record.following_count, record.followers_count) == (1, 0)


async def test_get_many_orders_by_username_and_skips_missing(store, make_user):
    carol = await make_user("carol")
    alice = await make_user("alice")

    records = await store.get_many([carol, alice, "00000000-0000-0000-0000-000000000000"])

    assert [r.username for r in records] == ["alice", "carol"]


async def test_iter_records_pages_through_all_users(store, make_user):
    ids = {await make_user(f"user{i}") for i in range(5)}

    seen = []
    async for batch in store.iter_records(batch_size=2):
        assert len(batch) <= 2
        seen.extend(r.user_id for r in batch)

    assert len(seen) == 5
    assert set(seen) == ids


async def test_counter_snapshots_report_live_sizes(store, make_user, add_relation):
    alice = await make_user("alice", following_count=4)
    bob = await make_user("bob")
    await add_relation(alice, RelationKind.FOLLOWING, bob)

    snapshots = {s.user_id: s for s in await store.counter_snapshots()}

    assert snapshots[alice].actual_following == 1
    assert snapshots[alice].drifted
    assert not snapshots[bob].drifted


async def test_replace_relations_keeps_only_given_members(store, make_user, add_relation):
    alice = await make_user("alice", following_count=2, followers_count=1)
    bob = await make_user("bob")
    carol = await make_user("carol")
    await add_relation(alice, RelationKind.FOLLOWING, bob)
    await add_relation(alice, RelationKind.FOLLOWING, carol)
    await add_relation(alice, RelationKind.FOLLOWERS, carol)

    await store.replace_relations(alice, {bob}, set())

    record = await store.get_by_id(alice)
    assert record.following == {bob}
    assert record.followers == set()
    assert (record.following_count, record.followers_count) == (1, 0)


async def test_bulk_set_counters(store, make_user):
    alice = await make_user("alice", following_count=9)
    bob = await make_user("bob", followers_count=9)

    assert await store.bulk_set_counters({alice: (0, 0), bob: (0, 0)}) == 2
    assert await store.bulk_set_counters({}) == 0

    assert (await store.get_by_id(alice)).following_count == 0
    assert (await store.get_by_id(bob)).followers_count == 0


async def test_exists_many_and_has_member(store, make_user, add_relation, delete_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    await add_relation(alice, RelationKind.BLOCKED, bob)
    await delete_user(bob)

    assert await store.exists_many([alice, bob]) == {alice}
    assert await store.has_member(alice, RelationKind.BLOCKED, bob) is True
    assert await store.has_member(alice, RelationKind.FOLLOWING, bob) is False


@pytest.mark.parametrize("kind", [RelationKind.FOLLOWING, RelationKind.FOLLOWERS])
async def test_counted_kinds_track_increments(store, make_user, kind):
    alice = await make_user("alice")
    others = [await make_user(f"member{i}") for i in range(3)]

    for other in others:
        await store.add_to_set(alice, kind, other)
    await store.remove_from_set(alice, kind, others[0])

    record = await store.get_by_id(alice)
    assert len(record.members(kind)) == 2
    assert record.counters_match()
