import pytest

from lexcircle.modules.social_graph.domain.models.user_record import RelationKind
from lexcircle.shared.core.exceptions import UserNotFoundError


async def _snapshot(store):
    records = []
    async for batch in store.iter_records(batch_size=50):
        records.extend(batch)
    return {r.user_id: r.model_dump() for r in records}


async def test_repair_fixes_wrong_counter(repair_service, store, make_user, add_relation):
    alice = await make_user("alice", following_count=3)
    bob = await make_user("bob", followers_count=1)
    await add_relation(alice, RelationKind.FOLLOWING, bob)
    await add_relation(bob, RelationKind.FOLLOWERS, alice)

    report = await repair_service.repair_counters()

    assert report.users_scanned == 2
    assert report.incorrect_counters == 1
    assert report.users_corrected == 1
    assert report.users_with_orphans == 0
    assert (await store.get_by_id(alice)).following_count == 1


async def test_repair_removes_orphans(repair_service, store, make_user, add_relation, delete_user):
    alice = await make_user("alice")
    bob = await make_user("bob")
    carol = await make_user("carol")
    await add_relation(alice, RelationKind.FOLLOWING, bob)
    await add_relation(alice, RelationKind.FOLLOWING, carol)
    await add_relation(alice, RelationKind.FOLLOWERS, carol)
    await store.recompute_counters(alice)
    await delete_user(carol)

    report = await repair_service.repair_counters()

    record = await store.get_by_id(alice)
    assert record.following == {bob}
    assert record.followers == set()
    assert (record.following_count, record.followers_count) == (1, 0)
    assert report.users_with_orphans == 1
    assert report.orphaned_references_removed == 2
    assert report.incorrect_counters == 0
    assert report.users_corrected == 1


async def test_repair_keeps_soft_deleted_references(repair_service, store, make_user, add_relation):
    alice = await make_user("alice")
    retired = await make_user("retired", is_deleted=True)
    await add_relation(alice, RelationKind.FOLLOWING, retired)
    await store.recompute_counters(alice)

    report = await repair_service.repair_counters()

    assert report.orphaned_references_removed == 0
    assert (await store.get_by_id(alice)).following == {retired}


async def test_repair_is_idempotent(repair_service, make_user, add_relation, delete_user):
    alice = await make_user("alice", followers_count=4)
    ghost = await make_user("ghost")
    await add_relation(alice, RelationKind.FOLLOWING, ghost)
    await delete_user(ghost)

    first = await repair_service.repair_counters()
    second = await repair_service.repair_counters()

    assert first.users_corrected == 1
    assert second.incorrect_counters == 0
    assert second.users_corrected == 0
    assert second.users_with_orphans == 0
    assert second.orphaned_references_removed == 0


async def test_repair_leaves_valid_graph_untouched(repair_service, service, store, make_user):
    ids = [await make_user(f"member{i}") for i in range(5)]
    await service.follow(ids[0], ids[1])
    await service.follow(ids[1], ids[0])
    await service.follow(ids[2], ids[3])
    await service.block(ids[4], ids[0])
    before = await _snapshot(store)

    report = await repair_service.repair_counters()

    assert report.users_scanned == 5
    assert report.incorrect_counters == 0
    assert report.users_corrected == 0
    assert report.users_with_orphans == 0
    assert report.orphaned_references_removed == 0
    assert await _snapshot(store) == before


async def test_quick_repair_recomputes_counters_only(repair_service, store, make_user, add_relation, delete_user):
    alice = await make_user("alice", following_count=9)
    ghost = await make_user("ghost")
    await add_relation(alice, RelationKind.FOLLOWING, ghost)
    await delete_user(ghost)

    report = await repair_service.quick_repair_counters()

    record = await store.get_by_id(alice)
    assert report.users_scanned == 1
    assert report.corrections == 1
    # orphan kept, counter matches the stored set
    assert record.following == {ghost}
    assert record.following_count == 1


async def test_quick_repair_respects_limit(repair_service, make_user):
    for i in range(4):
        await make_user(f"member{i}", followers_count=1)

    report = await repair_service.quick_repair_counters(limit=2)

    assert report.users_scanned == 2
    assert report.corrections == 2


async def test_quick_repair_without_drift(repair_service, make_user):
    await make_user("alice")

    report = await repair_service.quick_repair_counters()

    assert report.corrections == 0


async def test_sync_user_counters(service, store, make_user, add_relation):
    alice = await make_user("alice", following_count=2)
    bob = await make_user("bob")
    await add_relation(alice, RelationKind.FOLLOWING, bob)

    assert await service.sync_user_counters("alice") is True
    assert await service.sync_user_counters(alice) is False
    assert (await store.get_by_id(alice)).following_count == 1

    with pytest.raises(UserNotFoundError):
        await service.sync_user_counters("ghost")
