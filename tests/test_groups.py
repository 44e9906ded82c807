import asyncio

import pytest

from sideline.core.clock import parse_timestamp
from sideline.core.exceptions import ValidationError, NotFoundError, ConcurrencyError
from sideline.modules.groups.schemas import GroupCreate
from tests.conftest import auth


def test_create_then_get_round_trip(group_service, make_group):
    created = make_group(name="Morning Runners", sport="running", members=["u1", "u2"])

    fetched = group_service.get_group(created.id)

    assert fetched.name == "Morning Runners"
    assert fetched.sport == "running"
    assert fetched.members == ["u1", "u2"]
    assert fetched.admins == ["u1"]
    assert fetched.created_at <= fetched.updated_at
    assert fetched.version == 0


def test_create_group_requires_creator_to_be_admin(group_service):
    with pytest.raises(ValidationError):
        group_service.create_group(GroupCreate(
            name="Tennis", sport="tennis", creator_id="u1", members=["u1", "u2"], admins=["u2"],
        ))


def test_create_group_requires_admins_to_be_members(group_service):
    with pytest.raises(ValidationError):
        group_service.create_group(GroupCreate(
            name="Tennis", sport="tennis", creator_id="u1", members=["u2"], admins=["u1"],
        ))


def test_create_group_drops_duplicate_members(make_group):
    group = make_group(members=["u1", "u2", "u1", "u2"])

    assert group.members == ["u1", "u2"]


def test_get_missing_group_is_not_found(group_service):
    with pytest.raises(NotFoundError):
        group_service.get_group("missing")


def test_groups_by_sport_newest_first(group_service, supabase, make_group):
    old = make_group(name="Old Ballers")
    new = make_group(name="New Ballers")
    make_group(name="Swimmers", sport="swimming")
    rows = {row["id"]: row for row in supabase.rows("groups")}
    rows[old.id]["created_at"] = "2024-01-01T00:00:00+00:00"
    rows[new.id]["created_at"] = "2024-06-01T00:00:00+00:00"

    groups = group_service.get_groups_by_sport("basketball")

    assert [g.id for g in groups] == [new.id, old.id]


def test_user_groups_most_recently_active_first(group_service, supabase, make_group):
    quiet = make_group(name="Quiet", members=["u1", "u9"])
    busy = make_group(name="Busy", creator="u2", members=["u2"])
    make_group(name="Not mine", creator="u3")
    for row in supabase.rows("groups"):
        row["updated_at"] = "2024-01-01T00:00:00+00:00"

    group_service.join_group(busy.id, "u9")

    groups = group_service.get_user_groups("u9")
    assert [g.id for g in groups] == [busy.id, quiet.id]
    assert groups[0].updated_at >= groups[1].updated_at


def test_join_then_leave_restores_members(group_service, make_group):
    group = make_group(members=["u1", "u2"])

    joined = group_service.join_group(group.id, "u3")
    left = group_service.leave_group(group.id, "u3")

    assert joined.members == ["u1", "u2", "u3"]
    assert left.members == ["u1", "u2"]


def test_join_twice_keeps_members_unique(group_service, make_group):
    group = make_group()

    group_service.join_group(group.id, "u2")
    again = group_service.join_group(group.id, "u2")

    assert again.members == ["u1", "u2"]
    assert again.version == 1


def test_leave_removes_admin_rights(group_service, make_group):
    group = make_group()

    left = group_service.leave_group(group.id, "u1")

    assert left.members == []
    assert left.admins == []


def test_join_full_group_is_rejected(group_service, make_group):
    group = make_group(members=["u1", "u2"], max_members=2)

    with pytest.raises(ValidationError, match="full"):
        group_service.join_group(group.id, "u3")


def test_join_missing_group_is_not_found(group_service):
    with pytest.raises(NotFoundError):
        group_service.join_group("missing", "u1")


def test_concurrent_joins_both_persist(group_service, supabase, make_group):
    group = make_group()

    def competing_join(table):
        # Another request joins between our read and our write
        supabase.before_update.remove(competing_join)
        group_service.join_group(group.id, "u3")

    supabase.before_update.append(competing_join)

    result = group_service.join_group(group.id, "u2")

    assert set(result.members) == {"u1", "u2", "u3"}
    stored = group_service.get_group(group.id)
    assert sorted(stored.members) == ["u1", "u2", "u3"]
    assert stored.version == 2


def test_concurrent_join_and_leave_both_apply(group_service, supabase, make_group):
    group = make_group(members=["u1", "u2"])

    def competing_leave(table):
        supabase.before_update.remove(competing_leave)
        group_service.leave_group(group.id, "u2")

    supabase.before_update.append(competing_leave)

    group_service.join_group(group.id, "u3")

    assert group_service.get_group(group.id).members == ["u1", "u3"]


def test_membership_conflicts_exhaust_retries(group_service, supabase, make_group):
    group = make_group()

    def always_conflict(table):
        supabase.rows("groups")[0]["version"] += 1

    supabase.before_update.append(always_conflict)

    with pytest.raises(ConcurrencyError):
        group_service.join_group(group.id, "u2")
    assert supabase.rows("groups")[0]["members"] == ["u1"]


def test_updated_at_never_moves_backwards(group_service, supabase, make_group):
    group = make_group()
    future = "2999-01-01T00:00:00+00:00"
    supabase.rows("groups")[0]["updated_at"] = future

    joined = group_service.join_group(group.id, "u2")

    assert joined.updated_at >= parse_timestamp(future)


def test_search_is_case_insensitive_across_fields(group_service, make_group):
    by_name = make_group(name="Hoop Dreams", sport="basketball", description="")
    by_sport = make_group(name="Weekend Crew", sport="HOOPS", description="")
    by_description = make_group(name="Court Kings", sport="basketball", description="Casual hoops")
    make_group(name="Pool Sharks", sport="swimming", description="laps")

    found = {g.id for g in group_service.search_groups("hOoP")}

    assert found == {by_name.id, by_sport.id, by_description.id}


def test_search_strips_filter_syntax(group_service, make_group):
    group = make_group(name="Hoop Dreams")

    assert [g.id for g in group_service.search_groups("hoop,(")] == [group.id]


def test_send_message_scenario(group_service, make_group):
    group = make_group(members=["u1", "u2"])
    group_service.send_group_message(group.id, "u2", "first")

    sent = group_service.send_group_message(group.id, "u1", "hello")
    messages = group_service.get_group_messages(group.id)

    assert messages[-1].id == sent.id
    assert messages[-1].content == "hello"
    assert messages[-1].sender_id == "u1"
    assert messages[-1].type == "text"


def test_group_messages_oldest_first(group_service, supabase, make_group):
    group = make_group()
    for content, ts in [("b", "2024-01-02T00:00:00+00:00"), ("a", "2024-01-01T00:00:00+00:00"), ("c", "2024-01-03T00:00:00+00:00")]:
        supabase.rows("group_messages").append({
            "id": content, "group_id": group.id, "sender_id": "u1",
            "content": content, "timestamp": ts, "type": "text", "read": False,
        })
    supabase.rows("group_messages").append({
        "id": "other", "group_id": "another-group", "sender_id": "u1",
        "content": "elsewhere", "timestamp": "2024-01-01T12:00:00+00:00", "type": "text", "read": False,
    })

    messages = group_service.get_group_messages(group.id)

    assert [m.content for m in messages] == ["a", "b", "c"]
    assert all(x.timestamp <= y.timestamp for x, y in zip(messages, messages[1:]))


def test_blank_message_is_rejected(group_service, make_group):
    group = make_group()

    with pytest.raises(ValidationError):
        group_service.send_group_message(group.id, "u1", "   ")


async def test_subscription_refetches_full_list_on_every_change(group_service, supabase, realtime, make_group):
    group = make_group(members=["u1", "u2"])
    subscription = await group_service.subscribe_to_group_messages(group.id)

    first = group_service.send_group_message(group.id, "u1", "first")
    snapshot = await subscription.next_snapshot(timeout=2)
    assert [m.content for m in snapshot] == ["first"]

    group_service.send_group_message("another-group", "u1", "ignored")
    group_service.send_group_message(group.id, "u2", "second")
    snapshot = await subscription.next_snapshot(timeout=2)
    assert [m.content for m in snapshot] == ["first", "second"]

    supabase.table("group_messages").delete().eq("id", first.id).execute()
    snapshot = await subscription.next_snapshot(timeout=2)
    assert [m.content for m in snapshot] == ["second"]

    await subscription.close()
    assert realtime.channels == []
    assert realtime.removed[0].name == f"group_messages:{group.id}"


async def test_no_delivery_after_unsubscribe(group_service, make_group):
    group = make_group()
    subscription = await group_service.subscribe_to_group_messages(group.id)

    group_service.send_group_message(group.id, "u1", "before close")
    await subscription.close()
    await asyncio.sleep(0.05)

    with pytest.raises(StopAsyncIteration):
        await subscription.next_snapshot(timeout=1)


# HTTP contract

def test_create_group_endpoint_makes_creator_admin(client):
    response = client.post(
        "/api/v1/groups",
        json={"name": "Sunday Hoops", "sport": "basketball", "description": "Pickup"},
        headers=auth("u1"),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["creator_id"] == "u1"
    assert body["members"] == ["u1"]
    assert body["admins"] == ["u1"]


def test_endpoints_require_authentication(client):
    assert client.get("/api/v1/groups/mine").status_code in (401, 403)

    response = client.get("/api/v1/groups/mine", headers={"Authorization": "Bearer garbage"})
    assert response.status_code == 401
    assert response.json()["success"] is False


def test_join_leave_and_chat_endpoints(client, make_group):
    group = make_group(members=["u1"])

    assert client.post(f"/api/v1/groups/{group.id}/messages", json={"content": "hi"}, headers=auth("u2")).status_code == 403

    joined = client.post(f"/api/v1/groups/{group.id}/join", headers=auth("u2"))
    assert joined.json()["members"] == ["u1", "u2"]

    sent = client.post(f"/api/v1/groups/{group.id}/messages", json={"content": "hi"}, headers=auth("u2"))
    assert sent.status_code == 201
    assert sent.json()["sender_id"] == "u2"

    history = client.get(f"/api/v1/groups/{group.id}/messages", headers=auth("u1"))
    assert [m["content"] for m in history.json()] == ["hi"]

    mine = client.get("/api/v1/groups/mine", headers=auth("u2"))
    assert [g["id"] for g in mine.json()] == [group.id]

    left = client.post(f"/api/v1/groups/{group.id}/leave", headers=auth("u2"))
    assert left.json()["members"] == ["u1"]


def test_private_group_cannot_be_joined_directly(client, make_group):
    group = make_group(is_private=True)

    response = client.post(f"/api/v1/groups/{group.id}/join", headers=auth("u2"))

    assert response.status_code == 403


def test_list_groups_by_sport_and_search(client, make_group):
    hoops = make_group(name="Hoops", sport="basketball")
    make_group(name="Pool", sport="swimming", description="laps")

    by_sport = client.get("/api/v1/groups", params={"sport": "basketball"}, headers=auth("u1"))
    search = client.get("/api/v1/groups", params={"q": "LAPS"}, headers=auth("u1"))

    assert [g["id"] for g in by_sport.json()] == [hoops.id]
    assert [g["name"] for g in search.json()] == ["Pool"]


def test_get_missing_group_endpoint(client):
    response = client.get("/api/v1/groups/nope", headers=auth("u1"))

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "Group not found"}


def test_membership_write_accepts_store_timestamps_with_short_fractions(group_service, supabase, make_group):
    group = make_group()
    supabase.rows("groups")[0]["updated_at"] = "2024-01-01T10:00:00.12345+00:00"

    joined = group_service.join_group(group.id, "u2")
    left = group_service.leave_group(group.id, "u2")

    assert joined.members == ["u1", "u2"]
    assert left.members == ["u1"]
    assert joined.updated_at > parse_timestamp("2024-01-01T10:00:00.12345+00:00")
