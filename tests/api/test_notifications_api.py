"""Notification inbox: listing, read state and ownership."""

import pytest


@pytest.fixture
async def inbox(alice, bob, carol, create_board, share_board):
    """Bob gets two board_shared notifications, Carol one."""
    first = await create_board(alice, name="First")
    second = await create_board(alice, name="Second")
    await share_board(alice, first["id"], bob, "read")
    await share_board(alice, second["id"], bob, "write")
    await share_board(alice, first["id"], carol, "read")


async def test_list_newest_first_with_unread_count(client, bob, inbox):
    res = await client.get("/api/notifications", headers=bob["headers"])

    body = res.json()
    assert res.status_code == 200
    assert body["count"] == 2
    assert body["total"] == 2
    assert body["unread_count"] == 2
    assert [n["message"].split("'")[1] for n in body["notifications"]] == [
        "Second",
        "First",
    ]
    assert body["notifications"][0]["sender"]["name"] == "Alice"


async def test_mark_single_notification_read(client, bob, inbox):
    listing = await client.get("/api/notifications", headers=bob["headers"])
    target = listing.json()["notifications"][0]

    res = await client.put(f"/api/notifications/{target['id']}/read", headers=bob["headers"])

    notification = res.json()["notification"]
    assert res.status_code == 200
    assert notification["is_read"] is True
    assert notification["read_at"] is not None
    count = await client.get("/api/notifications/unread-count", headers=bob["headers"])
    assert count.json() == {"success": True, "count": 1}
    unread = await client.get(
        "/api/notifications", params={"unread_only": True}, headers=bob["headers"]
    )
    assert target["id"] not in [n["id"] for n in unread.json()["notifications"]]
    assert unread.json()["total"] == 1


async def test_mark_all_read_only_touches_caller(client, bob, carol, inbox):
    res = await client.put("/api/notifications/read-all", headers=bob["headers"])

    assert res.json()["modified"] == 2
    bob_count = await client.get("/api/notifications/unread-count", headers=bob["headers"])
    carol_count = await client.get(
        "/api/notifications/unread-count", headers=carol["headers"]
    )
    assert bob_count.json()["count"] == 0
    assert carol_count.json()["count"] == 1

    listing = await client.get("/api/notifications", headers=bob["headers"])
    assert all(n["read_at"] for n in listing.json()["notifications"])


async def test_other_users_notification_is_not_found(client, bob, carol, inbox):
    listing = await client.get("/api/notifications", headers=carol["headers"])
    carols = listing.json()["notifications"][0]["id"]

    read = await client.put(f"/api/notifications/{carols}/read", headers=bob["headers"])
    delete = await client.delete(f"/api/notifications/{carols}", headers=bob["headers"])

    assert read.status_code == 404
    assert read.json()["error"] == "Notification not found"
    assert delete.status_code == 404


async def test_delete_notification(client, carol, inbox):
    listing = await client.get("/api/notifications", headers=carol["headers"])
    notification_id = listing.json()["notifications"][0]["id"]

    res = await client.delete(f"/api/notifications/{notification_id}", headers=carol["headers"])

    assert res.status_code == 200
    after = await client.get("/api/notifications", headers=carol["headers"])
    assert after.json()["total"] == 0
