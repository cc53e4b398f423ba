"""Board CRUD, collaborator management and cascade deletion."""

from sqlalchemy import select

from vortexboard.models import Notification, Task

MISSING_ID = "0123456789abcdef01234567"


async def test_create_and_get_board(client, alice, create_board):
    board = await create_board(alice, description="Q3 plans", color="#10B981")

    assert board["owner"]["id"] == alice["id"]
    assert board["color"] == "#10B981"
    assert board["collaborators"] == []

    res = await client.get(f"/api/boards/{board['id']}", headers=alice["headers"])
    assert res.status_code == 200
    assert res.json()["board"]["name"] == "Roadmap"


async def test_create_board_requires_name(client, alice):
    res = await client.post("/api/boards", json={"name": "  "}, headers=alice["headers"])

    assert res.status_code == 400
    assert res.json()["error"] == "Board name is required"


async def test_list_boards_only_accessible_newest_first(
    client, alice, bob, create_board, share_board
):
    first = await create_board(alice, name="First")
    second = await create_board(alice, name="Second")
    await create_board(bob, name="Private")
    shared = await create_board(bob, name="Shared")
    await share_board(bob, shared["id"], alice, "read")

    res = await client.get("/api/boards", headers=alice["headers"])

    body = res.json()
    assert res.status_code == 200
    assert body["total"] == 3
    assert body["current_page"] == 1
    assert body["total_pages"] == 1
    assert [b["id"] for b in body["boards"]] == [shared["id"], second["id"], first["id"]]


async def test_list_boards_paginates(client, alice, create_board):
    for index in range(3):
        await create_board(alice, name=f"Board {index}")

    res = await client.get("/api/boards?page=2&limit=2", headers=alice["headers"])

    body = res.json()
    assert body["count"] == 1
    assert body["total"] == 3
    assert body["total_pages"] == 2
    assert body["current_page"] == 2


async def test_stranger_cannot_read_board(client, alice, bob, create_board):
    board = await create_board(alice)

    res = await client.get(f"/api/boards/{board['id']}", headers=bob["headers"])

    assert res.status_code == 403
    assert res.json()["error"] == "Not authorized to access this board"


async def test_malformed_board_id(client, alice):
    res = await client.get("/api/boards/not-an-id", headers=alice["headers"])

    assert res.status_code == 400
    assert res.json()["error"] == "Invalid ID format"


async def test_unknown_board(client, alice):
    res = await client.get(f"/api/boards/{MISSING_ID}", headers=alice["headers"])

    assert res.status_code == 404
    assert res.json()["error"] == "Board not found"


async def test_update_board_permissions(client, alice, bob, carol, create_board, share_board):
    board = await create_board(alice)
    await share_board(alice, board["id"], bob, "write")
    await share_board(alice, board["id"], carol, "read")

    by_writer = await client.put(
        f"/api/boards/{board['id']}", json={"name": "Renamed"}, headers=bob["headers"]
    )
    by_reader = await client.put(
        f"/api/boards/{board['id']}", json={"name": "Nope"}, headers=carol["headers"]
    )

    assert by_writer.status_code == 200
    assert by_writer.json()["board"]["name"] == "Renamed"
    assert by_reader.status_code == 403


async def test_only_owner_deletes_board(client, alice, bob, create_board, share_board):
    board = await create_board(alice)
    await share_board(alice, board["id"], bob, "write")

    res = await client.delete(f"/api/boards/{board['id']}", headers=bob["headers"])

    assert res.status_code == 403


async def test_delete_board_removes_only_its_tasks(
    client, alice, create_board, create_task, session_factory
):
    doomed = await create_board(alice, name="Doomed")
    kept = await create_board(alice, name="Kept")
    for title in ("one", "two"):
        await create_task(alice, doomed["id"], title=title)
    survivor = await create_task(alice, kept["id"], title="survivor")

    res = await client.delete(f"/api/boards/{doomed['id']}", headers=alice["headers"])

    assert res.status_code == 200
    assert res.json() == {"success": True, "message": "Board and associated tasks deleted"}
    async with session_factory() as session:
        remaining = (await session.execute(select(Task.id))).scalars().all()
    assert remaining == [survivor["id"]]

    gone = await client.get(f"/api/boards/{doomed['id']}", headers=alice["headers"])
    assert gone.status_code == 404


async def test_add_collaborator_notifies_and_emails(
    client, alice, bob, create_board, transport, session_factory
):
    board = await create_board(alice)

    res = await client.post(
        f"/api/boards/{board['id']}/collaborators",
        json={"user_id": bob["id"], "permission": "write"},
        headers=alice["headers"],
    )

    assert res.status_code == 200
    collaborators = res.json()["board"]["collaborators"]
    assert [(c["user"]["id"], c["permission"]) for c in collaborators] == [
        (bob["id"], "write")
    ]
    assert collaborators[0]["added_at"]

    async with session_factory() as session:
        notification = (
            await session.execute(
                select(Notification).where(Notification.recipient_id == bob["id"])
            )
        ).scalar_one()
    assert notification.type == "board_shared"
    assert notification.sender_id == alice["id"]
    assert transport.messages[-1]["To"] == bob["email"]


async def test_add_collaborator_rejections(client, alice, bob, create_board, share_board):
    board = await create_board(alice)
    url = f"/api/boards/{board['id']}/collaborators"

    owner = await client.post(url, json={"user_id": alice["id"]}, headers=alice["headers"])
    assert owner.status_code == 400

    await share_board(alice, board["id"], bob, "read")
    duplicate = await client.post(url, json={"user_id": bob["id"]}, headers=alice["headers"])
    assert duplicate.status_code == 400
    assert duplicate.json()["error"] == "User is already a collaborator"

    unknown = await client.post(url, json={"user_id": MISSING_ID}, headers=alice["headers"])
    assert unknown.status_code == 404

    bad_permission = await client.post(
        url, json={"user_id": MISSING_ID, "permission": "admin"}, headers=alice["headers"]
    )
    assert bad_permission.status_code == 400

    by_collaborator = await client.post(
        url, json={"user_id": MISSING_ID}, headers=bob["headers"]
    )
    assert by_collaborator.status_code == 403


async def test_collaborators_keep_insertion_order(
    client, alice, bob, carol, create_board, share_board
):
    board = await create_board(alice)
    await share_board(alice, board["id"], carol, "read")
    result = await share_board(alice, board["id"], bob, "write")

    assert [c["user"]["id"] for c in result["collaborators"]] == [carol["id"], bob["id"]]


async def test_remove_collaborator_revokes_access(
    client, alice, bob, create_board, share_board
):
    board = await create_board(alice)
    await share_board(alice, board["id"], bob, "read")

    res = await client.delete(
        f"/api/boards/{board['id']}/collaborators/{bob['id']}", headers=alice["headers"]
    )

    assert res.status_code == 200
    assert res.json()["board"]["collaborators"] == []
    denied = await client.get(f"/api/boards/{board['id']}", headers=bob["headers"])
    assert denied.status_code == 403


async def test_board_activity(client, alice, create_board):
    board = await create_board(alice)
    await client.put(
        f"/api/boards/{board['id']}", json={"color": "#000000"}, headers=alice["headers"]
    )

    res = await client.get(f"/api/boards/{board['id']}/activity", headers=alice["headers"])

    assert res.status_code == 200
    actions = [entry["action"] for entry in res.json()["activities"]]
    assert actions == ["board.update", "board.create"]
    assert res.json()["activities"][0]["metadata"]["fields"] == ["color"]
