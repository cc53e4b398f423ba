"""Comments: threading, mentions, edit and delete permissions."""

from sqlalchemy import func, select

from vortexboard.models import Comment, Notification


async def post_comment(client, user, task_id, content, parent_comment_id=None):
    payload = {"content": content}
    if parent_comment_id:
        payload["parent_comment_id"] = parent_comment_id
    return await client.post(
        f"/api/tasks/{task_id}/comments", json=payload, headers=user["headers"]
    )


async def test_threads_nest_replies_under_parents(
    client, alice, create_board, create_task
):
    board = await create_board(alice)
    task = await create_task(alice, board["id"])
    first = (await post_comment(client, alice, task["id"], "First")).json()["comment"]
    second = (await post_comment(client, alice, task["id"], "Second")).json()["comment"]
    await post_comment(client, alice, task["id"], "Reply", first["id"])

    res = await client.get(f"/api/tasks/{task['id']}/comments", headers=alice["headers"])

    body = res.json()
    assert body["count"] == 3
    assert [c["id"] for c in body["comments"]] == [first["id"], second["id"]]
    assert [r["content"] for r in body["comments"][0]["replies"]] == ["Reply"]
    assert body["comments"][1]["replies"] == []


async def test_replies_are_single_level(client, alice, create_board, create_task):
    board = await create_board(alice)
    task = await create_task(alice, board["id"])
    other = await create_task(alice, board["id"], title="Other")
    parent = (await post_comment(client, alice, task["id"], "Parent")).json()["comment"]
    reply = (
        await post_comment(client, alice, task["id"], "Reply", parent["id"])
    ).json()["comment"]

    nested = await post_comment(client, alice, task["id"], "Deeper", reply["id"])
    cross_task = await post_comment(client, alice, other["id"], "Wrong task", parent["id"])
    missing = await post_comment(
        client, alice, task["id"], "Orphan", "0123456789abcdef01234567"
    )

    assert nested.status_code == 400
    assert cross_task.status_code == 400
    assert missing.status_code == 404


async def test_comment_validation(client, alice, create_board, create_task):
    board = await create_board(alice)
    task = await create_task(alice, board["id"])

    empty = await post_comment(client, alice, task["id"], "   ")
    too_long = await post_comment(client, alice, task["id"], "x" * 1001)

    assert empty.status_code == 400
    assert too_long.status_code == 400


async def test_mentions_notify_and_email(
    client, alice, bob, carol, create_board, create_task, share_board,
    transport, session_factory,
):
    board = await create_board(alice)
    await share_board(alice, board["id"], bob, "read")
    task = await create_task(alice, board["id"], assigned_to=carol["id"])
    content = f"@[Bob]({bob['id']}) and @[Carol]({carol['id']}) please look, @[Bob]({bob['id']})"

    res = await post_comment(client, alice, task["id"], content)

    comment = res.json()["comment"]
    assert res.status_code == 201
    assert comment["mentions"] == [bob["id"], carol["id"]]
    async with session_factory() as session:
        rows = (
            await session.execute(
                select(Notification.recipient_id, Notification.type).where(
                    Notification.entity_id == comment["id"]
                )
            )
        ).all()
    assert sorted(rows) == sorted(
        [(bob["id"], "comment_mention"), (carol["id"], "comment_mention")]
    )
    mention_mail = [m for m in transport.messages if "mentioned you" in m["Subject"]]
    assert sorted(m["To"] for m in mention_mail) == sorted([bob["email"], carol["email"]])


async def test_comment_notifies_assignee_and_creator(
    client, alice, bob, create_board, create_task, share_board, session_factory
):
    board = await create_board(alice)
    await share_board(alice, board["id"], bob, "write")
    task = await create_task(alice, board["id"], assigned_to=alice["id"])

    res = await post_comment(client, bob, task["id"], "Looks good")

    async with session_factory() as session:
        rows = (
            await session.execute(
                select(Notification.recipient_id, Notification.type).where(
                    Notification.entity_id == res.json()["comment"]["id"]
                )
            )
        ).all()
    assert rows == [(alice["id"], "comment_added")]


async def test_only_author_edits(
    client, alice, bob, create_board, create_task, share_board
):
    board = await create_board(alice)
    await share_board(alice, board["id"], bob, "write")
    task = await create_task(alice, board["id"])
    comment = (await post_comment(client, bob, task["id"], "Draft")).json()["comment"]

    by_owner = await client.put(
        f"/api/comments/{comment['id']}", json={"content": "Hijack"}, headers=alice["headers"]
    )
    by_author = await client.put(
        f"/api/comments/{comment['id']}",
        json={"content": f"Final @[Alice]({alice['id']})"},
        headers=bob["headers"],
    )

    assert by_owner.status_code == 403
    edited = by_author.json()["comment"]
    assert edited["is_edited"] is True
    assert edited["edited_at"] is not None
    assert edited["mentions"] == [alice["id"]]


async def test_board_owner_deletes_thread_with_replies(
    client, alice, bob, carol, create_board, create_task, share_board, session_factory
):
    board = await create_board(alice)
    await share_board(alice, board["id"], bob, "write")
    await share_board(alice, board["id"], carol, "write")
    task = await create_task(alice, board["id"])
    parent = (await post_comment(client, bob, task["id"], "Parent")).json()["comment"]
    await post_comment(client, alice, task["id"], "Reply", parent["id"])
    await post_comment(client, bob, task["id"], "Standalone")

    by_other = await client.delete(f"/api/comments/{parent['id']}", headers=carol["headers"])
    by_owner = await client.delete(f"/api/comments/{parent['id']}", headers=alice["headers"])

    assert by_other.status_code == 403
    assert by_owner.status_code == 200
    async with session_factory() as session:
        remaining = (
            await session.execute(select(Comment.content))
        ).scalars().all()
    assert remaining == ["Standalone"]


async def test_deleting_task_removes_comments(
    client, alice, create_board, create_task, session_factory
):
    board = await create_board(alice)
    task = await create_task(alice, board["id"])
    await post_comment(client, alice, task["id"], "Soon gone")

    await client.delete(f"/api/tasks/{task['id']}", headers=alice["headers"])

    async with session_factory() as session:
        count = (await session.execute(select(func.count(Comment.id)))).scalar_one()
    assert count == 0
