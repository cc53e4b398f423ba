"""Dashboard, board and productivity reports."""

from datetime import UTC, datetime, timedelta


async def test_dashboard_for_new_user_is_empty(client, alice):
    res = await client.get("/api/analytics/dashboard", headers=alice["headers"])

    assert res.status_code == 200
    analytics = res.json()["analytics"]
    assert analytics["overview"] == {
        "total_boards": 0,
        "total_tasks": 0,
        "tasks_assigned_to_me": 0,
        "tasks_created_by_me": 0,
        "overdue_tasks": 0,
        "tasks_due_this_week": 0,
        "completion_rate": 0.0,
    }
    assert analytics["tasks_by_status"] == {}
    assert analytics["tasks_by_priority"] == {}
    assert analytics["task_creation_trend"] == []


async def test_dashboard_counts(client, alice, bob, create_board, create_task):
    board = await create_board(alice)
    await create_board(bob, name="Not mine")
    now = datetime.now(UTC)
    await create_task(alice, board["id"], title="a", status="done")
    await create_task(alice, board["id"], title="b", status="done")
    await create_task(alice, board["id"], title="c", status="done", assigned_to=alice["id"])
    await create_task(
        alice,
        board["id"],
        title="d",
        priority="high",
        due_date=(now - timedelta(days=1)).isoformat(),
    )

    res = await client.get("/api/analytics/dashboard", headers=alice["headers"])

    analytics = res.json()["analytics"]
    overview = analytics["overview"]
    assert overview["total_boards"] == 1
    assert overview["total_tasks"] == 4
    assert overview["tasks_assigned_to_me"] == 1
    assert overview["tasks_created_by_me"] == 4
    assert overview["overdue_tasks"] == 1
    assert overview["completion_rate"] == 75.0
    assert analytics["tasks_by_status"] == {"done": 3, "todo": 1}
    assert analytics["tasks_by_priority"] == {"medium": 3, "high": 1}
    assert analytics["task_creation_trend"] == [
        {"date": now.strftime("%Y-%m-%d"), "count": 4}
    ]
    assert analytics["recent_activity"][0]["action"] == "task.create"


async def test_board_analytics(client, alice, bob, create_board, create_task, share_board):
    board = await create_board(alice, name="Launch")
    await share_board(alice, board["id"], bob, "write")
    await create_task(alice, board["id"], title="x", assigned_to=bob["id"])
    await create_task(alice, board["id"], title="y", assigned_to=bob["id"], priority="low")
    await create_task(alice, board["id"], title="z", status="done")

    res = await client.get(f"/api/analytics/boards/{board['id']}", headers=bob["headers"])

    analytics = res.json()["analytics"]
    assert res.status_code == 200
    assert analytics["board_name"] == "Launch"
    assert analytics["total_tasks"] == 3
    assert analytics["tasks_by_status"] == {"todo": 2, "done": 1}
    assert analytics["tasks_by_priority"] == {"medium": 2, "low": 1}
    assert analytics["tasks_by_assignee"] == [
        {"id": bob["id"], "name": "Bob", "email": bob["email"], "count": 2}
    ]
    assert analytics["collaborators"] == 1
    assert analytics["avg_completion_time"] == 0.0
    assert [entry["action"] for entry in analytics["board_activity"]] == [
        "board.share",
        "board.create",
    ]
    assert analytics["board_activity"][0]["user"]["id"] == alice["id"]


async def test_board_analytics_requires_access(client, alice, bob, create_board):
    board = await create_board(alice)

    res = await client.get(f"/api/analytics/boards/{board['id']}", headers=bob["headers"])

    assert res.status_code == 403


async def test_productivity(client, alice, create_board, create_task):
    board = await create_board(alice)
    now = datetime.now(UTC)
    early = await create_task(
        alice, board["id"], title="early", assigned_to=alice["id"],
        due_date=(now + timedelta(days=2)).isoformat(),
    )
    late = await create_task(
        alice, board["id"], title="late", assigned_to=alice["id"],
        due_date=(now - timedelta(days=2)).isoformat(),
    )
    await create_task(alice, board["id"], title="open", assigned_to=alice["id"])
    for task in (early, late):
        await client.put(
            f"/api/tasks/{task['id']}", json={"status": "done"}, headers=alice["headers"]
        )

    res = await client.get("/api/analytics/productivity?period=7", headers=alice["headers"])

    analytics = res.json()["analytics"]
    assert analytics["period"] == 7
    assert analytics["tasks_completed"] == 2
    assert analytics["tasks_created"] == 3
    assert analytics["active_tasks"] == 1
    assert analytics["on_time_completion_rate"] == 50.0
    assert analytics["daily_activity"] == [
        {"date": now.strftime("%Y-%m-%d"), "count": 3}
    ]


async def test_productivity_period_bounds(client, alice):
    too_long = await client.get(
        "/api/analytics/productivity?period=366", headers=alice["headers"]
    )
    too_short = await client.get(
        "/api/analytics/productivity?period=0", headers=alice["headers"]
    )

    assert too_long.status_code == 400
    assert too_short.status_code == 400
