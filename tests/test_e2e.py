import pytest
from httpx import AsyncClient


async def add_team(client: AsyncClient, team_name: str, *members, inactive=()):
    team_data = {
        "team_name": team_name,
        "members": [
            {"user_id": user_id, "username": f"User {user_id}", "is_active": user_id not in inactive}
            for user_id in members
        ]
    }
    return await client.post("/team/add", json=team_data)


async def create_pr(client: AsyncClient, pr_id: str, author_id: str):
    pr_data = {
        "pull_request_id": pr_id,
        "pull_request_name": f"PR {pr_id}",
        "author_id": author_id
    }
    return await client.post("/pullRequest/create", json=pr_data)


@pytest.mark.asyncio
async def test_team_lifecycle(client: AsyncClient):
    """E2E тест: создание команды, обновление участников, получение команды"""

    team_data = {
        "team_name": "backend",
        "members": [
            {"user_id": "u1", "username": "Alice", "is_active": True},
            {"user_id": "u2", "username": "Bob", "is_active": True},
            {"user_id": "u3", "username": "Charlie", "is_active": True}
        ]
    }

    response = await client.post("/team/add", json=team_data)
    assert response.status_code == 201
    assert response.json()["team"]["team_name"] == "backend"
    assert len(response.json()["team"]["members"]) == 3

    team_data["members"][0]["username"] = "Alice Cooper"
    response = await client.post("/team/add", json=team_data)
    assert response.status_code == 200

    response = await client.get("/team/get?team_name=backend")
    assert response.status_code == 200
    assert response.json()["team_name"] == "backend"
    assert len(response.json()["members"]) == 3
    assert response.json()["members"][0]["username"] == "Alice Cooper"


@pytest.mark.asyncio
async def test_pr_creation_and_reviewers(client: AsyncClient):
    """E2E тест: создание PR с автоматическим назначением ревьюверов"""

    await add_team(client, "frontend", "u4", "u5", "u6")

    response = await create_pr(client, "pr-1001", "u4")
    assert response.status_code == 201
    pr = response.json()["pr"]
    assert pr["pull_request_id"] == "pr-1001"
    assert pr["status"] == "OPEN"
    assert sorted(pr["assigned_reviewers"]) == ["u5", "u6"]
    assert "u4" not in pr["assigned_reviewers"]  # Автор не должен быть ревьювером
    assert pr["createdAt"] is not None
    assert pr["mergedAt"] is None

    response = await client.get("/pullRequest/get?pull_request_id=pr-1001")
    assert response.status_code == 200
    assert response.json()["pr"]["assigned_reviewers"] == sorted(pr["assigned_reviewers"])


@pytest.mark.asyncio
async def test_pr_merge(client: AsyncClient):
    """E2E тест: создание и merge PR (идемпотентно)"""

    await add_team(client, "devops", "u7", "u8")
    await create_pr(client, "pr-1002", "u7")

    merge_data = {"pull_request_id": "pr-1002"}
    response = await client.post("/pullRequest/merge", json=merge_data)
    assert response.status_code == 200
    assert response.json()["pr"]["status"] == "MERGED"
    merged_at = response.json()["pr"]["mergedAt"]
    assert merged_at is not None

    response = await client.post("/pullRequest/merge", json=merge_data)
    assert response.status_code == 200
    assert response.json()["pr"]["status"] == "MERGED"
    assert response.json()["pr"]["mergedAt"] == merged_at

    response = await client.post("/pullRequest/reassign", json={"pull_request_id": "pr-1002", "old_user_id": "u8"})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "PR_MERGED"


@pytest.mark.asyncio
async def test_reviewer_reassignment(client: AsyncClient):
    """E2E тест: переназначение ревьювера"""

    await add_team(client, "qa", "u9", "u10", "u11")
    create_response = await create_pr(client, "pr-1003", "u9")
    old_reviewers = create_response.json()["pr"]["assigned_reviewers"]
    assert sorted(old_reviewers) == ["u10", "u11"]

    # Вся команда уже на ревью: кандидатов нет
    reassign_data = {"pull_request_id": "pr-1003", "old_user_id": "u10"}
    response = await client.post("/pullRequest/reassign", json=reassign_data)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NO_CANDIDATE"

    await add_team(client, "qa", "u9", "u10", "u11", "u12")
    response = await client.post("/pullRequest/reassign", json=reassign_data)
    assert response.status_code == 200
    assert response.json()["replaced_by"] == "u12"
    assert response.json()["pr"]["assigned_reviewers"] == ["u11", "u12"]

    response = await client.post("/pullRequest/reassign", json=reassign_data)
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NOT_ASSIGNED"


@pytest.mark.asyncio
async def test_assign_reviewers(client: AsyncClient):
    """E2E тест: назначение ревьюверов на PR без ревьюверов"""

    await add_team(client, "mobile", "u20")
    response = await create_pr(client, "pr-1006", "u20")
    assert response.json()["pr"]["assigned_reviewers"] == []

    response = await client.post("/pullRequest/assign", json={"pull_request_id": "pr-1006"})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "NO_CANDIDATE"

    await add_team(client, "mobile", "u20", "u21", "u22", "u23", inactive=("u23",))

    assign_data = {"pull_request_id": "pr-1006", "reviewer_ids": [{"user_id": "u23"}]}
    response = await client.post("/pullRequest/assign", json=assign_data)
    assert response.status_code == 400

    assign_data = {"pull_request_id": "pr-1006", "reviewer_ids": [{"user_id": "u22"}, {"user_id": "u21"}]}
    response = await client.post("/pullRequest/assign", json=assign_data)
    assert response.status_code == 200
    assert response.json()["pr"]["assigned_reviewers"] == ["u21", "u22"]

    response = await client.post("/pullRequest/assign", json={"pull_request_id": "pr-1006"})
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "REVIEWERS_ASSIGNED"


@pytest.mark.asyncio
async def test_user_deactivation(client: AsyncClient):
    """E2E тест: деактивация пользователя"""

    await add_team(client, "support", "u12", "u13")

    deactivate_data = {"user_id": "u12", "is_active": False}
    response = await client.post("/users/setIsActive", json=deactivate_data)
    assert response.status_code == 200
    assert response.json()["user"]["is_active"] is False
    assert response.json()["user"]["team_name"] == "support"

    response = await client.post("/users/setIsActive", json={"user_id": "ghost", "is_active": True})
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_get_user_reviews(client: AsyncClient):
    """E2E тест: получение PR'ов пользователя"""

    await add_team(client, "design", "u14", "u15")
    await create_pr(client, "pr-1004", "u14")

    response = await client.get("/users/getReview?user_id=u15")
    assert response.status_code == 200
    assert response.json()["user_id"] == "u15"
    assert [pr["pull_request_id"] for pr in response.json()["pull_requests"]] == ["pr-1004"]
    assert response.json()["pull_requests"][0]["status"] == "OPEN"

    response = await client.get("/users/getReview?user_id=ghost")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_team_deactivate(client: AsyncClient):
    """E2E тест: деактивация всей команды"""

    await add_team(client, "marketing", "u16", "u17", "u18")
    create_response = await create_pr(client, "pr-1005", "u16")
    reviewers = create_response.json()["pr"]["assigned_reviewers"]

    response = await client.post("/team/deactivate", json={"team_name": "marketing"})
    assert response.status_code == 200
    assert response.json()["deactivated_count"] == 3
    assert not any(m["is_active"] for m in response.json()["team"]["members"])

    # Назначенные ревьюверы остаются
    response = await client.get("/pullRequest/get?pull_request_id=pr-1005")
    assert response.json()["pr"]["assigned_reviewers"] == sorted(reviewers)

    response = await client.post("/team/deactivate", json={"team_name": "nonexistent"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_health_and_stats(client: AsyncClient):
    """E2E тест: health и статистика"""

    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}

    await add_team(client, "data", "u30", "u31", inactive=("u31",))
    await create_pr(client, "pr-2001", "u30")
    await create_pr(client, "pr-2002", "u30")
    await client.post("/pullRequest/merge", json={"pull_request_id": "pr-2001"})

    response = await client.get("/stats")
    assert response.status_code == 200
    assert response.json() == {
        "total_prs": 2,
        "open_prs": 1,
        "merged_prs": 1,
        "total_teams": 1,
        "total_users": 2,
        "active_users": 1,
    }


@pytest.mark.asyncio
async def test_request_id_is_echoed(client: AsyncClient):
    response = await client.get("/health", headers={"X-Request-ID": "req-42"})
    assert response.headers["X-Request-ID"] == "req-42"

    response = await client.get("/health")
    assert response.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_error_cases(client: AsyncClient):
    """E2E тест: обработка ошибок"""

    response = await client.get("/team/get?team_name=nonexistent")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"

    response = await client.post("/pullRequest/merge", json={"pull_request_id": "pr-9999"})
    assert response.status_code == 404

    response = await client.get("/pullRequest/get?pull_request_id=pr-9999")
    assert response.status_code == 404

    await add_team(client, "duplicate", "u19", "u40")
    response = await create_pr(client, "pr-duplicate", "u19")
    assert response.status_code == 201
    response = await create_pr(client, "pr-duplicate", "u19")
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "PR_EXISTS"

    response = await create_pr(client, "pr-orphan", "ghost")
    assert response.status_code == 404

    response = await client.post("/pullRequest/create", json={"pull_request_id": "pr-x", "author_id": "u19"})
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "BAD_REQUEST"

    response = await client.post("/team/add", json={"team_name": "", "members": []})
    assert response.status_code == 400

    response = await client.get("/team/get")
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_unexpected_fault_returns_json_500(client: AsyncClient, container, monkeypatch):
    """E2E тест: непредвиденная ошибка превращается в INTERNAL_ERROR 500 с JSON телом"""

    async def broken_merge(pull_request_id):
        raise RuntimeError("driver exploded")

    monkeypatch.setattr(container.pull_requests, "merge_pr", broken_merge)

    response = await client.post(
        "/pullRequest/merge",
        json={"pull_request_id": "pr-1"},
        headers={"X-Request-ID": "req-500"},
    )
    assert response.status_code == 500
    assert response.json() == {"error": {"code": "INTERNAL_ERROR", "message": "internal server error"}}
    assert response.headers["X-Request-ID"] == "req-500"

    response = await client.get("/health")
    assert response.status_code == 200


def test_module_level_app_exposes_routes():
    from main import app

    paths = {route.path for route in app.routes}
    assert {"/team/add", "/pullRequest/create", "/pullRequest/assign", "/health"} <= paths
