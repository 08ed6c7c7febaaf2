import h3
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from territory_fakes import create_user, seed_board

from db.models import Activity, HexInfluence, HexLeaderboard
from territory import router as territory_router
from territory.dependencies import build_engine, get_engine
from users.routes import router as users_router


def _build_app() -> FastAPI:
    app = FastAPI()
    app.include_router(territory_router)
    app.include_router(users_router)
    engine = build_engine()
    app.dependency_overrides[get_engine] = lambda: engine
    return app


@pytest.mark.asyncio
async def test_create_activity_and_read_back(beanie_db, krakow_cells: list[str]) -> None:
    client = TestClient(_build_app())
    user = client.post(
        "/api/v1/users",
        json={"external_user_id": "auth0|runner", "username": "runner"},
    ).json()

    resp = client.post(
        "/api/v1/activities",
        json={
            "user_id": user["user_id"],
            "duration": 1200,
            "distance": 3100.5,
            "h3_indexes": [krakow_cells[0], h3.str_to_int(krakow_cells[1])],
        },
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["user_id"] == user["user_id"]
    assert body["h3_indexes"] == krakow_cells[:2]
    assert body["cells_processed"] == 2
    assert body["warnings"] == []
    assert await Activity.find_all().count() == 1

    rank = client.get(
        f"/api/v1/leaderboards/{krakow_cells[0]}/rank",
        params={"user_id": user["user_id"]},
    )
    assert rank.status_code == 200
    assert rank.json()["rank"] == 1

    stats = client.get("/api/v1/activities/stats", params={"user_id": user["user_id"]})
    assert stats.status_code == 200
    assert stats.json()["activities_recorded"] == 1
    assert stats.json()["hexes_visited"] == 2
    assert stats.json()["distance_covered"] == pytest.approx(3100.5)
    assert len(stats.json()["weekly_activities"]) == 7

    top = client.get("/api/v1/leaderboards/global").json()["leaderboard"]
    assert top == [{"user_id": user["user_id"], "username": "runner", "top_count": 2}]


@pytest.mark.asyncio
async def test_create_activity_validation_errors(beanie_db, krakow_cell: str) -> None:
    client = TestClient(_build_app())

    missing_user = client.post(
        "/api/v1/activities",
        json={"duration": 10, "distance": 10, "h3_indexes": [krakow_cell]},
    )
    assert missing_user.status_code == 400
    assert missing_user.json()["detail"] == "user_id is required"

    wrong_res = client.post(
        "/api/v1/activities",
        json={
            "user_id": "5a0c5a3e-6c1d-4c8e-9f00-000000000001",
            "duration": 10,
            "distance": 10,
            "h3_indexes": [h3.cell_to_parent(krakow_cell, 8)],
        },
    )
    assert wrong_res.status_code == 400
    assert "not at resolution 9" in wrong_res.json()["detail"]


@pytest.mark.asyncio
async def test_create_activity_rejects_nan(beanie_db, krakow_cell: str) -> None:
    user = await create_user("runner")
    client = TestClient(_build_app())

    # Python's json module reads the bare NaN token.
    resp = client.post(
        "/api/v1/activities",
        content=(
            f'{{"user_id": "{user.user_id}", "duration": NaN, '
            f'"distance": 10, "h3_indexes": ["{krakow_cell}"]}}'
        ),
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 400
    assert resp.json()["detail"] == "duration must be positive"
    assert await Activity.find_all().count() == 0
    assert await HexInfluence.find_all().count() == 0


@pytest.mark.asyncio
async def test_create_activity_unknown_user(beanie_db, krakow_cell: str) -> None:
    client = TestClient(_build_app())

    resp = client.post(
        "/api/v1/activities",
        json={
            "user_id": "5a0c5a3e-6c1d-4c8e-9f00-000000000001",
            "duration": 10,
            "distance": 10,
            "h3_indexes": [krakow_cell],
        },
    )

    assert resp.status_code == 404
    assert await Activity.find_all().count() == 0


@pytest.mark.asyncio
async def test_region_leaderboards_endpoint(
    beanie_db,
    krakow_cell: str,
    far_cell: str,
) -> None:
    runner = await create_user("runner")
    await seed_board(krakow_cell, (runner, 2.0))
    await seed_board(far_cell, (runner, 1.0))
    lat, lng = h3.cell_to_latlng(krakow_cell)
    client = TestClient(_build_app())

    resp = client.get(
        "/api/v1/leaderboards/bbox",
        params={
            "min_lat": lat - 0.0001,
            "min_lng": lng - 0.0001,
            "max_lat": lat + 0.0001,
            "max_lng": lng + 0.0001,
        },
    )

    assert resp.status_code == 200
    boards = resp.json()["leaderboards"]
    assert [board["h3_index"] for board in boards] == [krakow_cell]
    stored = await HexLeaderboard.find_one(HexLeaderboard.h3_index == krakow_cell)
    assert stored is not None
    assert boards[0]["id"] == str(stored.id)
    assert boards[0]["top_users"] == [
        {"user_id": runner.user_id, "username": "runner", "score": 2.0},
    ]


@pytest.mark.asyncio
async def test_region_leaderboards_rejects_degenerate_box(beanie_db) -> None:
    client = TestClient(_build_app())

    resp = client.get(
        "/api/v1/leaderboards/bbox",
        params={"min_lat": 50.0, "min_lng": 19.9, "max_lat": 50.0, "max_lng": 20.0},
    )

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_rank_for_absent_user_is_null(beanie_db, krakow_cell: str) -> None:
    client = TestClient(_build_app())

    resp = client.get(
        f"/api/v1/leaderboards/{krakow_cell}/rank",
        params={"user_id": "5a0c5a3e-6c1d-4c8e-9f00-000000000001"},
    )

    assert resp.status_code == 200
    assert resp.json()["rank"] is None


@pytest.mark.asyncio
async def test_global_leaderboard_limit_bounds(beanie_db) -> None:
    client = TestClient(_build_app())
    assert client.get("/api/v1/leaderboards/global", params={"limit": 0}).status_code == 422
    assert client.get("/api/v1/leaderboards/global", params={"limit": 5}).status_code == 200


def test_track_endpoint() -> None:
    client = TestClient(_build_app())

    resp = client.post(
        "/api/v1/hexes/track",
        json={"coordinates": [[19.9366, 50.0614], [19.9400, 50.0614]]},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["resolution"] == 9
    assert body["h3_indexes"][0] == h3.latlng_to_cell(50.0614, 19.9366, 9)

    empty = client.post("/api/v1/hexes/track", json={"coordinates": []})
    assert empty.status_code == 400


@pytest.mark.asyncio
async def test_user_routes(beanie_db) -> None:
    client = TestClient(_build_app())

    created = client.post(
        "/api/v1/users",
        json={"external_user_id": "auth0|abc", "username": "runner"},
    )
    assert created.status_code == 200
    user_id = created.json()["user_id"]

    assert client.get(f"/api/v1/users/{user_id}").json()["username"] == "runner"
    assert client.get("/api/v1/users/by-username/runner").json()["user_id"] == user_id
    assert client.get("/api/v1/users/by-username/ghost").status_code == 404
    assert client.post(
        "/api/v1/users",
        json={"external_user_id": "auth0|abc", "username": ""},
    ).status_code == 400
