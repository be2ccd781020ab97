import csv
import io

import pytest

from game_analytics.models import Game, PlayLog


def _create_game(client, **payload):
    response = client.post("/api/games", json=payload)
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def _create_reference_library(client):
    _create_game(
        client,
        name="A",
        hours=10,
        price=20,
        genre="RPG",
        platform="PC",
        purchaseSource="Steam",
        datePurchased="2023-05-01",
        status="In Progress",
    )
    _create_game(
        client,
        name="B",
        hours=5,
        price=50,
        platform="PS5",
        status="Completed",
        startDate="2024-01-01",
        endDate="2024-01-05",
        playLogs=[{"date": "2024-01-02", "hours": 5}],
    )
    _create_game(client, name="C", price=30, status="Wishlist")


def test_create_and_fetch_game(client):
    created = _create_game(
        client, title="Hades", price="24.99", status="in_progress", datePurchased="2024-01-01"
    )

    assert created["name"] == "Hades"
    assert created["status"] == "In Progress"
    assert created["price"] == pytest.approx(24.99)
    assert created["date_purchased"] == "2024-01-01"

    response = client.get(f"/api/games/{created['id']}")
    assert response.status_code == 200
    assert response.get_json()["name"] == "Hades"


def test_create_game_validation(client):
    missing_name = client.post("/api/games", json={"price": 10})
    assert missing_name.status_code == 400
    assert "name" in missing_name.get_json()["error"]

    bad_status = client.post("/api/games", json={"name": "Odd", "status": "Shelved"})
    assert bad_status.status_code == 400

    bad_date = client.post("/api/games", json={"name": "Odd", "datePurchased": "someday"})
    assert bad_date.status_code == 400


def test_unknown_game_returns_404(client):
    assert client.get("/api/games/999").status_code == 404
    assert client.delete("/api/games/999").status_code == 404
    assert client.get("/api/analytics/games/999/metrics").status_code == 404


def test_list_games_filters_by_status(client):
    _create_reference_library(client)

    everything = client.get("/api/games").get_json()
    wishlist = client.get("/api/games?status=Wishlist").get_json()

    assert [game["name"] for game in everything] == ["A", "B", "C"]
    assert [game["name"] for game in wishlist] == ["C"]


def test_update_game_merges_changes(client):
    created = _create_game(
        client, name="Celeste", price=20, playLogs=[{"date": "2024-01-01", "hours": 2}]
    )

    response = client.put(
        f"/api/games/{created['id']}", json={"status": "Completed", "rating": 9}
    )

    assert response.status_code == 200
    updated = response.get_json()
    assert updated["status"] == "Completed"
    assert updated["rating"] == 9
    assert updated["price"] == 20
    assert len(updated["play_logs"]) == 1

    rejected = client.put(f"/api/games/{created['id']}", json={"status": "Shelved"})
    assert rejected.status_code == 400


def test_delete_game_removes_logs(client, app_instance):
    created = _create_game(
        client, name="Celeste", playLogs=[{"date": "2024-01-01", "hours": 2}]
    )

    response = client.delete(f"/api/games/{created['id']}")

    assert response.status_code == 200
    with app_instance.app_context():
        assert Game.query.count() == 0
        assert PlayLog.query.count() == 0


def test_add_and_delete_play_log(client):
    created = _create_game(client, name="Celeste", hours=3)

    response = client.post(
        f"/api/games/{created['id']}/logs", json={"date": "2024-02-01", "hours": 1.5}
    )
    assert response.status_code == 201
    data = response.get_json()
    assert data["log"]["date"] == "2024-02-01"
    assert len(data["game"]["play_logs"]) == 1

    zero = client.post(f"/api/games/{created['id']}/logs", json={"date": "2024-02-01", "hours": 0})
    assert zero.status_code == 400
    undated = client.post(f"/api/games/{created['id']}/logs", json={"hours": 1})
    assert undated.status_code == 400

    deleted = client.delete(f"/api/games/{created['id']}/logs/{data['log']['id']}")
    assert deleted.status_code == 200
    assert client.get(f"/api/games/{created['id']}").get_json()["play_logs"] == []


def test_summary_endpoint(client):
    _create_reference_library(client)

    response = client.get("/api/analytics/summary?today=2024-02-15")

    assert response.status_code == 200
    data = response.get_json()
    summary = data["summary"]
    assert summary["total_spent"] == pytest.approx(70)
    assert summary["total_hours"] == pytest.approx(20)
    assert summary["average_cost_per_hour"] == pytest.approx(3.5)
    assert summary["completion_rate"] == pytest.approx(50)
    assert summary["best_value"]["name"] == "A"
    assert data["hours_by_month"] == {"2024-01": 5}
    assert len(data["monthly_trends"]) == 12


def test_game_metrics_endpoint(client):
    _create_reference_library(client)
    game_id = client.get("/api/games?status=Completed").get_json()[0]["id"]

    response = client.get(f"/api/analytics/games/{game_id}/metrics?today=2024-02-01")

    assert response.status_code == 200
    data = response.get_json()
    assert data["metrics"]["total_hours"] == pytest.approx(10)
    assert data["metrics"]["value_rating"] == "Fair"
    assert data["completion_probability"]["probability"] == 100
    assert [point["date"] for point in data["value_over_time"]] == ["2024-01-02"]


def test_week_endpoint(client):
    created = _create_game(
        client,
        name="Astra",
        genre="RPG",
        price=40,
        status="In Progress",
        playLogs=[
            {"date": "2024-01-02", "hours": 3},
            {"date": "2024-01-08", "hours": 2},
            {"date": "2024-01-13", "hours": 4},
        ],
    )

    response = client.get("/api/analytics/week?today=2024-01-10")

    assert response.status_code == 200
    data = response.get_json()
    review = data["review"]
    assert review["window"] == {"start": "2024-01-08", "end": "2024-01-14"}
    assert review["total_hours"] == pytest.approx(6)
    assert review["top_game"]["game"]["id"] == str(created["id"])
    assert data["available_weeks"] == 2

    previous = client.get("/api/analytics/week?today=2024-01-10&offset=1").get_json()
    assert previous["review"]["total_hours"] == pytest.approx(3)

    assert client.get("/api/analytics/week?offset=-1").status_code == 400
    assert client.get("/api/analytics/week?today=not-a-date").status_code == 400


def test_period_and_streak_endpoints(client):
    _create_game(
        client,
        name="Loop",
        playLogs=[
            {"date": "2024-01-01", "hours": 1},
            {"date": "2024-01-02", "hours": 2},
            {"date": "2024-01-03", "hours": 1},
        ],
    )

    period = client.get("/api/analytics/period?start=2024-01-02&end=2024-01-03").get_json()
    assert period["current"]["total_hours"] == pytest.approx(3)
    assert period["previous"]["total_hours"] == pytest.approx(1)
    assert period["comparison"]["trend"] == "up"

    streaks = client.get("/api/analytics/streaks?today=2024-01-03").get_json()
    assert streaks["current"] == 3
    assert streaks["longest"] == 3

    missing_end = client.get("/api/analytics/period?start=2024-01-02")
    assert missing_end.status_code == 400


def test_hours_counter_rejects_unknown_resolution(client):
    response = client.get("/api/analytics/hours-counter?resolution=hourly")

    assert response.status_code == 400
    assert "resolution" in response.get_json()["error"].lower()


def test_insight_and_highlight_endpoints_on_empty_library(client):
    insights = client.get("/api/analytics/insights?today=2024-01-01")
    highlights = client.get("/api/analytics/highlights?today=2024-01-01")

    assert insights.status_code == 200
    assert insights.get_json()["personality"]["type"] == "Balanced Gamer"
    assert highlights.status_code == 200
    assert len(highlights.get_json()["achievements"]) == 10
    assert client.get("/api/analytics/activity").get_json()["total"] == 0
    assert client.get("/api/analytics/year/2024").get_json()["status"] == "empty"


def test_purge_data_requires_confirmation(client):
    response = client.post("/api/settings/purge-data", json={"confirm": "nope"})
    assert response.status_code == 400
    assert "DELETE" in response.get_json()["error"]


def test_purge_data_deletes_all_tables(client, app_instance):
    _create_reference_library(client)
    with app_instance.app_context():
        assert Game.query.count() == 3
        assert PlayLog.query.count() == 1

    response = client.post("/api/settings/purge-data", json={"confirm": "DELETE"})
    assert response.status_code == 200
    data = response.get_json()
    assert data["deleted"] == {"play_logs": 1, "games": 3}
    assert data["total_deleted"] == 4

    with app_instance.app_context():
        assert Game.query.count() == 0
        assert PlayLog.query.count() == 0


def test_settings_options_lists_form_choices(client):
    data = client.get("/api/settings/options").get_json()

    assert [status["value"] for status in data["statuses"]] == [
        "Not Started",
        "In Progress",
        "Completed",
        "Abandoned",
        "Wishlist",
    ]
    assert data["statuses"][-1]["owned"] is False
    assert "Steam" in data["purchase_sources"]
    assert "Game Pass" in data["subscription_sources"]


def test_out_of_range_dates_return_400(client):
    assert client.get("/api/analytics/year/10000").status_code == 400
    assert client.get("/api/analytics/week?today=2024-01-10&offset=99999999").status_code == 400
    assert client.get("/api/analytics/period?days=999999999").status_code == 400
    assert client.get("/api/analytics/period?days=99999999999").status_code == 400
    assert client.get("/api/analytics/month?year=10000&month=1").status_code == 400

    earliest = client.get("/api/analytics/period?start=0001-01-01&end=0001-01-02")
    assert earliest.status_code == 400
    assert "error" in earliest.get_json()


def test_configured_thresholds_reach_insights_and_highlights(client, app_instance):
    _create_reference_library(client)
    _create_game(client, name="Unopened", price=15, status="Not Started")

    default_money = client.get("/api/analytics/insights?today=2024-02-15").get_json()["money"]
    assert default_money["break_even_hours_needed"] == pytest.approx(85 / 2 - 20)

    app_instance.config["ANALYTICS_THRESHOLDS"] = {
        "target_cost_per_hour": 5,
        "estimated_hours_per_game": 24,
    }

    money = client.get("/api/analytics/insights?today=2024-02-15").get_json()["money"]
    highlights = client.get("/api/analytics/highlights?today=2024-02-15").get_json()
    assert money["break_even_hours_needed"] == 0
    assert highlights["backlog_in_days"] == pytest.approx(1.0)


def test_export_games_csv(client):
    _create_reference_library(client)
    _create_game(client, name="Papers, Please", price=10, notes='Say "Glory"')

    response = client.get("/api/export/games.csv")

    assert response.status_code == 200
    assert response.mimetype == "text/csv"
    assert response.headers["Content-Disposition"] == "attachment; filename=games.csv"
    rows = list(csv.reader(io.StringIO(response.get_data(as_text=True))))
    assert rows[0][:4] == ["Name", "Status", "Price", "Total Hours"]
    assert len(rows) == 5
    by_name = {row[0]: row for row in rows[1:]}
    assert by_name["B"][2:4] == ["50.00", "10.0"]
    assert by_name["B"][12:14] == ["5.00", "Fair"]
    assert by_name["B"][16] == "1"
    assert by_name["Papers, Please"][17] == 'Say "Glory"'


def test_export_games_json(client):
    _create_reference_library(client)

    response = client.get("/api/export/games.json")

    assert response.status_code == 200
    assert response.headers["Content-Disposition"] == "attachment; filename=games.json"
    data = response.get_json()
    assert data["game_count"] == 3
    assert data["exported_at"]
    game_b = next(game for game in data["games"] if game["name"] == "B")
    assert game_b["total_hours"] == pytest.approx(10)
    assert game_b["baseline_hours"] == pytest.approx(5)
    assert game_b["play_logs"][0]["date"] == "2024-01-02"
    assert game_b["metrics"]["value_rating"] == "Fair"
    assert game_b["metrics"]["days_to_complete"] == 4


def test_export_play_logs_csv_lists_newest_first(client):
    _create_game(
        client,
        name="Loop",
        playLogs=[{"date": "2024-01-01", "hours": 1}, {"date": "2024-01-02", "hours": 2}],
    )
    _create_game(
        client,
        name="Astra",
        genre="RPG",
        platform="PC",
        playLogs=[{"date": "2024-01-02", "hours": 4.5}],
    )

    response = client.get("/api/export/play-logs.csv")

    assert response.status_code == 200
    assert response.headers["Content-Disposition"] == "attachment; filename=play-logs.csv"
    rows = list(csv.reader(io.StringIO(response.get_data(as_text=True))))
    assert rows == [
        ["Date", "Game", "Hours", "Notes", "Genre", "Platform"],
        ["2024-01-02", "Loop", "2.0", "", "", ""],
        ["2024-01-02", "Astra", "4.5", "", "RPG", "PC"],
        ["2024-01-01", "Loop", "1.0", "", "", ""],
    ]
