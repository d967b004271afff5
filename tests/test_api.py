"""Tests for the HTTP API."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

from fastapi.testclient import TestClient

from calorie_vita.api.app import create_app
from calorie_vita.domain.fitness import HealthTodayData, WorkoutSession
from calorie_vita.domain.summaries import DailySummary

HEADERS = {"X-Api-Token": "api-token"}


def _today():
    return datetime.now(tz=UTC).date()


def test_health_endpoint_is_public(container) -> None:
    client = TestClient(create_app(container))

    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_user_routes_require_token(container) -> None:
    client = TestClient(create_app(container))
    user_id = uuid4()

    missing = client.get(f"/users/{user_id}/analytics")
    wrong = client.get(f"/users/{user_id}/analytics", headers={"X-Api-Token": "nope"})

    assert missing.status_code == 401
    assert wrong.status_code == 401


def test_initialize_then_read_cards(
    container, analytics_repository, bridge_client
) -> None:
    client = TestClient(create_app(container))
    user_id = uuid4()
    analytics_repository.summaries.append(
        DailySummary(date=_today(), calories_consumed=1800, steps=2000)
    )
    bridge_client.steps_by_day[_today()] = 6500

    initialized = client.post(
        f"/users/{user_id}/analytics/initialize?days=7", headers=HEADERS
    )
    cards = client.get(
        f"/users/{user_id}/analytics/cards?period=weekly", headers=HEADERS
    )
    state = client.get(f"/users/{user_id}/analytics", headers=HEADERS)

    assert initialized.status_code == 200
    assert len(initialized.json()["daily_summaries"]) == 7
    assert cards.json()["calories_consumed"] == 1800
    assert cards.json()["steps"] == 6500
    assert cards.json()["period"] == "weekly"
    assert state.json()["days"] == 7
    assert [r["title"] for r in state.json()["recommendations"]] == ["Boost Protein"]


def test_period_change_and_refresh(container) -> None:
    client = TestClient(create_app(container))
    user_id = uuid4()

    client.post(f"/users/{user_id}/analytics/initialize", headers=HEADERS)
    changed = client.post(f"/users/{user_id}/analytics/period?days=30", headers=HEADERS)
    refreshed = client.post(f"/users/{user_id}/analytics/refresh", headers=HEADERS)
    invalid = client.post(f"/users/{user_id}/analytics/period?days=0", headers=HEADERS)

    assert len(changed.json()["daily_summaries"]) == 30
    assert refreshed.json()["days"] == 30
    assert invalid.status_code == 422


def test_unknown_period_rejected(container) -> None:
    client = TestClient(create_app(container))

    response = client.get(
        f"/users/{uuid4()}/analytics/cards?period=yearly", headers=HEADERS
    )

    assert response.status_code == 422


def test_ai_insights_endpoint(container, insights_client, analytics_repository) -> None:
    client = TestClient(create_app(container))
    user_id = uuid4()
    analytics_repository.profile = {"goal": "gain muscle"}
    client.post(f"/users/{user_id}/analytics/initialize", headers=HEADERS)

    first = client.get(f"/users/{user_id}/analytics/insights/ai", headers=HEADERS)
    second = client.get(f"/users/{user_id}/analytics/insights/ai", headers=HEADERS)

    assert first.status_code == 200
    assert first.json()["text"].startswith("Solid week overall.")
    assert second.json()["cached"] is True
    assert len(insights_client.prompts) == 1
    assert "gain muscle" in insights_client.prompts[0]


def test_ai_insights_degraded_on_failure(container, insights_client) -> None:
    client = TestClient(create_app(container))
    insights_client.fail = True

    response = client.get(
        f"/users/{uuid4()}/analytics/insights/ai?period=daily", headers=HEADERS
    )

    assert response.status_code == 200
    assert response.json()["degraded"] is True


def test_summary_writes(container, summary_repository) -> None:
    client = TestClient(create_app(container))
    user_id = uuid4()

    water = client.post(
        f"/users/{user_id}/summary/water", json={"glasses": 8}, headers=HEADERS
    )
    steps = client.post(
        f"/users/{user_id}/summary/steps", json={"steps": 10000}, headers=HEADERS
    )
    exercise = client.post(
        f"/users/{user_id}/summary/exercise",
        json={"calories_burned": 300, "duration_minutes": 40, "exercise_type": "run"},
        headers=HEADERS,
    )
    today = client.get(f"/users/{user_id}/summary/today", headers=HEADERS)

    assert water.status_code == 200
    assert water.json()["new_rewards"][0]["id"] == "water_warrior"
    assert steps.json()["summary"]["steps"] == 10000
    assert exercise.json()["summary"]["calories_burned"] == 300
    assert today.json()["water_glasses"] == 8
    assert today.json()["exercise_minutes"] == 40


def test_summary_write_validation(container) -> None:
    client = TestClient(create_app(container))
    user_id = uuid4()

    too_much = client.post(
        f"/users/{user_id}/summary/water", json={"glasses": 51}, headers=HEADERS
    )
    bad_timezone = client.get(
        f"/users/{user_id}/summary/today?timezone=Mars/Olympus", headers=HEADERS
    )

    assert too_much.status_code == 422
    assert "Invalid water intake" in too_much.json()["detail"]
    assert bad_timezone.status_code == 422


def test_streaks_and_progress(container, summary_repository) -> None:
    client = TestClient(create_app(container))
    user_id = uuid4()
    summary_repository.summaries[(user_id, _today())] = DailySummary(
        date=_today(), calories_consumed=2100
    )

    evaluated = client.post(f"/users/{user_id}/streaks/evaluate", headers=HEADERS)
    streaks = client.get(f"/users/{user_id}/streaks", headers=HEADERS)
    progress = client.get(f"/users/{user_id}/progress", headers=HEADERS)

    assert evaluated.status_code == 200
    calorie = streaks.json()["goal_streaks"]["calorie_goal"]
    assert calorie["current_streak"] == 1
    assert calorie["achieved_today"] is True
    assert progress.json()["current_level"] == "Beginner"


def test_health_today(container, bridge_client) -> None:
    client = TestClient(create_app(container))
    bridge_client.today = HealthTodayData(steps=4321, calories_burned=210.0)

    response = client.get(f"/users/{uuid4()}/health/today", headers=HEADERS)

    assert response.json()["connected"] is True
    assert response.json()["steps"] == 4321


def test_health_today_with_broken_bridge(container, bridge_client) -> None:
    client = TestClient(create_app(container))
    bridge_client.fail = True

    response = client.get(f"/users/{uuid4()}/health/today", headers=HEADERS)

    assert response.status_code == 200
    assert response.json() == {
        "connected": False,
        "steps": 0,
        "calories_burned": 0.0,
        "workout_sessions": 0,
        "workout_duration_minutes": 0.0,
    }


def test_body_and_meal_writes(container, summary_repository) -> None:
    client = TestClient(create_app(container))
    user_id = uuid4()

    meal = client.post(
        f"/users/{user_id}/summary/meals",
        json={"name": "Oatmeal", "calories": 350, "protein": 12},
        headers=HEADERS,
    )
    weight = client.post(
        f"/users/{user_id}/summary/weight",
        json={"weight_kg": 72.5, "bmi": 23.1},
        headers=HEADERS,
    )
    sleep = client.post(
        f"/users/{user_id}/summary/sleep", json={"hours": 7.5}, headers=HEADERS
    )
    bad_meal = client.post(
        f"/users/{user_id}/summary/meals",
        json={"name": " ", "calories": 100},
        headers=HEADERS,
    )

    assert meal.status_code == 200
    assert meal.json()["summary"]["calories_consumed"] == 350
    assert meal.json()["summary"]["meals_logged"] == 1
    assert "first_meal" in [r["id"] for r in meal.json()["new_rewards"]]
    assert summary_repository.food_entries[0].macros.protein == 12
    assert weight.json()["summary"]["weight_kg"] == 72.5
    assert weight.json()["xp_awarded"] > 0
    assert sleep.json()["summary"]["sleep_hours"] == 7.5
    assert bad_meal.status_code == 422


def test_update_goals_endpoint(container, summary_repository) -> None:
    client = TestClient(create_app(container))
    user_id = uuid4()

    updated = client.put(
        f"/users/{user_id}/goals",
        json={"calories_goal": 2400, "steps_goal": 12000, "water_glasses_goal": 10},
        headers=HEADERS,
    )
    invalid = client.put(
        f"/users/{user_id}/goals",
        json={"calories_goal": 100, "steps_goal": 12000, "water_glasses_goal": 10},
        headers=HEADERS,
    )

    assert updated.status_code == 200
    assert updated.json()["summary"]["calories_goal"] == 2400
    assert summary_repository.goals.steps_goal == 12000
    assert invalid.status_code == 422


def test_manual_streak_marks_and_reset(container, streak_repository) -> None:
    client = TestClient(create_app(container))
    user_id = uuid4()

    achieved = client.post(
        f"/users/{user_id}/streaks/sleep/achieved", headers=HEADERS
    )
    missed = client.post(f"/users/{user_id}/streaks/sleep/missed", headers=HEADERS)
    unknown = client.post(f"/users/{user_id}/streaks/naps/achieved", headers=HEADERS)
    client.post(f"/users/{user_id}/streaks/exercise/achieved", headers=HEADERS)
    reset = client.delete(f"/users/{user_id}/streaks", headers=HEADERS)

    assert achieved.json()["goal_streaks"]["sleep"]["current_streak"] == 1
    assert achieved.json()["goal_streaks"]["sleep"]["achieved_today"] is True
    assert missed.json()["goal_streaks"]["sleep"]["achieved_today"] is False
    assert unknown.status_code == 422
    assert reset.status_code == 200
    assert reset.json()["goal_streaks"]["exercise"]["current_streak"] == 0
    assert user_id not in streak_repository.streaks


def test_health_weekly_and_workouts(container, bridge_client) -> None:
    client = TestClient(create_app(container))
    user_id = uuid4()
    bridge_client.steps_by_day[_today()] = 7000
    start = datetime.now(tz=UTC).replace(microsecond=0)
    bridge_client.workouts = [
        WorkoutSession(start=start, end=start + timedelta(minutes=45))
    ]

    weekly = client.get(f"/users/{user_id}/health/weekly?timezone=UTC", headers=HEADERS)
    workouts = client.get(f"/users/{user_id}/health/workouts", headers=HEADERS)

    assert weekly.status_code == 200
    assert len(weekly.json()["snapshots"]) == 7
    assert weekly.json()["total_steps"] == 7000
    assert "average_activity_level" in weekly.json()
    assert workouts.json()[0]["duration_minutes"] == 45.0


def test_clear_ai_insights(container, insights_client) -> None:
    client = TestClient(create_app(container))
    user_id = uuid4()
    client.get(f"/users/{user_id}/analytics/insights/ai", headers=HEADERS)

    cleared = client.delete(f"/users/{user_id}/analytics/insights/ai", headers=HEADERS)
    again = client.get(f"/users/{user_id}/analytics/insights/ai", headers=HEADERS)

    assert cleared.json() == {"invalidated": 1}
    assert again.json()["cached"] is False
    assert len(insights_client.prompts) == 2
