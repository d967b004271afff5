"""Tests for points, levels and reward unlocking."""

from datetime import UTC, datetime, timedelta

from calorie_vita.domain.rewards import ActivityType, UserLevel, UserProgress
from calorie_vita.services.rewards import (
    REWARD_CATALOGUE,
    RewardsService,
    apply_points,
    calculate_xp,
    check_for_new_rewards,
    level_for_points,
    level_progress,
    next_level,
    points_to_next_level,
)


def test_zero_points_is_beginner() -> None:
    assert level_for_points(0) is UserLevel.BEGINNER
    assert level_for_points(0).title == "Beginner"


def test_level_thresholds() -> None:
    assert level_for_points(499) is UserLevel.BEGINNER
    assert level_for_points(500) is UserLevel.ROOKIE
    assert level_for_points(2999) is UserLevel.ENTHUSIAST
    assert level_for_points(10000) is UserLevel.LEGEND
    assert level_for_points(10**7) is UserLevel.DEITY


def test_level_is_monotonic_in_points() -> None:
    levels = [level_for_points(points) for points in range(0, 120000, 250)]
    thresholds = [level.required_points for level in levels]

    assert thresholds == sorted(thresholds)
    assert level_for_points(3000) is level_for_points(3000)


def test_next_level_and_progress() -> None:
    assert next_level(UserLevel.ROOKIE) is UserLevel.ENTHUSIAST
    assert next_level(UserLevel.DEITY) is UserLevel.DEITY
    assert points_to_next_level(700, UserLevel.ROOKIE) == 800
    assert level_progress(1000, UserLevel.ROOKIE) == 0.5
    assert level_progress(200000, UserLevel.DEITY) == 1.0
    assert points_to_next_level(200000, UserLevel.DEITY) == 0


def test_calculate_xp_with_streak_multipliers() -> None:
    assert calculate_xp(ActivityType.MEAL_LOGGING) == 10
    assert calculate_xp(ActivityType.MEAL_LOGGING, streak_days=7) == 11
    assert calculate_xp(ActivityType.EXERCISE, streak_days=30) == 24
    assert calculate_xp(ActivityType.WEIGHT_CHECK_IN, streak_days=7) == 17
    assert calculate_xp(ActivityType.DAILY_GOAL_COMPLETION, streak_days=100) == 75
    assert calculate_xp(ActivityType.CALORIE_GOAL, streak_days=365) == 40


def test_calculate_xp_for_steps() -> None:
    assert calculate_xp(ActivityType.STEPS, {"steps": 999}) == 0
    assert calculate_xp(ActivityType.STEPS, {"steps": 8500}) == 40


def test_check_for_new_rewards_skips_unlocked() -> None:
    now = datetime(2024, 5, 1, tzinfo=UTC)
    first = check_for_new_rewards(
        UserProgress(), {"total_meals_logged": 12}, now=now
    )

    ids = [reward.id for reward in first]
    assert ids == ["first_meal", "meals_10"]
    assert all(reward.is_unlocked and reward.earned_at == now for reward in first)

    progress = UserProgress(unlocked_rewards=first)
    assert check_for_new_rewards(progress, {"total_meals_logged": 12}) == []


def test_catalogue_ids_are_unique() -> None:
    ids = [rule.reward.id for rule in REWARD_CATALOGUE]

    assert len(ids) == len(set(ids))


def test_apply_points_recomputes_level() -> None:
    progress = apply_points(UserProgress(total_points=480), 40)

    assert progress.total_points == 520
    assert progress.current_level is UserLevel.ROOKIE
    assert progress.points_to_next_level == 980


def test_process_activity_awards_xp_and_rewards(user_id, progress_repository) -> None:
    service = RewardsService(progress_repository)

    result = service.process_activity(
        user_id, ActivityType.STEPS, {"steps": 10000}, streak_days=7
    )

    assert result.xp_awarded == 55
    assert [reward.id for reward in result.new_rewards] == ["steps_10000", "streak_7"]
    assert result.progress.total_points == 55 + 100 + 100
    assert result.progress.current_streak == 7
    assert progress_repository.rewards[user_id] == result.new_rewards
    assert not result.leveled_up


def test_process_activity_levels_up_once(user_id, progress_repository) -> None:
    progress_repository.progress[user_id] = apply_points(UserProgress(), 495)
    service = RewardsService(progress_repository)

    result = service.process_activity(user_id, ActivityType.CALORIE_GOAL)
    repeat = service.process_activity(user_id, ActivityType.CALORIE_GOAL)

    assert result.leveled_up
    assert result.progress.current_level is UserLevel.ROOKIE
    assert not repeat.leveled_up
    assert service.get_progress(user_id).total_points == 535


def test_steps_xp_counts_only_added_steps() -> None:
    assert calculate_xp(ActivityType.STEPS, {"steps": 10000, "steps_added": 2000}) == 10
    assert calculate_xp(ActivityType.STEPS, {"steps": 10000, "steps_added": 0}) == 0


def test_meal_logging_counts_lifetime_meals(user_id, progress_repository) -> None:
    progress_repository.progress[user_id] = UserProgress(meals_logged=9)
    service = RewardsService(progress_repository)

    result = service.process_activity(user_id, ActivityType.MEAL_LOGGING)

    assert result.progress.meals_logged == 10
    assert [reward.id for reward in result.new_rewards] == ["first_meal", "meals_10"]
    assert result.progress.total_points == 10 + 50 + 50


def test_activity_limit_per_hour(user_id, progress_repository) -> None:
    service = RewardsService(progress_repository, max_per_hour=3)
    start = datetime(2024, 5, 1, 9, tzinfo=UTC)

    accepted = [
        service.process_activity(
            user_id, ActivityType.WATER_INTAKE, now=start + timedelta(minutes=i)
        )
        for i in range(5)
    ]
    later = service.process_activity(
        user_id, ActivityType.WATER_INTAKE, now=start + timedelta(minutes=61)
    )
    other = service.process_activity(
        user_id, ActivityType.CALORIE_GOAL, now=start + timedelta(minutes=5)
    )

    assert [result.accepted for result in accepted] == [True, True, True, False, False]
    assert accepted[4].xp_awarded == 0
    assert later.accepted
    assert other.accepted
    assert service.get_progress(user_id).total_points == 5 * 4 + 20


def test_oversized_exercise_session_rejected(user_id, progress_repository) -> None:
    service = RewardsService(progress_repository)

    result = service.process_activity(
        user_id, ActivityType.EXERCISE, {"session_calories": 6000}
    )

    assert not result.accepted
    assert user_id not in progress_repository.progress
