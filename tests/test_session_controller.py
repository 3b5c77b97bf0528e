"""Tests for in-progress tally state, session completion and statistics."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from tasbeeh.services.session_controller import EmptySessionError, InvariantViolation

TODAY = date(2026, 10, 17)


def _stat_totals(controller) -> dict[date, int]:
    return {stat.date: stat.total_count for stat in controller.stats}


class TestIncrement:
    def test_each_increment_is_persisted(self, controller, local_store):
        counter = controller.active_counter

        for expected in range(1, 8):
            assert controller.increment() == expected
            assert controller.current_count == expected
            assert local_store.get_active_session(counter.id).count == expected

    def test_increment_keeps_goal_in_snapshot(self, controller, local_store):
        controller.set_goal(33)
        controller.increment()

        snapshot = local_store.get_active_session(controller.active_counter.id)
        assert (snapshot.count, snapshot.goal) == (1, 33)


class TestGoal:
    def test_set_and_remove_goal(self, controller, local_store):
        controller.set_goal(100)
        assert controller.current_goal == 100
        assert local_store.get_active_session(controller.active_counter.id).goal == 100

        controller.set_goal(None)
        assert controller.current_goal is None
        assert local_store.get_active_session(controller.active_counter.id).goal is None

    def test_non_positive_goal_rejected(self, controller):
        controller.set_goal(10)

        with pytest.raises(InvariantViolation):
            controller.set_goal(0)
        assert controller.current_goal == 10


class TestReset:
    def test_reset_clears_state_and_snapshot(self, controller, local_store):
        controller.set_goal(10)
        controller.increment()

        controller.reset()

        assert (controller.current_count, controller.current_goal) == (0, None)
        assert local_store.get_active_session(controller.active_counter.id) is None


class TestSwitchActiveCounter:
    def test_switching_back_restores_progress(self, controller):
        first, second = controller.counters[0], controller.counters[1]
        for _ in range(5):
            controller.increment()
        controller.set_goal(10)

        controller.switch_active_counter(second)
        assert (controller.current_count, controller.current_goal) == (0, None)

        controller.switch_active_counter(first)
        assert (controller.current_count, controller.current_goal) == (5, 10)

    def test_progress_does_not_bleed_between_counters(self, controller):
        first, second, third = controller.counters
        controller.increment()
        controller.increment()

        controller.switch_active_counter(second)
        controller.increment()

        controller.switch_active_counter(third)
        assert controller.current_count == 0

        controller.switch_active_counter(second)
        assert controller.current_count == 1
        controller.switch_active_counter(first)
        assert controller.current_count == 2

    def test_progress_survives_a_restart(self, controller, make_controller, guest):
        second = controller.counters[1]
        controller.switch_active_counter(second)
        controller.increment()
        controller.increment()
        controller.set_goal(7)

        restarted = make_controller()
        restarted.initialize(guest, active_counter_id=second.id)

        assert restarted.active_counter.id == second.id
        assert (restarted.current_count, restarted.current_goal) == (2, 7)


class TestCompleteSession:
    def test_without_goal_is_not_completed(self, controller, clock):
        for _ in range(7):
            controller.increment()
        earlier = controller.save_session_manually({"counter_id": controller.active_counter.id, "count": 1})

        session = controller.complete_session()

        assert session.count == 7
        assert session.goal is None
        assert session.completed is False
        assert session.date == clock.now
        assert controller.sessions[0].id == session.id
        assert controller.sessions[1].id == earlier.id
        assert (controller.current_count, controller.current_goal) == (0, None)

    def test_goal_reached_is_completed(self, controller):
        controller.set_goal(33)
        for _ in range(33):
            controller.increment()

        session = controller.complete_session()

        assert session.completed is True
        assert session.goal == 33

    def test_goal_missed_is_not_completed(self, controller):
        controller.set_goal(33)
        for _ in range(10):
            controller.increment()

        assert controller.complete_session().completed is False

    def test_completion_is_persisted_and_snapshot_cleared(self, controller, local_store):
        controller.increment()
        counter_id = controller.active_counter.id

        session = controller.complete_session()

        assert [s.id for s in local_store.get_sessions()] == [session.id]
        assert local_store.get_active_session(counter_id) is None

    def test_zero_count_is_rejected_without_changes(self, controller, local_store):
        with pytest.raises(EmptySessionError):
            controller.complete_session()

        assert controller.sessions == []
        assert local_store.get_stats() == []

    def test_no_active_counter_is_noop(self, make_controller):
        fresh = make_controller()

        assert fresh.complete_session() is None
        assert fresh.sessions == []


class TestDailyStats:
    def _complete(self, controller, count: int):
        for _ in range(count):
            controller.increment()
        return controller.complete_session()

    def test_two_sessions_fold_into_one_row_and_unwind(self, controller, local_store):
        ten = self._complete(controller, 10)
        fifteen = self._complete(controller, 15)

        assert _stat_totals(controller) == {TODAY: 25}
        assert len(local_store.get_stats()) == 1

        controller.delete_session(ten.id)
        assert _stat_totals(controller) == {TODAY: 15}

        controller.delete_session(fifteen.id)
        assert controller.stats == []
        assert local_store.get_stats() == []

    def test_delete_only_touches_the_sessions_own_day(self, controller):
        old = controller.save_session_manually(
            {
                "counter_id": controller.active_counter.id,
                "count": 4,
                "date": datetime(2026, 10, 1, 18, 0, tzinfo=timezone.utc),
            }
        )
        self._complete(controller, 6)

        controller.delete_session(old.id)

        assert _stat_totals(controller) == {TODAY: 6}

    def test_sessions_on_different_days_get_separate_rows(self, controller, clock):
        self._complete(controller, 3)
        clock.advance(days=1)
        self._complete(controller, 5)

        assert _stat_totals(controller) == {TODAY: 3, date(2026, 10, 18): 5}


class TestDeleteSession:
    def test_unknown_id_is_noop(self, controller):
        assert controller.delete_session("missing") is False

    def test_delete_persists(self, controller, local_store):
        controller.increment()
        session = controller.complete_session()

        assert controller.delete_session(session.id) is True
        assert local_store.get_sessions() == []


class TestSaveSessionManually:
    def test_round_trip_matches_input(self, controller, local_store, clock):
        data = {
            "counter_id": controller.counters[2].id,
            "count": 99,
            "goal": 100,
            "completed": False,
            "date": datetime(2026, 9, 30, 21, 15, tzinfo=timezone.utc),
        }

        controller.save_session_manually(data)
        stored = local_store.get_sessions()[0]

        for key, value in data.items():
            assert getattr(stored, key) == value
        assert stored.id
        assert stored.created_at == clock.now

    def test_completed_flag_is_kept_without_goal(self, controller):
        session = controller.save_session_manually(
            {"counter_id": controller.active_counter.id, "count": 12, "completed": True}
        )

        assert session.completed is True
        assert session.goal is None

    def test_date_defaults_to_now(self, controller, clock):
        session = controller.save_session_manually({"counter_id": controller.active_counter.id, "count": 1})

        assert session.date == clock.now

    def test_does_not_touch_in_progress_state(self, controller):
        controller.increment()
        controller.increment()

        controller.save_session_manually({"counter_id": controller.active_counter.id, "count": 5})

        assert controller.current_count == 2

    def test_updates_stats_for_supplied_day(self, controller):
        controller.save_session_manually(
            {"counter_id": controller.active_counter.id, "count": 8, "date": "2026-10-02T07:00:00Z"}
        )

        assert _stat_totals(controller) == {date(2026, 10, 2): 8}

    def test_naive_date_is_read_as_utc(self, controller, local_store):
        naive = datetime(2026, 9, 30, 21, 15)

        controller.save_session_manually({"counter_id": controller.active_counter.id, "count": 3, "date": naive})

        assert local_store.get_sessions()[0].date == naive.replace(tzinfo=timezone.utc)
        assert _stat_totals(controller) == {date(2026, 9, 30): 3}

    def test_new_daily_stat_uses_controller_clock(self, controller, local_store, clock):
        clock.advance(hours=2)

        controller.save_session_manually({"counter_id": controller.active_counter.id, "count": 4})

        assert local_store.get_stats()[0].created_at == clock.now

    @pytest.mark.parametrize("count", [0, -3])
    def test_non_positive_count_rejected(self, controller, count):
        with pytest.raises(EmptySessionError):
            controller.save_session_manually({"counter_id": controller.active_counter.id, "count": count})

        assert controller.sessions == []


def test_independent_controllers_do_not_share_state(make_controller, guest):
    first = make_controller()
    second = make_controller()
    first.initialize(guest)
    second.initialize(guest)

    first.increment()

    assert first.current_count == 1
    assert second.current_count == 0


class TestRemoteMirroring:
    def test_completed_session_and_stat_reach_remote(self, remote_controller, remote_store, user):
        for _ in range(9):
            remote_controller.increment()

        session = remote_controller.complete_session()

        remote_sessions = remote_store.fetch_sessions(user)
        assert [(s.id, s.count, s.user_id) for s in remote_sessions] == [(session.id, 9, "user-1")]
        assert [(s.date, s.total_count) for s in remote_store.fetch_stats(user)] == [(TODAY, 9)]

    def test_remote_stat_accumulates_and_unwinds(self, remote_controller, remote_store, user):
        first = remote_controller.save_session_manually(
            {"counter_id": remote_controller.active_counter.id, "count": 10}
        )
        remote_controller.save_session_manually({"counter_id": remote_controller.active_counter.id, "count": 15})
        assert [s.total_count for s in remote_store.fetch_stats(user)] == [25]

        remote_controller.delete_session(first.id)

        assert [s.total_count for s in remote_store.fetch_stats(user)] == [15]
        assert first.id not in {s.id for s in remote_store.fetch_sessions(user)}

    def test_in_progress_counts_stay_local(self, remote_controller, remote_store, user):
        remote_controller.increment()
        remote_controller.set_goal(5)

        assert remote_store.fetch_sessions(user) == []
        assert remote_store.fetch_stats(user) == []

    def test_remote_failure_keeps_local_state(
        self, make_controller, broken_remote_store, dispatcher, local_store, user
    ):
        ctl = make_controller(broken_remote_store)
        ctl.initialize(user)
        ctl.increment()

        session = ctl.complete_session()

        assert [s.id for s in local_store.get_sessions()] == [session.id]
        assert [s.total_count for s in ctl.stats] == [1]
        failed = [job for job in dispatcher.list_jobs() if job["status"] == "failed"]
        assert {job["name"] for job in failed} >= {"create_session", "upsert_daily_stat"}


class TestSummary:
    def test_summary_reflects_session_history(self, controller, clock):
        for _ in range(10):
            controller.increment()
        controller.complete_session()
        controller.save_session_manually(
            {
                "counter_id": controller.active_counter.id,
                "count": 21,
                "date": datetime(2026, 10, 14, 6, 0, tzinfo=timezone.utc),
            }
        )

        summary = controller.summary()

        assert (summary.total, summary.today, summary.active_days, summary.daily_average) == (31, 10, 2, 16)
        assert summary.recent_days[-1] == (TODAY, 10)
        assert dict(summary.recent_days)[date(2026, 10, 14)] == 21

    def test_summary_follows_the_clock(self, controller, clock):
        controller.increment()
        controller.complete_session()
        clock.advance(days=1)

        summary = controller.summary()

        assert summary.today == 0
        assert summary.recent_days[-2] == (TODAY, 1)
