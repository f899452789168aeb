"""Tests for phase timers, win watch and collaborator handling."""

import logging
from datetime import date
from unittest.mock import Mock

import pytest

from src.environment import (
    CompleteTutorial,
    EntryDetails,
    Exit,
    GameConfig,
    GamePhaseController,
    GameState,
    InMemoryTutorialStore,
    LoggingLeadService,
    ManualScheduler,
    ResolveCascadeStep,
    Restart,
    ShowThankYou,
    Start,
    tomorrow_iso,
)
from src.match_engine import TILE_TYPES, CascadeStep, Coordinate

from conftest import BASE_ROWS, SWAP_ROWS


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def leads():
    return LoggingLeadService()


@pytest.fixture
def store():
    return InMemoryTutorialStore()


@pytest.fixture
def controller(scheduler, leads, store):
    """A controller waiting on the how-to-play screen with entry details."""
    state = GameState(
        phase="HOW_TO_PLAY",
        entry_details=EntryDetails(name="Asha", contact="9876543210"),
    )
    return GamePhaseController(GameConfig(), scheduler, leads, store, state=state)


def start(controller, make_grid, tutorial=False):
    return controller.dispatch(Start(
        grid=make_grid(BASE_ROWS),
        tile_types=list(TILE_TYPES),
        time_remaining=60,
        tutorial=tutorial,
    ))


class TestCountdown:
    """Test the play timer."""

    def test_ticks_once_per_second(self, controller, scheduler, make_grid):
        start(controller, make_grid)
        scheduler.advance(10)
        assert controller.state.time_remaining == 50
        assert controller.state.phase == "PLAYING"

    def test_timeout_then_result(self, controller, scheduler, leads, make_grid):
        start(controller, make_grid)
        scheduler.advance(60)
        assert controller.state.phase == "FINISHED"
        assert controller.state.time_remaining == 0

        scheduler.advance(1.4)
        assert controller.state.phase == "FINISHED"
        scheduler.advance(0.2)
        assert controller.state.phase == "RESULT"

        assert [l.summary for l in leads.submissions] == ["Balance Builder - Completed - Score: 0/100"]

    def test_no_ticks_after_finish(self, controller, scheduler, make_grid):
        start(controller, make_grid)
        scheduler.advance(100)
        assert controller.state.time_remaining == 0
        assert controller.state.phase == "RESULT"


class TestTutorial:
    """Test tutorial auto-advance and persistence."""

    def test_auto_advance_persists_flag(self, controller, scheduler, store, make_grid):
        start(controller, make_grid, tutorial=True)
        assert controller.state.phase == "TUTORIAL"

        scheduler.advance(2.9)
        assert controller.state.phase == "TUTORIAL"
        assert store.seen is False

        scheduler.advance(0.2)
        assert controller.state.phase == "PLAYING"
        assert store.seen is True
        assert controller.tutorial_seen() is True

    def test_clock_frozen_during_tutorial(self, controller, scheduler, make_grid):
        start(controller, make_grid, tutorial=True)
        scheduler.advance(2.0)
        assert controller.state.time_remaining == 60

    def test_manual_completion_cancels_timer(self, controller, scheduler, make_grid):
        start(controller, make_grid, tutorial=True)
        controller.dispatch(CompleteTutorial())
        scheduler.advance(3.5)
        # Only the countdown ran; the tutorial timer was dropped
        assert controller.state.phase == "PLAYING"
        assert controller.state.time_remaining == 57


class TestExit:
    """Test early exit."""

    def test_exit_reports_once(self, controller, scheduler, leads, make_grid):
        start(controller, make_grid)
        controller.dispatch(Exit())
        controller.dispatch(Exit())
        assert controller.state.phase == "EXITED"

        scheduler.advance(0.8)
        assert controller.state.phase == "RESULT"
        assert [l.summary for l in leads.submissions] == ["Balance Builder - Early Exit - Score: 0/100"]
        assert leads.submissions[0].source_tag == "BALANCE_BUILDER_LEAD"

    def test_exit_stops_countdown(self, controller, scheduler, make_grid):
        start(controller, make_grid)
        scheduler.advance(5)
        controller.dispatch(Exit())
        scheduler.advance(5)
        assert controller.state.time_remaining == 55

    def test_exit_from_tutorial(self, controller, scheduler, store, make_grid):
        start(controller, make_grid, tutorial=True)
        controller.dispatch(Exit())
        scheduler.advance(5)
        assert controller.state.phase == "RESULT"
        assert store.seen is False


class TestRestart:
    """Test restart resets timers and the lead flag."""

    def test_restart_from_result(self, controller, scheduler, leads, make_grid):
        start(controller, make_grid)
        scheduler.advance(62)
        assert controller.state.phase == "RESULT"

        controller.dispatch(Restart(grid=make_grid(SWAP_ROWS), tile_types=list(TILE_TYPES), time_remaining=60))
        assert controller.state.phase == "PLAYING"
        assert controller.state.lead_reported is False

        scheduler.advance(3)
        assert controller.state.time_remaining == 57

        controller.dispatch(Exit())
        assert len(leads.submissions) == 2

    def test_restart_drops_scheduled_callbacks(self, controller, scheduler, make_grid):
        start(controller, make_grid)
        fired = []
        controller.schedule(5, lambda: fired.append(True))

        controller.dispatch(Restart(grid=make_grid(SWAP_ROWS), tile_types=list(TILE_TYPES), time_remaining=60))
        scheduler.advance(10)
        assert fired == []

    def test_scheduled_callback_fires_within_phase(self, controller, scheduler, make_grid):
        start(controller, make_grid)
        fired = []
        controller.schedule(5.5, lambda: fired.append(controller.state.time_remaining))
        scheduler.advance(10)
        assert fired == [55]


class TestWinWatch:
    """Test finishing as soon as every bucket is full."""

    def test_full_buckets_finish(self, scheduler, leads, store, make_grid):
        grid = make_grid(BASE_ROWS)
        state = GameState(
            phase="PLAYING",
            grid=grid,
            buckets={"GREEN": 100, "BLUE": 100, "YELLOW": 100, "RED": 95},
            is_processing=True,
            time_remaining=30,
            entry_details=EntryDetails(name="Asha", contact="1"),
            session_id=1,
        )
        controller = GamePhaseController(GameConfig(), scheduler, leads, store, state=state)
        step = CascadeStep(
            grid=grid,
            matched_types=["RED"] * 3,
            match_count=3,
            step_index=1,
            matched_cells=[Coordinate(0, 3), Coordinate(1, 3), Coordinate(2, 3)],
        )

        controller.dispatch(ResolveCascadeStep(step=step, points=10, bucket_max=100))

        assert controller.state.phase == "FINISHED"
        assert controller.state.time_remaining == 30
        assert controller.final_score() == 100
        assert [l.summary for l in leads.submissions] == ["Balance Builder - Completed - Score: 100/100"]


class TestCollaborators:
    """Test that failing collaborators never block progression."""

    def test_lead_exception_is_logged(self, scheduler, store, make_grid, caplog):
        lead_service = Mock()
        lead_service.submit.side_effect = RuntimeError("CRM down")
        controller = GamePhaseController(
            GameConfig(), scheduler, lead_service, store,
            state=GameState(phase="HOW_TO_PLAY", entry_details=EntryDetails(name="A", contact="1")),
        )
        start(controller, make_grid)

        with caplog.at_level(logging.WARNING):
            controller.dispatch(Exit())
        scheduler.advance(1)

        assert controller.state.phase == "RESULT"
        assert lead_service.submit.call_count == 1
        assert "CRM down" in caplog.text

    def test_lead_rejection_returns_false(self, controller, caplog):
        controller.lead_service = Mock()
        controller.lead_service.submit.return_value = False

        with caplog.at_level(logging.WARNING):
            assert controller.submit_lead("Balance Builder Lead") is False
        assert "rejected" in caplog.text

    def test_no_entry_details_skips_lead(self, scheduler, store):
        lead_service = Mock()
        controller = GamePhaseController(GameConfig(), scheduler, lead_service, store)
        assert controller.submit_lead("Balance Builder Lead") is False
        lead_service.submit.assert_not_called()

    def test_unreadable_tutorial_flag_counts_as_unseen(self, scheduler, leads):
        tutorial_store = Mock()
        tutorial_store.get.side_effect = OSError("storage unavailable")
        controller = GamePhaseController(GameConfig(), scheduler, leads, tutorial_store)
        assert controller.tutorial_seen() is False

    def test_tutorial_write_failure(self, scheduler, leads, make_grid):
        tutorial_store = Mock()
        tutorial_store.set.side_effect = OSError("read-only")
        controller = GamePhaseController(
            GameConfig(), scheduler, leads, tutorial_store,
            state=GameState(phase="HOW_TO_PLAY", entry_details=EntryDetails(name="A", contact="1")),
        )
        start(controller, make_grid, tutorial=True)
        scheduler.advance(3)

        assert controller.state.phase == "PLAYING"
        tutorial_store.set.assert_called_once_with(True)


class TestObservers:
    """Test listeners and phase history."""

    def test_listener_sees_transitions(self, controller, make_grid):
        seen = []
        controller.subscribe(lambda old, new, action: seen.append((old.phase, new.phase, action.type)))
        start(controller, make_grid)
        assert seen == [("HOW_TO_PLAY", "PLAYING", "START")]

    def test_noop_not_broadcast(self, controller):
        seen = []
        controller.subscribe(lambda old, new, action: seen.append(action))
        controller.dispatch(Exit())
        assert seen == []

    def test_phase_history_and_thank_you(self, controller, scheduler, make_grid):
        start(controller, make_grid)
        controller.dispatch(Exit())
        scheduler.advance(1)
        controller.dispatch(ShowThankYou())

        assert controller.phase_history == ["HOW_TO_PLAY", "PLAYING", "EXITED", "RESULT", "THANK_YOU"]


def test_tomorrow_iso():
    assert tomorrow_iso(date(2024, 12, 31)) == "2025-01-01"
