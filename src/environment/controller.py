"""
Game phase controller.

Owns the session state, the timers that drive automatic transitions, and
every call to a collaborator. State itself only changes through
`reducer.apply`; the controller reacts to the transitions it produces.
"""

import logging
from datetime import date, timedelta
from typing import Any, Callable, List, Optional, Tuple

from ..match_engine.scoring import all_buckets_full, compute_final_score
from .config import GameConfig
from .models import (
    Action,
    CompleteTutorial,
    Finish,
    GameState,
    LeadSubmission,
    ShowResult,
    Tick,
    EXITED,
    FINISHED,
    PLAYING,
    TUTORIAL,
)
from .reducer import apply
from .scheduler import Callback, Scheduler, TimerHandle
from .services import LeadService, TutorialStore


logger = logging.getLogger(__name__)

Listener = Callable[[GameState, GameState, Action], None]


class GamePhaseController:
    """
    Drives the session lifecycle.

    Phase-scoped timers:
        PLAYING   -> countdown tick every `tick_period`
        TUTORIAL  -> CompleteTutorial after `tutorial_delay`
        FINISHED  -> ShowResult after `finish_delay`
        EXITED    -> ShowResult after `exit_delay`

    Every timer started in a phase (including ones registered through
    `schedule`) is cancelled as soon as the phase or the session instance
    changes.

    Attributes:
        config: Game configuration
        scheduler: Source of timers
        lead_service: Lead/contact submission collaborator
        tutorial_store: Tutorial-seen persistence collaborator
        phase_history: Every phase entered, in order
    """

    def __init__(
        self,
        config: GameConfig,
        scheduler: Scheduler,
        lead_service: LeadService,
        tutorial_store: TutorialStore,
        state: Optional[GameState] = None,
    ):
        self.config = config
        self.scheduler = scheduler
        self.lead_service = lead_service
        self.tutorial_store = tutorial_store
        self._state = state or GameState(time_remaining=config.game_duration)
        self._timers: List[TimerHandle] = []
        self._listeners: List[Listener] = []
        self.phase_history: List[str] = [self._state.phase]

    @property
    def state(self) -> GameState:
        return self._state

    def subscribe(self, listener: Listener) -> None:
        """Register a callback receiving (old_state, new_state, action)."""
        self._listeners.append(listener)

    def dispatch(self, action: Action) -> GameState:
        """
        Apply an action and react to the resulting transition.

        Returns:
            The state after the action (and any follow-up transitions)
        """
        old = self._state
        new = apply(old, action)
        if new is old:
            return old

        self._state = new
        self._on_transition(old, new)
        for listener in self._listeners:
            listener(old, new, action)

        # Win watch
        if self._state.phase == PLAYING and all_buckets_full(self._state.buckets, self.config.bucket_max):
            logger.info("All buckets full, finishing session %d", self._state.session_id)
            self.dispatch(Finish())

        return self._state

    def schedule(self, delay: float, callback: Callback) -> TimerHandle:
        """Schedule a callback that is dropped if the phase changes first."""
        token = self._token()

        def fire() -> None:
            if self._token() == token:
                callback()

        handle = self.scheduler.call_later(delay, fire)
        self._timers.append(handle)
        return handle

    def cancel_timers(self) -> None:
        """Cancel every timer owned by the current phase."""
        for handle in self._timers:
            handle.cancel()
        self._timers = []

    def final_score(self) -> int:
        return compute_final_score(self._state.buckets, self.config.bucket_max)

    def submit_lead(
        self,
        summary: str,
        source_tag: Optional[str] = None,
        preferred_date: Optional[str] = None,
        preferred_time: Optional[str] = None,
    ) -> bool:
        """
        Submit the captured contact details with a summary line.

        Failures are logged and reported as False, never raised.
        """
        details = self._state.entry_details
        if details is None:
            logger.debug("No entry details captured, skipping lead: %s", summary)
            return False

        lead = LeadSubmission(
            name=details.name,
            contact=details.contact,
            summary=summary,
            source_tag=source_tag or self.config.lead_source_tag,
            preferred_date=preferred_date,
            preferred_time=preferred_time,
        )
        ok = self._safe_call("lead submission", self.lead_service.submit, lead)
        if ok is False:
            logger.warning("Lead submission rejected: %s", summary)
        return bool(ok)

    def tutorial_seen(self) -> bool:
        """Read the persisted tutorial flag; unreadable counts as unseen."""
        return bool(self._safe_call("tutorial flag read", self.tutorial_store.get))

    # ── Internals ────────────────────────────────────────────────────

    def _token(self) -> Tuple[str, int]:
        return self._state.phase, self._state.session_id

    def _safe_call(self, what: str, fn: Callable[..., Any], *args: Any) -> Any:
        try:
            return fn(*args)
        except Exception as e:
            logger.warning("%s failed: %s", what.capitalize(), e)
            return None

    def _on_transition(self, old: GameState, new: GameState) -> None:
        if old.phase == new.phase and old.session_id == new.session_id:
            return

        logger.info("Phase %s -> %s (session %d)", old.phase, new.phase, new.session_id)
        self.phase_history.append(new.phase)
        self.cancel_timers()

        if old.phase == TUTORIAL and new.phase == PLAYING and old.session_id == new.session_id:
            self._safe_call("tutorial flag write", self.tutorial_store.set, True)

        if new.lead_reported and not old.lead_reported:
            self._report_score(new)

        self._start_phase_timers(new)

    def _report_score(self, state: GameState) -> None:
        score = compute_final_score(state.buckets, self.config.bucket_max)
        outcome = "Early Exit" if state.phase == EXITED else "Completed"
        self.submit_lead(f"Balance Builder - {outcome} - Score: {score}/100")

    def _start_phase_timers(self, state: GameState) -> None:
        phase = state.phase

        if phase == PLAYING:
            token = self._token()

            def tick() -> None:
                if self._token() == token:
                    self.dispatch(Tick())

            self._timers.append(self.scheduler.call_every(self.config.tick_period, tick))

        elif phase == TUTORIAL:
            self.schedule(self.config.tutorial_delay, lambda: self.dispatch(CompleteTutorial()))

        elif phase == FINISHED:
            self.schedule(self.config.finish_delay, lambda: self.dispatch(ShowResult()))

        elif phase == EXITED:
            self.schedule(self.config.exit_delay, lambda: self.dispatch(ShowResult()))


def tomorrow_iso(today: Optional[date] = None) -> str:
    """Default follow-up date attached to the entry lead."""
    return ((today or date.today()) + timedelta(days=1)).isoformat()
