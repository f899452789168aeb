import json
import logging
import random
from collections import deque
from datetime import datetime
from pathlib import Path
from typing import Any, Deque, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..match_engine.cascade import resolve_cascade
from ..match_engine.errors import CascadeLimitError
from ..match_engine.grid import TileFactory, create_grid, in_bounds, is_adjacent, render_grid
from ..match_engine.models import CascadeStep
from ..match_engine.scoring import all_buckets_full, step_points
from ..match_engine.swap import find_valid_swaps
from .config import GameConfig
from .controller import GamePhaseController, tomorrow_iso
from .models import (
    AddFloat,
    Deselect,
    Direction,
    Exit,
    FeedbackEvent,
    FloatingScore,
    GameState,
    HidePraise,
    RemoveFloat,
    RequestSwap,
    ResolveCascadeStep,
    Restart,
    SelectCell,
    SessionResult,
    SetEntry,
    SetProcessing,
    ShowHowToPlay,
    ShowPraise,
    ShowThankYou,
    Start,
    StepOutcome,
    SwapOutcome,
    PLAYING,
)
from .scheduler import ManualScheduler, Scheduler, TimerHandle
from .services import (
    FeedbackService,
    InMemoryTutorialStore,
    LeadService,
    LoggingLeadService,
    NullFeedback,
    TutorialStore,
)


logger = logging.getLogger(__name__)

DIRECTION_OFFSETS: Dict[str, Tuple[int, int]] = {
    "UP": (-1, 0),
    "DOWN": (1, 0),
    "LEFT": (0, -1),
    "RIGHT": (0, 1),
}


class BalanceBuilder(BaseModel):
    """
    Top-level orchestrator for a Balance Builder session.

    Translates taps and swipes into actions, runs each accepted swap's
    cascade to completion up front, and then releases the resulting steps
    one at a time so a presentation layer can animate them at its own pace.

    Attributes:
        config: Game configuration
        factory: Seeded source of tiles for grids and refills
        controller: Phase controller owning state, timers and collaborators
        feedback: Audio/voice feedback collaborator
        started_at: When the session object was created
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    config: GameConfig = Field(default_factory=GameConfig)
    factory: TileFactory
    controller: GamePhaseController
    feedback: Any = Field(default_factory=NullFeedback)
    started_at: Optional[datetime] = None
    _pending: Deque[StepOutcome] = None
    _float_seq: int = 0
    _praise_timer: Optional[TimerHandle] = None
    _fx_rng: random.Random = None

    def model_post_init(self, __context) -> None:
        self._pending = deque()
        self._float_seq = 0
        self._praise_timer = None
        # Floats and praise only; refills draw from the factory
        self._fx_rng = random.Random(self.config.seed)
        self.controller.subscribe(self._on_transition)

    @classmethod
    def create(
        cls,
        config: Optional[GameConfig] = None,
        scheduler: Optional[Scheduler] = None,
        lead_service: Optional[LeadService] = None,
        tutorial_store: Optional[TutorialStore] = None,
        feedback: Optional[FeedbackService] = None,
        **config_kwargs: Any
    ) -> "BalanceBuilder":
        """
        Factory method to wire a session with its collaborators.

        Args:
            config: Optional GameConfig instance
            scheduler: Timer source (defaults to a ManualScheduler)
            lead_service: Lead submission collaborator
            tutorial_store: Tutorial-seen persistence
            feedback: Feedback collaborator
            **config_kwargs: Config parameters if config not provided

        Returns:
            Configured BalanceBuilder instance in the ENTRY phase
        """
        if config is None:
            config = GameConfig(**config_kwargs)

        controller = GamePhaseController(
            config=config,
            scheduler=scheduler or ManualScheduler(),
            lead_service=lead_service or LoggingLeadService(),
            tutorial_store=tutorial_store or InMemoryTutorialStore(),
        )
        factory = TileFactory(tile_types=config.tile_types, seed=config.seed)

        return cls(
            config=config,
            factory=factory,
            controller=controller,
            feedback=feedback or NullFeedback(),
            started_at=datetime.now(),
        )

    @property
    def state(self) -> GameState:
        return self.controller.state

    @property
    def final_score(self) -> int:
        return self.controller.final_score()

    @property
    def pending_steps(self) -> int:
        """Cascade steps resolved but not yet released."""
        return len(self._pending)

    # ── Entry and lifecycle ──────────────────────────────────────────

    def submit_entry(self, name: str, contact: str) -> GameState:
        """
        Capture contact details, submit the entry lead, and move on to the
        how-to-play screen whether or not the submission succeeded.
        """
        self.controller.dispatch(SetEntry(name=name, contact=contact))
        self.controller.submit_lead(
            "Balance Builder Lead",
            preferred_date=tomorrow_iso(),
            preferred_time="09:00 AM",
        )
        return self.controller.dispatch(ShowHowToPlay())

    def start_game(self) -> GameState:
        """Deal a fresh grid; show the tutorial unless it was seen before."""
        tutorial = not self.controller.tutorial_seen()
        return self.controller.dispatch(Start(
            grid=create_grid(self.factory, self.config.grid_size),
            tile_types=self.config.tile_types,
            time_remaining=self.config.game_duration,
            tutorial=tutorial,
        ))

    def restart_game(self) -> GameState:
        """Reset grid, buckets, timer and lead flag and resume play."""
        return self.controller.dispatch(Restart(
            grid=create_grid(self.factory, self.config.grid_size),
            tile_types=self.config.tile_types,
            time_remaining=self.config.game_duration,
        ))

    def exit_game(self) -> GameState:
        """Abandon the session; the partial score is reported once."""
        return self.controller.dispatch(Exit())

    def show_thank_you(self) -> GameState:
        return self.controller.dispatch(ShowThankYou())

    def book_slot(self, preferred_date: str, preferred_time: str) -> GameState:
        """Submit a follow-up booking, then thank the player regardless."""
        self.controller.submit_lead(
            "Balance Builder - Slot Booking",
            source_tag=self.config.booking_source_tag,
            preferred_date=preferred_date,
            preferred_time=preferred_time,
        )
        return self.controller.dispatch(ShowThankYou())

    # ── Input ────────────────────────────────────────────────────────

    def tap(self, row: int, col: int) -> Optional[SwapOutcome]:
        """
        Handle a tap on a cell.

        First tap selects; tapping the selection again deselects; tapping a
        non-adjacent cell moves the selection; tapping an adjacent cell
        requests a swap.

        Returns:
            The swap outcome when the tap requested a swap, else None
        """
        state = self.state
        if not state.accepts_input:
            return None

        selected = state.selected_cell
        if selected is None:
            self.controller.dispatch(SelectCell(row=row, col=col))
            return None

        if (selected.row, selected.col) == (row, col):
            self.controller.dispatch(Deselect())
            return None

        if not is_adjacent(selected.row, selected.col, row, col):
            self.controller.dispatch(SelectCell(row=row, col=col))
            return None

        return self.request_swap(selected.row, selected.col, row, col)

    def swipe(self, row: int, col: int, direction: Direction) -> Optional[SwapOutcome]:
        """Handle a drag from a cell; swipes off the board are ignored."""
        dr, dc = DIRECTION_OFFSETS[direction]
        target_row, target_col = row + dr, col + dc

        if not in_bounds(self.state.grid, target_row, target_col):
            return None

        return self.request_swap(row, col, target_row, target_col)

    def request_swap(self, r1: int, c1: int, r2: int, c2: int) -> SwapOutcome:
        """
        Validate a swap and, if it is legal, resolve its full cascade.

        The resolved steps are queued; release them with `next_step`,
        `drain` or `play_cascade`. Input stays locked until the queue
        empties.
        """
        before = self.state
        after = self.controller.dispatch(RequestSwap(r1=r1, c1=c1, r2=r2, c2=c2))

        if after is before:
            return SwapOutcome(accepted=False)

        if after.last_event != "SWAP_ACCEPTED":
            if after.last_event == "INVALID_SWAP":
                self._notify(FeedbackEvent(kind="SWAP_REJECTED"))
            return SwapOutcome(accepted=False, event=after.last_event)

        self._notify(FeedbackEvent(kind="SWAP_ACCEPTED"))

        steps = self._resolve(after)
        outcomes = [
            StepOutcome(
                step=step,
                points=step_points(step.match_count, step.step_index, self.config.scoring),
                bucket=step.primary_type,
            )
            for step in steps
        ]
        self._pending.extend(outcomes)

        if not outcomes:
            self.controller.dispatch(SetProcessing(value=False))

        return SwapOutcome(accepted=True, event="SWAP_ACCEPTED", steps=outcomes)

    def hint(self) -> Optional[Tuple[int, int, int, int]]:
        """A legal swap for the tutorial hand, if the board has one."""
        swaps = find_valid_swaps(self.state.grid)
        return swaps[0] if swaps else None

    # ── Cascade release ──────────────────────────────────────────────

    def next_step(self) -> Optional[StepOutcome]:
        """
        Release the next queued cascade step into the session state.

        Returns:
            The applied step, or None when nothing is pending
        """
        if not self._pending:
            return None

        outcome = self._pending.popleft()
        step = outcome.step
        logger.debug(
            "Cascade step %d: %d cells %s -> +%d %s",
            step.step_index, step.match_count, step.matched_types, outcome.points, outcome.bucket,
        )

        self.controller.dispatch(ResolveCascadeStep(
            step=step,
            points=outcome.points,
            bucket_max=self.config.bucket_max,
        ))
        self._notify(FeedbackEvent(
            kind="CASCADE_STEP",
            step_index=step.step_index,
            points=outcome.points,
            tile_type=outcome.bucket,
        ))
        self._add_float(outcome.points)

        if not self._pending:
            self._finish_cascade(step.step_index)

        return outcome

    def drain(self) -> List[StepOutcome]:
        """Release every queued step immediately."""
        released = []
        while self._pending:
            outcome = self.next_step()
            if outcome is None:
                break
            released.append(outcome)
        return released

    def play_cascade(self, step_delay: Optional[float] = None) -> None:
        """Release queued steps one per `step_delay` seconds on the scheduler."""
        delay = self.config.step_delay if step_delay is None else step_delay

        def release() -> None:
            if self.next_step() is not None and self._pending:
                self.controller.schedule(delay, release)

        if self._pending:
            self.controller.schedule(delay, release)

    # ── Results ──────────────────────────────────────────────────────

    def get_state(self) -> Dict:
        """
        Get the current session state for rendering or logging.

        Returns:
            Dictionary containing the presentation view of the session
        """
        state = self.state
        return {
            "phase": state.phase,
            "grid": render_grid(state.grid),
            "buckets": dict(state.buckets),
            "selected_cell": state.selected_cell,
            "is_processing": state.is_processing,
            "time_remaining": state.time_remaining,
            "final_score": self.final_score,
            "moves": state.moves,
            "pending_steps": self.pending_steps,
        }

    def get_result(self, lead_submissions: Optional[List] = None) -> SessionResult:
        """
        Get the session result.

        Returns:
            SessionResult summarising the session so far
        """
        state = self.state
        submissions = lead_submissions
        if submissions is None:
            submissions = list(getattr(self.controller.lead_service, "submissions", []))

        return SessionResult(
            final_score=self.final_score,
            buckets=dict(state.buckets),
            phase=state.phase,
            moves=state.moves,
            time_remaining=state.time_remaining,
            won=all_buckets_full(state.buckets, self.config.bucket_max),
            phase_history=list(self.controller.phase_history),
            lead_submissions=submissions,
            final_grid=render_grid(state.grid) or None,
            seed=self.config.seed,
            started_at=self.started_at.isoformat() if self.started_at else "",
            ended_at=datetime.now().isoformat(),
        )

    def save_result(self, path: str | Path) -> None:
        """
        Save the session result to a JSON file.

        Args:
            path: Path to save the result file
        """
        result = self.get_result()
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, 'w') as f:
            json.dump(result.model_dump(), f, indent=2, default=str)

    # ── Internals ────────────────────────────────────────────────────

    def _on_transition(self, old: GameState, new: GameState, action: Any) -> None:
        # Steps never outlive the play phase or session that produced them
        if self._pending and (new.phase != PLAYING or new.session_id != old.session_id):
            logger.debug("Dropping %d unreleased cascade steps on %s", len(self._pending), new.phase)
            self._pending.clear()

    def _resolve(self, state: GameState) -> List[CascadeStep]:
        try:
            return resolve_cascade(state.grid, self.factory, max_steps=self.config.max_cascade_steps)
        except CascadeLimitError as e:
            logger.warning("%s; releasing %d resolved steps", e, len(e.steps))
            return e.steps

    def _notify(self, event: FeedbackEvent) -> None:
        try:
            self.feedback.notify(event)
        except Exception as e:
            logger.warning("Feedback for %s failed: %s", event.kind, e)

    def _add_float(self, points: int) -> None:
        self._float_seq += 1
        float_id = f"f-{self._float_seq}"
        rng = self._fx_rng
        self.controller.dispatch(AddFloat(score=FloatingScore(
            id=float_id,
            value=f"+{points}",
            x=40 + rng.random() * 20,
            y=40 + rng.random() * 20,
        )))
        self.controller.schedule(
            self.config.float_duration,
            lambda: self.controller.dispatch(RemoveFloat(id=float_id)),
        )

    def _finish_cascade(self, depth: int) -> None:
        if depth >= 2 and self.state.phase == PLAYING:
            self._show_praise()
        self.controller.dispatch(SetProcessing(value=False))

    def _show_praise(self) -> None:
        message = self._fx_rng.choice(self.config.praise_messages)
        self.controller.dispatch(ShowPraise(message=message))
        self._notify(FeedbackEvent(kind="PRAISE", message=message))

        if self._praise_timer is not None:
            self._praise_timer.cancel()
        self._praise_timer = self.controller.schedule(
            self.config.praise_duration,
            lambda: self.controller.dispatch(HidePraise()),
        )
