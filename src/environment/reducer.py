"""
The session transition function.

`apply(state, action)` is the only writer of GameState. It is pure: the
same state and action always give the same result, and the input state is
never modified. Random grids arrive inside Start/Restart actions and
scored steps inside ResolveCascadeStep, so nothing here touches a random
source, a clock or a collaborator.
"""

from typing import Any

from ..match_engine.grid import in_bounds, is_adjacent, swap_tiles
from ..match_engine.models import Coordinate
from ..match_engine.scoring import add_to_bucket, empty_buckets
from ..match_engine.swap import would_create_match
from .models import (
    Action,
    AddFloat,
    CompleteTutorial,
    Deselect,
    EntryDetails,
    Exit,
    Finish,
    GameState,
    HidePraise,
    RemoveFloat,
    RequestSwap,
    ResolveCascadeStep,
    Restart,
    SelectCell,
    SetEntry,
    SetProcessing,
    ShowHowToPlay,
    ShowPraise,
    ShowResult,
    ShowThankYou,
    Start,
    Tick,
    ENTRY,
    EXITED,
    FINISHED,
    HOW_TO_PLAY,
    PLAYING,
    RESULT,
    THANK_YOU,
    TUTORIAL,
)


def _update(state: GameState, **changes: Any) -> GameState:
    """Copy the state with changes; clears last_event unless one is given."""
    changes.setdefault("last_event", None)
    return state.model_copy(update=changes)


def _end_play(state: GameState, phase: str) -> GameState:
    """Leave play for FINISHED or EXITED, marking the score as reported."""
    return _update(
        state,
        phase=phase,
        lead_reported=True,
        is_processing=False,
        selected_cell=None,
        active_praise=None,
        floating_scores=[],
    )


def _request_swap(state: GameState, action: RequestSwap) -> GameState:
    if not state.accepts_input:
        return state

    r1, c1, r2, c2 = action.r1, action.c1, action.r2, action.c2
    grid = state.grid

    if not (in_bounds(grid, r1, c1) and in_bounds(grid, r2, c2)) or not is_adjacent(r1, c1, r2, c2):
        return _update(state, last_event="INVALID_REQUEST")

    if not would_create_match(grid, r1, c1, r2, c2):
        return _update(state, selected_cell=None, last_event="INVALID_SWAP")

    # First valid swap ends the tutorial
    return _update(
        state,
        phase=PLAYING,
        grid=swap_tiles(grid, r1, c1, r2, c2),
        selected_cell=None,
        is_processing=True,
        moves=state.moves + 1,
        cascade_depth=0,
        last_event="SWAP_ACCEPTED",
    )


def _resolve_step(state: GameState, action: ResolveCascadeStep) -> GameState:
    if state.phase != PLAYING or not state.is_processing:
        return state

    step = action.step
    buckets = state.buckets
    if step.primary_type is not None:
        buckets = add_to_bucket(buckets, step.primary_type, action.points, action.bucket_max)

    return _update(state, grid=step.grid, buckets=buckets, cascade_depth=step.step_index)


def apply(state: GameState, action: Action) -> GameState:
    """
    Apply one action to the session state.

    Actions that do not make sense in the current phase return the state
    unchanged (the same object), so callers can detect a no-op with `is`.

    Args:
        state: Current session state
        action: The action to apply

    Returns:
        The next session state
    """
    phase = state.phase

    if isinstance(action, SelectCell):
        if not state.accepts_input or not in_bounds(state.grid, action.row, action.col):
            return state
        return _update(state, selected_cell=Coordinate(action.row, action.col))

    if isinstance(action, Deselect):
        return _update(state, selected_cell=None)

    if isinstance(action, RequestSwap):
        return _request_swap(state, action)

    if isinstance(action, Tick):
        if phase != PLAYING:
            return state
        remaining = max(0, state.time_remaining - 1)
        if remaining == 0:
            return _end_play(state.model_copy(update={"time_remaining": 0}), FINISHED)
        return _update(state, time_remaining=remaining)

    if isinstance(action, Finish):
        if phase != PLAYING:
            return state
        return _end_play(state, FINISHED)

    if isinstance(action, ShowResult):
        if phase not in (FINISHED, EXITED):
            return state
        return _update(state, phase=RESULT)

    if isinstance(action, SetEntry):
        if phase != ENTRY:
            return state
        details = EntryDetails(name=action.name.strip(), contact=action.contact.strip())
        return _update(state, entry_details=details, lead_reported=False)

    if isinstance(action, ShowHowToPlay):
        if phase != ENTRY or state.entry_details is None:
            return state
        return _update(state, phase=HOW_TO_PLAY)

    if isinstance(action, Start):
        if phase != HOW_TO_PLAY:
            return state
        return _update(
            state,
            phase=TUTORIAL if action.tutorial else PLAYING,
            grid=action.grid,
            buckets=empty_buckets(action.tile_types),
            time_remaining=action.time_remaining,
            selected_cell=None,
            is_processing=False,
            lead_reported=False,
            session_id=state.session_id + 1,
            moves=0,
            cascade_depth=0,
        )

    if isinstance(action, Restart):
        if phase in (ENTRY, HOW_TO_PLAY):
            return state
        return _update(
            state,
            phase=PLAYING,
            grid=action.grid,
            buckets=empty_buckets(action.tile_types),
            time_remaining=action.time_remaining,
            selected_cell=None,
            is_processing=False,
            lead_reported=False,
            active_praise=None,
            floating_scores=[],
            session_id=state.session_id + 1,
            moves=0,
            cascade_depth=0,
        )

    if isinstance(action, Exit):
        if phase not in (PLAYING, TUTORIAL):
            return state
        return _end_play(state, EXITED)

    if isinstance(action, CompleteTutorial):
        if phase != TUTORIAL:
            return state
        return _update(state, phase=PLAYING)

    if isinstance(action, ShowPraise):
        if phase != PLAYING:
            return state
        return _update(state, active_praise=action.message)

    if isinstance(action, HidePraise):
        return _update(state, active_praise=None)

    if isinstance(action, AddFloat):
        if phase != PLAYING:
            return state
        return _update(state, floating_scores=[*state.floating_scores, action.score])

    if isinstance(action, RemoveFloat):
        return _update(state, floating_scores=[f for f in state.floating_scores if f.id != action.id])

    if isinstance(action, SetProcessing):
        return _update(state, is_processing=action.value)

    if isinstance(action, ResolveCascadeStep):
        return _resolve_step(state, action)

    if isinstance(action, ShowThankYou):
        if phase != RESULT:
            return state
        return _update(state, phase=THANK_YOU)

    raise ValueError(f"Unknown action: {action!r}")
