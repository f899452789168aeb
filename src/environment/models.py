"""
Pydantic models for the environment layer.

This module contains the session state, the actions accepted by the
transition function, and the payloads exchanged with collaborators. The
logic lives in reducer.py, controller.py and balance_builder.py.
"""

from typing import Annotated, Dict, List, Literal, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from ..match_engine.models import CascadeStep, Coordinate, Grid


# Type aliases
GamePhase = Literal[
    "ENTRY",
    "HOW_TO_PLAY",
    "TUTORIAL",
    "PLAYING",
    "FINISHED",
    "EXITED",
    "RESULT",
    "THANK_YOU",
]
InputEvent = Literal["SWAP_ACCEPTED", "INVALID_SWAP", "INVALID_REQUEST"]
FeedbackKind = Literal["SWAP_ACCEPTED", "SWAP_REJECTED", "CASCADE_STEP", "PRAISE"]
Direction = Literal["UP", "DOWN", "LEFT", "RIGHT"]

ENTRY: GamePhase = "ENTRY"
HOW_TO_PLAY: GamePhase = "HOW_TO_PLAY"
TUTORIAL: GamePhase = "TUTORIAL"
PLAYING: GamePhase = "PLAYING"
FINISHED: GamePhase = "FINISHED"
EXITED: GamePhase = "EXITED"
RESULT: GamePhase = "RESULT"
THANK_YOU: GamePhase = "THANK_YOU"

# Phases in which taps and swipes are accepted
INPUT_PHASES = (TUTORIAL, PLAYING)


class EntryDetails(BaseModel):
    """Contact details captured on the entry form."""
    name: str = Field(..., min_length=1)
    contact: str = Field(..., min_length=1)


class FloatingScore(BaseModel):
    """A transient "+N" label shown over the board."""
    id: str
    value: str
    x: float = 50.0
    y: float = 50.0


class LeadSubmission(BaseModel):
    """Payload handed to the lead/contact submission service."""
    name: str
    contact: str
    summary: str
    source_tag: str
    preferred_date: Optional[str] = None
    preferred_time: Optional[str] = None


class FeedbackEvent(BaseModel):
    """A discrete event for audio/voice/haptic feedback."""
    kind: FeedbackKind
    step_index: Optional[int] = None
    points: Optional[int] = None
    tile_type: Optional[str] = None
    message: Optional[str] = None


class GameState(BaseModel):
    """
    The single mutable resource of a session, replaced wholesale by the
    transition function on every action.
    """
    model_config = ConfigDict(frozen=True)

    phase: GamePhase = ENTRY
    grid: Grid = Field(default_factory=list)
    buckets: Dict[str, int] = Field(default_factory=dict)
    selected_cell: Optional[Coordinate] = None
    is_processing: bool = False
    time_remaining: int = 0
    entry_details: Optional[EntryDetails] = None
    lead_reported: bool = False
    active_praise: Optional[str] = None
    floating_scores: List[FloatingScore] = Field(default_factory=list)
    last_event: Optional[InputEvent] = None
    session_id: int = 0
    moves: int = 0
    cascade_depth: int = 0

    @property
    def accepts_input(self) -> bool:
        """Whether taps and swaps are currently honoured."""
        return self.phase in INPUT_PHASES and not self.is_processing


# ── Actions ──────────────────────────────────────────────────────────


class SelectCell(BaseModel):
    type: Literal["SELECT_CELL"] = "SELECT_CELL"
    row: int
    col: int


class Deselect(BaseModel):
    type: Literal["DESELECT"] = "DESELECT"


class RequestSwap(BaseModel):
    type: Literal["REQUEST_SWAP"] = "REQUEST_SWAP"
    r1: int
    c1: int
    r2: int
    c2: int


class Tick(BaseModel):
    type: Literal["TICK"] = "TICK"


class Finish(BaseModel):
    type: Literal["FINISH"] = "FINISH"


class ShowResult(BaseModel):
    type: Literal["SHOW_RESULT"] = "SHOW_RESULT"


class SetEntry(BaseModel):
    type: Literal["SET_ENTRY"] = "SET_ENTRY"
    name: str
    contact: str


class ShowHowToPlay(BaseModel):
    type: Literal["SHOW_HOW_TO_PLAY"] = "SHOW_HOW_TO_PLAY"


class Start(BaseModel):
    """Begin play on a freshly generated grid, optionally via the tutorial."""
    type: Literal["START"] = "START"
    grid: Grid
    tile_types: List[str]
    time_remaining: int = Field(..., ge=0)
    tutorial: bool = False


class Restart(BaseModel):
    """Reset grid, buckets and timer and go straight to play."""
    type: Literal["RESTART"] = "RESTART"
    grid: Grid
    tile_types: List[str]
    time_remaining: int = Field(..., ge=0)


class Exit(BaseModel):
    type: Literal["EXIT"] = "EXIT"


class CompleteTutorial(BaseModel):
    type: Literal["COMPLETE_TUTORIAL"] = "COMPLETE_TUTORIAL"


class ShowPraise(BaseModel):
    type: Literal["SHOW_PRAISE"] = "SHOW_PRAISE"
    message: str


class HidePraise(BaseModel):
    type: Literal["HIDE_PRAISE"] = "HIDE_PRAISE"


class AddFloat(BaseModel):
    type: Literal["ADD_FLOAT"] = "ADD_FLOAT"
    score: FloatingScore


class RemoveFloat(BaseModel):
    type: Literal["REMOVE_FLOAT"] = "REMOVE_FLOAT"
    id: str


class SetProcessing(BaseModel):
    type: Literal["SET_PROCESSING"] = "SET_PROCESSING"
    value: bool


class ResolveCascadeStep(BaseModel):
    """Apply one resolved cascade step and credit its points."""
    type: Literal["RESOLVE_CASCADE_STEP"] = "RESOLVE_CASCADE_STEP"
    step: CascadeStep
    points: int = Field(..., ge=0)
    bucket_max: int = Field(..., ge=1)


class ShowThankYou(BaseModel):
    type: Literal["SHOW_THANK_YOU"] = "SHOW_THANK_YOU"


Action = Annotated[
    Union[
        SelectCell,
        Deselect,
        RequestSwap,
        Tick,
        Finish,
        ShowResult,
        SetEntry,
        ShowHowToPlay,
        Start,
        Restart,
        Exit,
        CompleteTutorial,
        ShowPraise,
        HidePraise,
        AddFloat,
        RemoveFloat,
        SetProcessing,
        ResolveCascadeStep,
        ShowThankYou,
    ],
    Field(discriminator="type"),
]


# ── Results ──────────────────────────────────────────────────────────


class StepOutcome(BaseModel):
    """A cascade step paired with the score it earns."""
    step: CascadeStep
    points: int
    bucket: Optional[str] = None


class SwapOutcome(BaseModel):
    """What happened to a swap intent."""
    accepted: bool
    event: Optional[InputEvent] = None
    steps: List[StepOutcome] = Field(default_factory=list)

    @property
    def total_points(self) -> int:
        return sum(s.points for s in self.steps)


class SessionResult(BaseModel):
    """Summary of a completed or abandoned session."""
    final_score: int = 0
    buckets: Dict[str, int] = Field(default_factory=dict)
    phase: GamePhase = ENTRY
    moves: int = 0
    time_remaining: int = 0
    won: bool = False
    phase_history: List[str] = Field(default_factory=list)
    lead_submissions: List[LeadSubmission] = Field(default_factory=list)
    final_grid: Optional[str] = None
    seed: Optional[int] = None
    started_at: str = ""
    ended_at: str = ""
