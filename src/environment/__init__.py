"""Game environment for Balance Builder."""

from .models import (
    GamePhase,
    GameState,
    EntryDetails,
    FloatingScore,
    LeadSubmission,
    FeedbackEvent,
    StepOutcome,
    SwapOutcome,
    SessionResult,
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
)
from .config import GameConfig, PRAISE_MESSAGES, load_config
from .reducer import apply
from .scheduler import TimerHandle, Scheduler, ManualScheduler, AsyncioScheduler
from .services import (
    LeadService,
    TutorialStore,
    FeedbackService,
    LoggingLeadService,
    JsonlLeadService,
    InMemoryTutorialStore,
    FileTutorialStore,
    NullFeedback,
    RecordingFeedback,
)
from .controller import GamePhaseController, tomorrow_iso
from .balance_builder import BalanceBuilder

__all__ = [
    # State and payloads
    "GamePhase",
    "GameState",
    "EntryDetails",
    "FloatingScore",
    "LeadSubmission",
    "FeedbackEvent",
    "StepOutcome",
    "SwapOutcome",
    "SessionResult",
    # Actions
    "SelectCell",
    "Deselect",
    "RequestSwap",
    "Tick",
    "Finish",
    "ShowResult",
    "SetEntry",
    "ShowHowToPlay",
    "Start",
    "Restart",
    "Exit",
    "CompleteTutorial",
    "ShowPraise",
    "HidePraise",
    "AddFloat",
    "RemoveFloat",
    "SetProcessing",
    "ResolveCascadeStep",
    "ShowThankYou",
    # Configuration
    "GameConfig",
    "PRAISE_MESSAGES",
    "load_config",
    # Transition function
    "apply",
    # Scheduling
    "TimerHandle",
    "Scheduler",
    "ManualScheduler",
    "AsyncioScheduler",
    # Collaborators
    "LeadService",
    "TutorialStore",
    "FeedbackService",
    "LoggingLeadService",
    "JsonlLeadService",
    "InMemoryTutorialStore",
    "FileTutorialStore",
    "NullFeedback",
    "RecordingFeedback",
    # Controller and orchestrator
    "GamePhaseController",
    "tomorrow_iso",
    "BalanceBuilder",
]
