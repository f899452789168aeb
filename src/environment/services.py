"""
Collaborator interfaces consumed by the game core, with simple
implementations for local runs and tests.

The core only ever calls these through the controller, which catches and
logs failures so they never block phase progression.
"""

import json
import logging
from pathlib import Path
from typing import List, Protocol, runtime_checkable

from .models import FeedbackEvent, LeadSubmission


logger = logging.getLogger(__name__)


@runtime_checkable
class LeadService(Protocol):
    """Submits captured contact details to a marketing/CRM backend."""

    def submit(self, lead: LeadSubmission) -> bool:
        ...


@runtime_checkable
class TutorialStore(Protocol):
    """Persists whether the player has already seen the tutorial."""

    def get(self) -> bool:
        ...

    def set(self, value: bool) -> None:
        ...


@runtime_checkable
class FeedbackService(Protocol):
    """Plays sounds, speech or haptics for discrete game events."""

    def notify(self, event: FeedbackEvent) -> None:
        ...


class LoggingLeadService:
    """Logs each submission and keeps it in memory."""

    def __init__(self) -> None:
        self.submissions: List[LeadSubmission] = []

    def submit(self, lead: LeadSubmission) -> bool:
        self.submissions.append(lead)
        logger.info("Lead submitted [%s]: %s", lead.source_tag, lead.summary)
        return True


class JsonlLeadService:
    """Appends each submission as one JSON line to a file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.submissions: List[LeadSubmission] = []

    def submit(self, lead: LeadSubmission) -> bool:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'a') as f:
            f.write(json.dumps(lead.model_dump()) + '\n')
        self.submissions.append(lead)
        return True


class InMemoryTutorialStore:
    """Tutorial flag held for the lifetime of the process."""

    def __init__(self, seen: bool = False):
        self.seen = seen

    def get(self) -> bool:
        return self.seen

    def set(self, value: bool) -> None:
        self.seen = value


class FileTutorialStore:
    """Tutorial flag stored in a small JSON file."""

    KEY = "tutorial_completed"

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def get(self) -> bool:
        if not self.path.exists():
            return False
        with open(self.path) as f:
            data = json.load(f)
        return bool(data.get(self.KEY, False))

    def set(self, value: bool) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump({self.KEY: value}, f)


class NullFeedback:
    """Discards every event."""

    def notify(self, event: FeedbackEvent) -> None:
        return None


class RecordingFeedback:
    """Keeps every event in order, for tests and session logs."""

    def __init__(self) -> None:
        self.events: List[FeedbackEvent] = []

    def notify(self, event: FeedbackEvent) -> None:
        self.events.append(event)

    @property
    def kinds(self) -> List[str]:
        return [e.kind for e in self.events]
