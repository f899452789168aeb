"""
Match Engine Error Hierarchy

All engine exceptions inherit from MatchEngineError so callers can catch
the whole family in one place.

Usage:
    from src.match_engine.errors import CascadeLimitError

    try:
        steps = resolve_cascade(grid, factory, max_steps=50)
    except CascadeLimitError as e:
        logger.warning(f"Cascade capped: {e.message}")
"""

from typing import Any, Dict, List, Optional

__all__ = [
    "MatchEngineError",
    "InvalidGridError",
    "CascadeLimitError",
]


class MatchEngineError(Exception):
    """Base exception for all match engine errors.

    Attributes:
        code: Machine-readable error code for categorization
        message: Human-readable error description
        context: Additional context for debugging
    """
    code: str = "MATCH_ENGINE_ERROR"

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"[{self.code}] {self.message} ({ctx})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context,
        }


class InvalidGridError(MatchEngineError):
    """A grid broke one of its structural invariants.

    Raised when a tile's row/col disagrees with its cell, when ids repeat,
    or when the grid is not square.
    """
    code: str = "INVALID_GRID"


class CascadeLimitError(MatchEngineError):
    """A cascade ran past the configured safety valve.

    Only raised when a caller opts into a step cap; reaching it is not the
    same as the no-more-matches fixpoint. `steps` holds the steps resolved
    before the cap was hit.
    """
    code: str = "CASCADE_LIMIT"

    def __init__(
        self,
        max_steps: int,
        steps: Optional[List[Any]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            f"Cascade exceeded {max_steps} steps without reaching a stable grid",
            context={"max_steps": max_steps, **(context or {})},
        )
        self.max_steps = max_steps
        self.steps = list(steps or [])
