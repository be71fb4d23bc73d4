"""User-facing messages for the road trip planner UI.

Two placements:
- Sidebar: one info block with the trip status, re-rendered every run
- Under the map: toasts for failed fetches and refused actions, shown once

Callers log failures themselves; a message only words them for the user.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

logger = logging.getLogger(__name__)


class MessageLevel(Enum):
    """Streamlit element used for an inline message."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Message(ABC):
    """Inline sidebar message. Subclasses set LEVEL and word the text."""

    LEVEL: ClassVar[MessageLevel] = MessageLevel.INFO

    @property
    @abstractmethod
    def message(self) -> str:
        raise NotImplementedError

    @property
    def level(self) -> MessageLevel:
        return self.LEVEL

    def display(self) -> None:
        import streamlit as st

        getattr(st, self.level.value)(self.message)


@dataclass(frozen=True)
class ToastMessage(ABC):
    """Transient notification. Subclasses set ICON and word the text."""

    ICON: ClassVar[str] = "ℹ️"

    @property
    @abstractmethod
    def message(self) -> str:
        raise NotImplementedError

    @property
    def icon(self) -> str:
        return self.ICON

    def display(self) -> None:
        import streamlit as st

        text = f"{self.icon} {self.message}"
        logger.info(f"[TOAST] {text}")
        st.toast(text)


# =============================================================================
# TOASTS
# =============================================================================


@dataclass(frozen=True)
class FetchFailedMessage(ToastMessage):
    """A proxy request failed; whatever it would have replaced stays as it was."""

    ICON: ClassVar[str] = "⚠️"

    what: str  # "chargers", "route", ...
    detail: str = ""

    @property
    def message(self) -> str:
        if not self.detail:
            return f"Could not load {self.what}"
        return f"Could not load {self.what} ({self.detail})"


@dataclass(frozen=True)
class NoResultsMessage(ToastMessage):
    ICON: ClassVar[str] = "🔍"

    query: str

    @property
    def message(self) -> str:
        return f"No places found for '{self.query}'"


@dataclass(frozen=True)
class NoUserLocationMessage(ToastMessage):
    """Route requested before the start position is known."""

    ICON: ClassVar[str] = "📍"

    @property
    def message(self) -> str:
        return "Start location unknown. Set it before planning a route."


# =============================================================================
# SIDEBAR
# =============================================================================


@dataclass(frozen=True)
class TripStatusMessage(Message):
    """Summary of the current trip: destination, route and chargers matching the filter."""

    destination: str | None
    route_points: int
    chargers_shown: int
    chargers_total: int

    @property
    def message(self) -> str:
        if self.destination is None:
            return "Search for a destination to plan your trip."
        if self.route_points == 0:
            return f"Planning route to **{self.destination}**..."
        return (
            f"Route to **{self.destination}** ({self.route_points} points): "
            f"{self.chargers_shown} of {self.chargers_total} chargers in view match your filters."
        )
