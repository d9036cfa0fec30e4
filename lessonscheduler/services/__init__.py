"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .scheduling_coordinator import (
    LessonStoreProtocol,
    ProfileClientProtocol,
    ScheduleChangeListener,
    ScheduleOutcome,
    SchedulingCoordinator,
    SchedulingState,
)

__all__ = [
    "LessonStoreProtocol",
    "ProfileClientProtocol",
    "ScheduleChangeListener",
    "ScheduleOutcome",
    "SchedulingCoordinator",
    "SchedulingState",
]
