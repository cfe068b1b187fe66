from __future__ import annotations

from enum import Enum
from typing import Any, TypedDict


class ConsensusStatus(str, Enum):
    unknown = "unknown"
    gathering = "gathering"
    options_proposed = "options_proposed"
    voting = "voting"
    agreed = "agreed"
    blocked = "blocked"


class BookingProgress(str, Enum):
    pending = "pending"
    research = "research"
    quoted = "quoted"
    booked = "booked"


class Consensus(TypedDict):
    status: str
    blockers: list[str]
    lastOptionSet: list[Any]
    selectedOption: Any


class GroupState(TypedDict, total=False):
    topic: str | None
    purpose: str | None  # leisure | business | family | adventure | other
    originCities: list[str]
    candidateDestinations: list[str]
    destination: str | None
    dates: dict[str, Any]
    durationNights: int | None
    budgetRange: dict[str, Any]
    headcount: int | None
    preferences: dict[str, Any]
    consensus: Consensus
    timeline: dict[str, Any]
    bookingProgress: dict[str, str]
    notes: list[str]
    lastUpdated: int


def default_group_state(now_ms: int) -> GroupState:
    return {
        "topic": None,
        "purpose": None,
        "originCities": [],
        "candidateDestinations": [],
        "destination": None,
        "dates": {
            "start": None,
            "end": None,
            "flexibility": "flexible",  # flexible | semi-flexible | fixed
        },
        "durationNights": None,
        "budgetRange": {
            "min": None,
            "max": None,
            "currency": "INR",
            "perPerson": True,
            "totalEstimate": None,
        },
        "headcount": None,
        "preferences": {
            "stayType": None,
            "accommodationStars": None,
            "roomsNeeded": None,
            "roomSharingPolicy": None,
            "transport": None,  # flight | train | road | mixed
            "flightCabin": None,
            "trainClass": None,
            "pace": "balanced",  # relaxed | balanced | packed
            "activityInterests": [],
            "foodPreferences": [],
            "dietaryRestrictions": [],
            "mustSee": [],
            "avoid": [],
        },
        "consensus": {
            "status": ConsensusStatus.unknown.value,
            "blockers": [],
            "lastOptionSet": [],
            "selectedOption": None,
        },
        "timeline": {
            "planningStart": now_ms,
            "bookingDeadline": None,
            "departure": None,
            "return": None,
        },
        "bookingProgress": {
            "flights": BookingProgress.pending.value,
            "stay": BookingProgress.pending.value,
            "activities": BookingProgress.pending.value,
            "localTransport": BookingProgress.pending.value,
        },
        "notes": [],
        "lastUpdated": now_ms,
    }
