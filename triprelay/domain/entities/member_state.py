from __future__ import annotations

from enum import Enum
from typing import Any, TypedDict


class MemberRole(str, Enum):
    member = "member"
    planner = "planner"
    decision = "decision"
    finance = "finance"
    logistics = "logistics"


class MemberState(TypedDict, total=False):
    id: str
    name: str | None
    homeCity: str | None
    budget: dict[str, Any]
    budgetFlexibility: str  # strict | flexible
    destinationPrefs: list[str]
    avoidanceList: list[str]
    dateFlexibility: str  # fixed | flexible | semi-flexible
    availabilityWindows: list[dict[str, Any]]
    role: str
    commitments: dict[str, Any]  # canTravel: true | false | "tentative"
    preferences: dict[str, Any]
    travelDocuments: dict[str, Any]
    healthNotes: list[str]
    communicationStyle: str  # concise | detailed | emoji
    lastUpdated: int


def default_member_state(member_id: str, name: str | None, now_ms: int) -> MemberState:
    return {
        "id": member_id,
        "name": name or None,
        "homeCity": None,
        "budget": {"amount": None, "currency": "INR", "ceiling": None},
        "budgetFlexibility": "flexible",
        "destinationPrefs": [],
        "avoidanceList": [],
        "dateFlexibility": "flexible",
        "availabilityWindows": [],
        "role": MemberRole.member.value,
        "commitments": {
            "canTravel": None,
            "reason": None,
            "tentative": None,
        },
        "preferences": {
            "food": None,
            "dietaryRestrictions": [],
            "allergies": [],
            "activities": [],
            "stayType": None,
            "preferredAmenities": [],
            "transportPrefs": {"flightCabin": None, "trainClass": None, "carType": None},
            "roomSharing": "ok",  # ok | preferPrivate | no
            "pace": "balanced",  # relaxed | balanced | busy
        },
        "travelDocuments": {
            "passportExpiry": None,
            "visaNeeded": None,
            "visaStatus": None,  # not_started | in_progress | approved | rejected
            "visaNotes": None,
        },
        "healthNotes": [],
        "communicationStyle": "concise",
        "lastUpdated": now_ms,
    }
