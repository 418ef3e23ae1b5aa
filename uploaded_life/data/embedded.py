"""
Embedded fallback library, used when a resource cannot be loaded.

**Conceptual**: Every dataset resource has a compiled-in literal dataset here,
keyed by resource name. When both transports fail for a resource (or its file
parses to nothing usable) the assembler substitutes the matching entry,
normalized exactly like loaded rows, so the host always has a playable library.

The rows mirror the shapes found in real dataset files: some configs are
nested objects (as in library.json), some are JSON strings and one uses the
legacy `key=value` encoding (as in hand-edited CSVs).
"""

import copy
from typing import Any, Dict, List

from uploaded_life.data.normalize import NormalizedRows, normalize_rows
from uploaded_life.data.schemas import (
    BAD_EVENTS,
    GOOD_EVENTS,
    HOBBY_OFFERS,
    INCIDENT_EVENTS,
    JOBS,
    REQUIRED_FIELDS,
    RESOURCE_NAMES,
    SCENARIOS,
    SOURCE_EMBEDDED,
    DatasetResource,
    LibrarySnapshot,
    ResourceOutcome,
)

EMBEDDED_PATH = "<embedded>"

EMBEDDED_LIBRARY: Dict[str, List[Dict[str, Any]]] = {
    SCENARIOS: [
        {
            "id": "a1r7",
            "type": "static",
            "pool": "story",
            "text": "Welcome to Alex’s world. Rent is due, the fridge is empty, and payday is a week away.",
            "config": {
                "choices": [
                    {"label": "Look for work", "next": "job-pick"},
                    {"label": "Learn how this works", "next": "learnmore.html"},
                ],
            },
        },
        {
            "id": "job-pick",
            "type": "jobSelection",
            "pool": "story",
            "text": "Two listings look promising. Which one do you apply for?",
            "config": {"jobGroup": "first-month-a", "next": "RANDOM"},
        },
        {
            "id": "job-pick-late",
            "type": "jobSelection",
            "pool": "random",
            "text": "A recruiter sends over a couple of new openings.",
            "config": '{"jobGroup": "first-month-b", "next": "RANDOM"}',
        },
        {
            "id": "incident-street",
            "type": "incidentChoice",
            "pool": "random",
            "text": "Something happens on the way home.",
            "config": {"dataSource": "incidentEvents", "next": "RANDOM"},
        },
        {
            "id": "hobby-offers",
            "type": "hobbyStarter",
            "pool": "random",
            "text": "An ad promises a new hobby that will change your life.",
            "config": {"dataSource": "hobbyOffers", "optionCount": 2, "next": "RANDOM"},
        },
        {
            "id": "hobby-classic",
            "type": "hobbyStarter",
            "pool": "random",
            "text": "A friend invites you to try something new.",
            "config": {
                "options": [
                    {
                        "label": "Join the climbing gym",
                        "provider": "BoulderBarn",
                        "monthlyCost": 45,
                        "happinessBoost": 6,
                        "next": "RANDOM",
                    },
                    {
                        "label": "Start a pottery class",
                        "provider": "ClayDays",
                        "monthlyCost": 30,
                        "happinessBoost": 4,
                        "next": "RANDOM",
                    },
                ],
            },
        },
        {
            "id": "good-coffee",
            "type": "goodEvent",
            "pool": "random",
            "config": {"dataId": "gift-coffee", "next": "RANDOM"},
        },
        {
            "id": "bad-phone",
            "type": "badEvent",
            "pool": "random",
            "config": "dataId=phone-scam; next=RANDOM_BAD",
        },
        {
            "id": "hobby-offer-yoga",
            "type": "hobbyOffer",
            "pool": "random",
            "config": {"dataId": "yoga-app", "next": "RANDOM"},
        },
        {
            "id": "promotion",
            "type": "promotionOffer",
            "pool": "random",
            "text": "Your manager offers you a promotion with more hours.",
            "config": {"raiseRange": [150, 400], "stress": 2, "next": "RANDOM"},
        },
        {
            "id": "date-invite",
            "type": "relationshipInvite",
            "pool": "random",
            "text": "Someone from the gym asks you out.",
            "config": {"monthlyCost": 60, "happinessBoost": 8, "next": "date-outcome"},
        },
        {
            "id": "date-outcome",
            "type": "relationshipOutcome",
            "pool": "chain",
            "text": "How did the date go?",
            "config": {
                "successTextApp": "You hit it off over messages.",
                "successTextInperson": "You talk for hours.",
                "successChoices": [{"label": "Plan a second date", "next": "pending-relationship"}],
                "failureText": "It was awkward. Very awkward.",
                "failureChoices": [{"label": "Move on", "next": "RANDOM"}],
            },
        },
        {
            "id": "pending-relationship",
            "type": "pendingRelationship",
            "pool": "chain",
            "text": "Things are getting serious.",
            "config": {
                "choices": [
                    {"label": "Make it official", "next": "RANDOM"},
                    {"label": "Keep it casual", "next": "RANDOM"},
                ],
            },
        },
        {
            "id": "breakup",
            "type": "relationshipBreakup",
            "pool": "random",
            "text": "It is not working out.",
            "config": {"lossRange": [3, 9], "next": "RANDOM"},
        },
        {
            "id": "hobby-verify",
            "type": "hobbyVerification",
            "pool": "random",
            "text": "{{hobbyName}} wants a copy of your ID to keep your membership.",
            "config": {"next": "RANDOM"},
        },
    ],
    JOBS: [
        {"group": "first-month-a", "label": "Barista at Bean Bar", "effect": "+$1,900/mo, -2 happiness"},
        {"group": "first-month-a", "label": "Warehouse picker", "effect": "+$2,300/mo, -4 happiness"},
        {"group": "first-month-a", "label": "Dog walker", "effect": "+$1,500/mo, +3 happiness"},
        {"group": "first-month-b", "label": "Call center agent", "effect": "+$2,100/mo, -3 happiness"},
        {"group": "first-month-b", "label": "Delivery driver", "effect": "+$2,000/mo, -1 happiness"},
        {"group": "first-month-b", "label": "Library assistant", "effect": "+$1,700/mo, +2 happiness"},
    ],
    INCIDENT_EVENTS: [
        {
            "story": "Your bike gets a flat tire on the way to work.",
            "moneyMin": -60, "moneyMax": -20, "happinessMin": -3, "happinessMax": -1,
        },
        {
            "story": "You find a twenty in an old jacket.",
            "moneyMin": 20, "moneyMax": 20, "happinessMin": 1, "happinessMax": 2,
        },
        {
            "story": "A neighbor's party keeps you up all night.",
            "moneyMin": 0, "moneyMax": 0, "happinessMin": -4, "happinessMax": -2,
        },
    ],
    GOOD_EVENTS: [
        {
            "id": "gift-coffee",
            "text": "A coworker surprises you with a coffee subscription.",
            "providers": "BeanBar|CoffeeCo",
            "costMin": 0, "costMax": 0, "happinessMin": 2, "happinessMax": 4,
        },
        {
            "id": "concert-tickets",
            "text": "You win two tickets to a concert.",
            "providers": "TicketHub",
            "costMin": 0, "costMax": 15, "happinessMin": 4, "happinessMax": 7,
        },
    ],
    BAD_EVENTS: [
        {
            "id": "phone-scam",
            "text": "A caller claiming to be your bank asks you to confirm your card number.",
            "moneyMin": -250, "moneyMax": -80, "happinessMin": -6, "happinessMax": -3,
        },
        {
            "id": "rent-hike",
            "text": "Your landlord raises the rent.",
            "moneyMin": -150, "moneyMax": -75, "happinessMin": -4, "happinessMax": -2,
        },
    ],
    HOBBY_OFFERS: [
        {
            "id": "yoga-app",
            "text": "FlowFit offers unlimited yoga classes for a monthly fee.",
            "provider": "FlowFit",
            "costMin": 15, "costMax": 25, "happinessMin": 3, "happinessMax": 5,
            "requiresId": "true",
        },
        {
            "id": "board-games",
            "text": "The corner shop runs a weekly board game night.",
            "provider": "Meeple Corner",
            "costMin": 5, "costMax": 10, "happinessMin": 2, "happinessMax": 4,
            "requiresId": "false",
        },
        {
            "id": "language-club",
            "text": "LinguaLoop pairs you with a conversation partner.",
            "provider": "LinguaLoop",
            "costMin": 10, "costMax": 20, "happinessMin": 2, "happinessMax": 3,
            "requiresId": True,
        },
    ],
}


def embedded_resource(name: str) -> DatasetResource:
    """The DatasetResource describing the embedded copy of a dataset."""
    return DatasetResource(name, EMBEDDED_PATH, "json", REQUIRED_FIELDS[name])


def embedded_records(name: str) -> NormalizedRows:
    """
    Normalize the embedded rows for one resource.

    Rows are deep-copied first so records never share nested config objects
    with the module-level constant.
    """
    rows = copy.deepcopy(EMBEDDED_LIBRARY[name])
    return normalize_rows(embedded_resource(name), rows)


def embedded_snapshot() -> LibrarySnapshot:
    """
    Build the library entirely from embedded data.

    This is what the host shows before any load completes and what a load
    cycle produces when every resource fails.
    """
    records = {}
    outcomes = []
    for name in RESOURCE_NAMES:
        normalized = embedded_records(name)
        records[name] = normalized.records
        outcomes.append(ResourceOutcome(
            name=name,
            source=SOURCE_EMBEDDED,
            record_count=len(normalized.records),
            rows_dropped=normalized.rows_dropped,
            config_errors=normalized.config_errors,
        ))
    return LibrarySnapshot.from_records(records, tuple(outcomes))
