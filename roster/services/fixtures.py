# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Service: Demo participant generation — pure computation, no side effects.
"""

import random
from datetime import datetime, timedelta, timezone
from typing import Optional

from roster.models.domain import Participant

FIRST_NAMES = [
    "Mohammed", "Fatima", "Ahmed", "Aisha", "Omar", "Mariam", "Ali", "Layla",
    "Hassan", "Zainab", "Youssef", "Nour", "Ibrahim", "Sara", "Karim",
]
LAST_NAMES = [
    "Al-Farsi", "El-Masri", "Al-Rashid", "Bouazizi", "Khalil", "Bennani",
    "Al-Ahmed", "Hakimi", "Zidane", "Mansour", "Haddad", "Ibrahim", "Kaddour",
    "El-Amrani",
]
ASSIGNERS = ["Ahmed", "Mohamed", "Sara", "Admin User"]

ASSIGNED_RATIO = 0.7
ONE_WEEK_SECONDS = 7 * 24 * 3600


def generate_participants(
    count: int,
    bus_ids: list[int],
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> list[Participant]:
    """
    Build ``count`` participants with ids p1000, p1001, ...
    About 70% are already on a random bus, assigned some time in the last week.
    """
    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    participants: list[Participant] = []
    for i in range(count):
        participant = Participant(
            id=f"p{1000 + i}",
            first_name=rng.choice(FIRST_NAMES),
            last_name=rng.choice(LAST_NAMES),
            ticket_id=f"T{rng.randint(1000, 9999)}",
        )
        if bus_ids and rng.random() < ASSIGNED_RATIO:
            participant = participant.assigned_to(
                rng.choice(bus_ids),
                now - timedelta(seconds=rng.uniform(0, ONE_WEEK_SECONDS)),
                rng.choice(ASSIGNERS),
            )
        participants.append(participant)
    return participants
