from .engine import BetEngine, utc_timestamp
from .models import Bet, Outcome, Participant, ProbationItem, Settlement, Stance

__all__ = [
    "BetEngine",
    "utc_timestamp",
    "Bet",
    "Outcome",
    "Participant",
    "ProbationItem",
    "Settlement",
    "Stance",
]
