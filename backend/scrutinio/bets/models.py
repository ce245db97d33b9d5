"""Bet domain models and the row mapping for the ``bets`` table.

Rows written by earlier versions of the app use Italian enum values,
``userId`` keys and bare-id participant entries. ``Bet.from_row`` folds all
of those into one shape so nothing past the decode boundary needs to care.
"""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class Outcome(str, Enum):
    ADMISSION = "admission"
    PROBATION = "probation"
    NON_ADMISSION = "non_admission"


class Stance(str, Enum):
    FOR = "for"
    AGAINST = "against"


_LEGACY_OUTCOMES = {
    "ammissione": Outcome.ADMISSION,
    "sospensione": Outcome.PROBATION,
    "non_ammissione": Outcome.NON_ADMISSION,
}

_LEGACY_STANCES = {
    "favorevole": Stance.FOR,
    "contrario": Stance.AGAINST,
}


def _enum_text(value: Any) -> str:
    if isinstance(value, Enum):
        value = value.value
    return str(value or "")


def parse_outcome(value: Any) -> Outcome | None:
    """Map a stored or submitted outcome to ``Outcome``; None if unrecognised."""
    if isinstance(value, Outcome):
        return value
    text = _enum_text(value).strip().lower()
    if text in _LEGACY_OUTCOMES:
        return _LEGACY_OUTCOMES[text]
    try:
        return Outcome(text)
    except ValueError:
        return None


def parse_stance(value: Any) -> Stance | None:
    """Map a stored or submitted stance to ``Stance``; None if unrecognised."""
    if isinstance(value, Stance):
        return value
    text = _enum_text(value).strip().lower()
    if text in _LEGACY_STANCES:
        return _LEGACY_STANCES[text]
    try:
        return Stance(text)
    except ValueError:
        return None


class ProbationItem(BaseModel):
    """A subject the student failed and the grade they got."""

    model_config = ConfigDict(populate_by_name=True)

    subject_name: str = Field(validation_alias=AliasChoices("subject_name", "subject"))
    grade: float = 0


class Participant(BaseModel):
    user_id: str
    stance: Stance | None = None  # None only for legacy bare-id entries


class Settlement(BaseModel):
    bet_id: str
    winners: list[str]
    losers: list[str]
    realized: bool

    @property
    def realized_text(self) -> str:
        return "true" if self.realized else "false"


def _load_json_list(raw: Any, column: str, bet_id: str) -> list[Any]:
    if not raw:
        return []
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"Bet {bet_id}: unreadable {column}, treating as empty")
        return []
    return value if isinstance(value, list) else []


def _normalize_participants(raw: list[Any]) -> list[Participant]:
    participants: list[Participant] = []
    positions: dict[str, int] = {}

    for entry in raw:
        if isinstance(entry, dict):
            user_id = str(entry.get("user_id") or entry.get("userId") or "")
            stance = parse_stance(entry.get("stance"))
        else:
            user_id = str(entry or "")
            stance = None
        if not user_id:
            continue

        # Later entries overwrite earlier ones for the same user; a bare id keeps the known stance.
        if user_id in positions:
            if stance is not None:
                participants[positions[user_id]].stance = stance
        else:
            positions[user_id] = len(participants)
            participants.append(Participant(user_id=user_id, stance=stance))

    return participants


def _normalize_probation(raw: list[Any]) -> list[ProbationItem]:
    items = []
    for entry in raw:
        if not isinstance(entry, dict):
            continue
        try:
            items.append(ProbationItem.model_validate(entry))
        except ValueError:
            continue
    return items


class Bet(BaseModel):
    id: str
    owner_id: str
    subject: str
    outcome: Outcome = Outcome.ADMISSION
    probation_detail: list[ProbationItem] = Field(default_factory=list)
    invite_code: str = ""
    participants: list[Participant] = Field(default_factory=list)
    created_at: str = ""
    terminated_at: str = ""
    realized: bool | None = None

    @property
    def is_open(self) -> bool:
        return not self.terminated_at

    @property
    def realized_text(self) -> str:
        if self.realized is None:
            return ""
        return "true" if self.realized else "false"

    def stance_of(self, user_id: str) -> Stance | None:
        return next((p.stance for p in self.participants if p.user_id == user_id), None)

    def upsert_participant(self, user_id: str, stance: Stance) -> None:
        for participant in self.participants:
            if participant.user_id == user_id:
                participant.stance = stance
                return
        self.participants.append(Participant(user_id=user_id, stance=stance))

    def settlement_sides(self, realized: bool) -> tuple[list[str], list[str]]:
        """Split participants into (winners, losers) for the declared result."""
        winning = Stance.FOR if realized else Stance.AGAINST
        losing = Stance.AGAINST if realized else Stance.FOR
        winners = [p.user_id for p in self.participants if p.stance is winning]
        losers = [p.user_id for p in self.participants if p.stance is losing]
        return winners, losers

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> Bet:
        bet_id = str(row.get("id") or "")

        outcome = parse_outcome(row.get("esito") or Outcome.ADMISSION.value)
        if outcome is None:
            logger.warning(f"Bet {bet_id}: unknown outcome {row.get('esito')!r}, using admission")
            outcome = Outcome.ADMISSION

        realized_text = str(row.get("realized") or "").strip().lower()
        realized = {"true": True, "false": False}.get(realized_text)

        return cls(
            id=bet_id,
            owner_id=str(row.get("owner_id") or ""),
            subject=str(row.get("subject") or ""),
            outcome=outcome,
            probation_detail=_normalize_probation(
                _load_json_list(row.get("sospensione_json"), "sospensione_json", bet_id)
            ),
            invite_code=str(row.get("invite_code") or ""),
            participants=_normalize_participants(
                _load_json_list(row.get("participants_json"), "participants_json", bet_id)
            ),
            created_at=str(row.get("created_at") or ""),
            terminated_at=str(row.get("terminated_at") or ""),
            realized=realized,
        )

    def to_row(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "subject": self.subject,
            "esito": self.outcome.value,
            "sospensione_json": json.dumps(
                [item.model_dump() for item in self.probation_detail]
                if self.outcome is Outcome.PROBATION
                else []
            ),
            "invite_code": self.invite_code,
            "participants_json": json.dumps(
                [
                    {"user_id": p.user_id, "stance": p.stance.value if p.stance else None}
                    for p in self.participants
                ]
            ),
            "created_at": self.created_at,
            "terminated_at": self.terminated_at,
            "realized": self.realized_text,
        }

    def to_view(self) -> dict[str, Any]:
        """Flattened shape returned to clients."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "subject": self.subject,
            "outcome": self.outcome.value,
            "probation_detail": [item.model_dump() for item in self.probation_detail],
            "invite_code": self.invite_code,
            "participants": [p.user_id for p in self.participants],
            "stances": [
                {"user_id": p.user_id, "stance": p.stance.value if p.stance else None}
                for p in self.participants
            ],
            "created_at": self.created_at,
            "terminated_at": self.terminated_at,
            "realized": self.realized_text,
        }
