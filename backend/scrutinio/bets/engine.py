"""Bet lifecycle: create, join, terminate (settle), delete, list.

Every operation starts from a fresh read of the tables it needs and ends
with full-table writes. Settlement touches two tables and writes them in a
fixed order, users first and bets second, with nothing tying the two writes
together. A failure in between leaves counters credited on a bet that still
reads as open; retrying the terminate would credit them again.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from scrutinio.accounts.ledger import UserLedger, apply_counters
from scrutinio.bets.models import (
    Bet,
    Outcome,
    ProbationItem,
    Settlement,
    Stance,
    parse_outcome,
    parse_stance,
)
from scrutinio.exceptions import (
    ConflictError,
    ForbiddenError,
    InputValidationError,
    NotFoundError,
)
from scrutinio.storage import BETS_TABLE, TableRepository

logger = logging.getLogger(__name__)


def utc_timestamp() -> str:
    """Current UTC time as ISO 8601 with millisecond precision and a Z suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def generate_bet_id() -> str:
    return uuid4().hex[:12]


def generate_invite_code() -> str:
    return uuid4().hex[:6].upper()


def _coerce_probation(detail: Iterable[Any] | None) -> list[ProbationItem]:
    items: list[ProbationItem] = []
    for entry in detail or []:
        try:
            item = entry if isinstance(entry, ProbationItem) else ProbationItem.model_validate(entry)
        except ValueError as e:
            raise InputValidationError(f"Invalid probation_detail entry: {entry!r}") from e
        if not item.subject_name.strip():
            raise InputValidationError("probation_detail entries need a subject_name")
        items.append(item)
    return items


class BetEngine:
    """State machine over the ``bets`` table, settling into the user ledger."""

    def __init__(
        self,
        repository: TableRepository,
        ledger: UserLedger,
        clock: Callable[[], str] = utc_timestamp,
    ):
        self.repository = repository
        self.ledger = ledger
        self.clock = clock

    # ------------------------------------------------------------------
    # Table access
    # ------------------------------------------------------------------

    def load(self) -> list[Bet]:
        return [Bet.from_row(row) for row in self.repository.read_table(BETS_TABLE)]

    def save(self, bets: Iterable[Bet]) -> None:
        self.repository.write_table(BETS_TABLE, [bet.to_row() for bet in bets])

    @staticmethod
    def _find(bets: list[Bet], bet_id: str) -> Bet:
        bet = next((b for b in bets if b.id == str(bet_id)), None)
        if bet is None:
            raise NotFoundError("Bet not found")
        return bet

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create(
        self,
        owner_id: str,
        subject: str,
        outcome: str | Outcome | None = None,
        stance: str | Stance | None = None,
        probation_detail: Iterable[Any] | None = None,
    ) -> Bet:
        if not owner_id or not subject:
            raise InputValidationError("userId and subject are required")

        chosen_outcome = parse_outcome(outcome) if outcome else Outcome.ADMISSION
        if chosen_outcome is None:
            raise InputValidationError(f"Invalid outcome: {outcome!r}")
        chosen_stance = parse_stance(stance) or Stance.FOR

        detail: list[ProbationItem] = []
        if chosen_outcome is Outcome.PROBATION:
            detail = _coerce_probation(probation_detail)
            if not detail:
                raise InputValidationError("probation_detail is required when outcome is probation")

        bets = self.load()
        bet = Bet(
            id=generate_bet_id(),
            owner_id=str(owner_id),
            subject=str(subject),
            outcome=chosen_outcome,
            probation_detail=detail,
            invite_code=generate_invite_code(),
            created_at=self.clock(),
        )
        bet.upsert_participant(bet.owner_id, chosen_stance)
        bets.append(bet)
        self.save(bets)

        logger.info(f"Created bet {bet.id} by {bet.owner_id}: {bet.subject} -> {bet.outcome.value}")
        return bet

    def join(self, bet_id: str, user_id: str, stance: str | Stance | None = None) -> Bet:
        if not bet_id or not user_id:
            raise InputValidationError("userId and betId are required")
        chosen_stance = parse_stance(stance) or Stance.FOR

        bets = self.load()
        bet = self._find(bets, bet_id)
        if not bet.is_open:
            raise ConflictError("Bet already terminated")

        bet.upsert_participant(str(user_id), chosen_stance)
        self.save(bets)

        logger.info(f"User {user_id} joined bet {bet.id} ({chosen_stance.value})")
        return bet

    def terminate(self, acting_user_id: str, bet_id: str, realized: bool | None) -> Settlement:
        if not acting_user_id or not bet_id or realized is None:
            raise InputValidationError("userId, betId and realized are required")
        realized = bool(realized)

        bets = self.load()
        bet = self._find(bets, bet_id)
        if not bet.is_open:
            raise ConflictError("Bet already terminated")

        users = self.ledger.load()
        if bet.owner_id != str(acting_user_id) and not self.ledger.is_admin(users, acting_user_id):
            raise ForbiddenError("Only the creator or an admin can terminate a bet")

        winners, losers = bet.settlement_sides(realized)
        for user_id in winners:
            apply_counters(users, user_id, 1, 0)
        for user_id in losers:
            apply_counters(users, user_id, 0, 1)

        bet.terminated_at = self.clock()
        bet.realized = realized

        self.ledger.save(users)
        self.save(bets)

        logger.info(
            f"Terminated bet {bet.id} (realized={bet.realized_text}): "
            f"{len(winners)} winners, {len(losers)} losers"
        )
        return Settlement(bet_id=bet.id, winners=winners, losers=losers, realized=realized)

    def delete(self, acting_user_id: str, bet_id: str) -> str:
        """Remove a bet, first taking back any counters its settlement handed out."""
        if not acting_user_id or not bet_id:
            raise InputValidationError("userId and betId are required")

        users = self.ledger.load()
        if not self.ledger.is_admin(users, acting_user_id):
            raise ForbiddenError("Only an admin can delete a bet")

        bets = self.load()
        bet = self._find(bets, bet_id)

        if not bet.is_open and bet.realized is not None:
            winners, losers = bet.settlement_sides(bet.realized)
            changed = False
            for user_id in winners:
                changed = apply_counters(users, user_id, -1, 0) or changed
            for user_id in losers:
                changed = apply_counters(users, user_id, 0, -1) or changed
            if changed:
                self.ledger.save(users)
                logger.info(f"Reversed settlement of bet {bet.id} for {len(winners) + len(losers)} users")

        self.save([b for b in bets if b.id != bet.id])

        logger.info(f"Deleted bet {bet.id} (admin {acting_user_id})")
        return bet.id

    def list_bets(self) -> list[dict[str, Any]]:
        return [bet.to_view() for bet in self.load()]
