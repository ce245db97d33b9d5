"""The ``users`` table as an account store and win/loss ledger.

Every persisted operation reads the whole table, mutates the in-memory
list and writes the whole table back. The lookup and counter helpers work
on an already loaded list so the bet engine can apply a full settlement
in one read and one write.
"""

import logging
from collections.abc import Iterable
from uuid import uuid4

from scrutinio.accounts.models import PromotionResult, UserRecord
from scrutinio.accounts.password import hash_password, verify_password
from scrutinio.config import SecurityConfig
from scrutinio.exceptions import (
    AuthError,
    ConflictError,
    ForbiddenError,
    InputValidationError,
    NotFoundError,
)
from scrutinio.storage import USERS_TABLE, TableRepository

logger = logging.getLogger(__name__)


def generate_user_id() -> str:
    return uuid4().hex[:12]


# ============================================================================
# In-memory helpers
# ============================================================================


def find_by_id(users: Iterable[UserRecord], user_id: str) -> UserRecord | None:
    return next((u for u in users if u.id == str(user_id)), None)


def find_by_username(
    users: Iterable[UserRecord], username: str, case_sensitive: bool = True
) -> UserRecord | None:
    if case_sensitive:
        return next((u for u in users if u.username == username), None)
    folded = username.casefold()
    return next((u for u in users if u.username.casefold() == folded), None)


def apply_counters(users: list[UserRecord], user_id: str, d_wins: int, d_losses: int) -> bool:
    """Adjust one user's counters in place, clamped at zero. Returns True if anything changed."""
    user = find_by_id(users, user_id)
    if user is None:
        logger.debug(f"Counter update skipped: user {user_id} not in ledger")
        return False

    wins = max(0, user.wins + d_wins)
    losses = max(0, user.losses + d_losses)
    changed = (wins, losses) != (user.wins, user.losses)
    user.wins = wins
    user.losses = losses
    return changed


# ============================================================================
# Ledger
# ============================================================================


class UserLedger:
    """Account management and counters backed by the ``users`` table."""

    def __init__(self, repository: TableRepository, security: SecurityConfig | None = None):
        self.repository = repository
        self.security = security or SecurityConfig()

    def load(self) -> list[UserRecord]:
        return [UserRecord.from_row(row) for row in self.repository.read_table(USERS_TABLE)]

    def save(self, users: Iterable[UserRecord]) -> None:
        self.repository.write_table(USERS_TABLE, [u.to_row() for u in users])

    def _hash(self, plain: str) -> str:
        return hash_password(
            plain,
            iterations=self.security.password_iterations,
            salt_bytes=self.security.salt_bytes,
            key_length=self.security.key_length,
        )

    def _require(self, users: list[UserRecord], user_id: str) -> UserRecord:
        user = find_by_id(users, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def is_admin(self, users: Iterable[UserRecord], user_id: str) -> bool:
        user = find_by_id(users, user_id)
        return bool(user and user.is_admin)

    def authorize_admin(
        self,
        users: list[UserRecord],
        user_id: str | None = None,
        username: str | None = None,
        password: str | None = None,
    ) -> UserRecord:
        """Resolve the acting admin from a user id or from username and password."""
        acting: UserRecord | None = None
        if user_id:
            acting = find_by_id(users, user_id)
        elif username and password:
            candidate = find_by_username(users, username)
            if candidate and verify_password(password, candidate.password):
                acting = candidate

        if acting is None or not acting.is_admin:
            raise ForbiddenError("Admin privileges required")
        return acting

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    def register(self, username: str, password: str) -> UserRecord:
        username = (username or "").strip()
        if not username or not password:
            raise InputValidationError("username and password are required")
        if len(username) < self.security.min_username_length:
            raise InputValidationError(
                f"username must be at least {self.security.min_username_length} characters"
            )

        users = self.load()
        if find_by_username(users, username) is not None:
            raise ConflictError("Username already exists")

        user = UserRecord(id=generate_user_id(), username=username, password=self._hash(password))
        users.append(user)
        self.save(users)

        logger.info(f"Registered user {user.username} ({user.id})")
        return user

    def login(self, username: str, password: str) -> UserRecord:
        username = (username or "").strip()
        if not username or not password:
            raise InputValidationError("username and password are required")

        for user in self.load():
            if user.username == username and verify_password(password, user.password):
                return user

        logger.info(f"Rejected login for {username!r}")
        raise AuthError("Invalid credentials")

    def profile(self, user_id: str) -> UserRecord:
        if not user_id:
            raise InputValidationError("userId is required")
        return self._require(self.load(), user_id)

    def update_credentials(
        self,
        user_id: str,
        new_username: str | None = None,
        new_password: str | None = None,
    ) -> UserRecord:
        new_username = (new_username or "").strip() or None
        if not user_id or not (new_username or new_password):
            raise InputValidationError("userId and at least one of newUsername/newPassword are required")
        if new_username and len(new_username) < self.security.min_username_length:
            raise InputValidationError(
                f"username must be at least {self.security.min_username_length} characters"
            )

        users = self.load()
        user = self._require(users, user_id)

        if new_username:
            folded = new_username.casefold()
            if any(u.id != user.id and u.username.casefold() == folded for u in users):
                raise ConflictError("Username already in use")
            user.username = new_username
        if new_password:
            user.password = self._hash(new_password)

        self.save(users)
        logger.info(f"Updated credentials for user {user.id}")
        return user

    # ------------------------------------------------------------------
    # Counters and flags
    # ------------------------------------------------------------------

    def upsert_counters(self, user_id: str, d_wins: int = 0, d_losses: int = 0) -> UserRecord:
        users = self.load()
        user = self._require(users, user_id)
        if apply_counters(users, user_id, d_wins, d_losses):
            self.save(users)
        return user

    def set_admin(self, user_id: str, is_admin: bool = True) -> UserRecord:
        users = self.load()
        user = self._require(users, user_id)
        if user.is_admin != is_admin:
            user.is_admin = is_admin
            self.save(users)
            logger.info(f"Set is_admin={is_admin} for user {user.id}")
        return user

    def reset_all_counters(
        self,
        user_id: str | None = None,
        username: str | None = None,
        password: str | None = None,
    ) -> int:
        users = self.load()
        acting = self.authorize_admin(users, user_id=user_id, username=username, password=password)

        for user in users:
            user.wins = 0
            user.losses = 0
        self.save(users)

        logger.info(f"Admin {acting.id} reset counters for {len(users)} users")
        return len(users)

    def purge_all(
        self,
        user_id: str | None = None,
        username: str | None = None,
        password: str | None = None,
    ) -> int:
        users = self.load()
        acting = self.authorize_admin(users, user_id=user_id, username=username, password=password)

        self.save([])
        logger.warning(f"Admin {acting.id} purged {len(users)} users")
        return 0

    def promote(self, username: str | None = None, user_id: str | None = None) -> PromotionResult:
        """Grant the admin flag by username or id.

        The table is always rewritten, which also upgrades objects written
        with an older column layout. Running it again changes nothing else.
        """
        if not self.repository.table_exists(USERS_TABLE):
            raise NotFoundError("users table not found")

        username = (username or "").strip()
        user_id = (user_id or "").strip()

        users = self.load()
        for user in users:
            if not user.is_admin and (
                (username and user.username == username) or (user_id and user.id == user_id)
            ):
                user.is_admin = True
                logger.info(f"Promoted user {user.username} ({user.id}) to admin")
        self.save(users)

        promoted = next(
            (
                u
                for u in users
                if u.is_admin and ((username and u.username == username) or (user_id and u.id == user_id))
            ),
            None,
        )
        return PromotionResult(total=len(users), promoted=promoted)
