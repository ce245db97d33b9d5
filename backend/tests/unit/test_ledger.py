"""
Unit Tests: User Ledger

Test cases:
- Registration rules and duplicate usernames
- Login and profile
- Credential updates (case-insensitive collisions, hashed passwords)
- Counter updates clamped at zero
- Admin-only reset and purge
- Promotion (migrate) idempotence
"""

import pytest

from scrutinio.accounts import UserRecord, apply_counters, find_by_username
from scrutinio.accounts.password import is_hashed
from scrutinio.exceptions import (
    AuthError,
    ConflictError,
    ForbiddenError,
    InputValidationError,
    NotFoundError,
)
from scrutinio.storage import USERS_TABLE


# ============================================================================
# Accounts
# ============================================================================


def test_register_stores_hashed_password(ledger):
    user = ledger.register("alice", "p1")

    stored = ledger.load()
    assert [u.username for u in stored] == ["alice"]
    assert stored[0].id == user.id
    assert is_hashed(stored[0].password)
    assert stored[0].wins == stored[0].losses == 0
    assert stored[0].is_admin is False


def test_duplicate_registration_is_conflict(ledger):
    ledger.register("alice", "p1")

    with pytest.raises(ConflictError, match="Username already exists"):
        ledger.register("alice", "p2")

    assert [u.username for u in ledger.load()] == ["alice"]


def test_register_duplicate_check_is_case_sensitive(ledger):
    ledger.register("alice", "p1")
    ledger.register("Alice", "p2")

    assert len(ledger.load()) == 2


@pytest.mark.parametrize(
    "username,password",
    [("", "pw"), ("alice", ""), ("ab", "pw"), ("   ", "pw"), (" ab ", "pw")],
)
def test_register_validation(ledger, username, password):
    with pytest.raises(InputValidationError):
        ledger.register(username, password)

    assert not ledger.repository.table_exists(USERS_TABLE)


def test_login(ledger):
    registered = ledger.register("alice", "p1")

    assert ledger.login("alice", "p1").id == registered.id

    with pytest.raises(AuthError, match="Invalid credentials"):
        ledger.login("alice", "wrong")
    with pytest.raises(AuthError, match="Invalid credentials"):
        ledger.login("nobody", "p1")


def test_login_on_empty_table(ledger):
    with pytest.raises(AuthError):
        ledger.login("alice", "p1")


def test_login_accepts_legacy_plain_text_row(ledger):
    ledger.save([UserRecord(id="legacy1", username="old", password="demo")])

    assert ledger.login("old", "demo").id == "legacy1"
    with pytest.raises(AuthError):
        ledger.login("old", "DEMO")


def test_profile(ledger):
    user = ledger.register("alice", "p1")

    assert ledger.profile(user.id).profile() == {
        "id": user.id,
        "username": "alice",
        "wins": 0,
        "losses": 0,
    }
    with pytest.raises(NotFoundError):
        ledger.profile("missing")
    with pytest.raises(InputValidationError):
        ledger.profile("")


def test_update_credentials(ledger):
    user = ledger.register("alice", "p1")

    updated = ledger.update_credentials(user.id, new_username="alicia", new_password="p2")

    assert updated.username == "alicia"
    assert ledger.login("alicia", "p2").id == user.id
    assert is_hashed(ledger.load()[0].password)


def test_update_username_collision_ignores_case(ledger):
    ledger.register("alice", "p1")
    bob = ledger.register("bob", "p2")

    with pytest.raises(ConflictError, match="already in use"):
        ledger.update_credentials(bob.id, new_username="ALICE")


def test_update_own_username_case_is_allowed(ledger):
    alice = ledger.register("alice", "p1")

    assert ledger.update_credentials(alice.id, new_username="Alice").username == "Alice"


def test_update_requires_a_change(ledger):
    alice = ledger.register("alice", "p1")

    with pytest.raises(InputValidationError):
        ledger.update_credentials(alice.id)
    with pytest.raises(NotFoundError):
        ledger.update_credentials("missing", new_password="x")


def test_usernames_are_stripped(ledger):
    alice = ledger.register("  alice ", "p1")

    assert alice.username == "alice"
    assert ledger.login(" alice", "p1").id == alice.id
    with pytest.raises(InputValidationError):
        ledger.update_credentials(alice.id, new_username="    ")
    with pytest.raises(InputValidationError):
        ledger.update_credentials(alice.id, new_username=" al ")
    assert ledger.profile(alice.id).username == "alice"


# ============================================================================
# Counters
# ============================================================================


def test_apply_counters_clamps_and_reports_change():
    users = [UserRecord(id="a", username="alice", wins=1, losses=0)]

    assert apply_counters(users, "a", -5, 0) is True
    assert users[0].wins == 0
    assert apply_counters(users, "a", -1, -1) is False
    assert apply_counters(users, "ghost", 1, 1) is False


def test_upsert_counters_persists(ledger):
    alice = ledger.register("alice", "p1")

    ledger.upsert_counters(alice.id, d_wins=2, d_losses=1)
    ledger.upsert_counters(alice.id, d_losses=-3)

    stored = ledger.profile(alice.id)
    assert (stored.wins, stored.losses) == (2, 0)


def test_find_by_username_folding():
    users = [UserRecord(id="a", username="Alice")]

    assert find_by_username(users, "alice") is None
    assert find_by_username(users, "alice", case_sensitive=False).id == "a"


# ============================================================================
# Admin operations
# ============================================================================


def test_reset_all_counters_by_admin_id(ledger, users):
    ledger.upsert_counters(users["u1"], d_wins=3)
    ledger.upsert_counters(users["u2"], d_losses=2)

    assert ledger.reset_all_counters(user_id=users["admin"]) == 3
    assert all(u.wins == 0 and u.losses == 0 for u in ledger.load())


def test_reset_all_counters_by_admin_credentials(ledger, users):
    assert ledger.reset_all_counters(username="admin", password="root") == 3


def test_reset_requires_admin(ledger, users):
    ledger.upsert_counters(users["u1"], d_wins=1)

    with pytest.raises(ForbiddenError):
        ledger.reset_all_counters(user_id=users["u1"])
    with pytest.raises(ForbiddenError):
        ledger.reset_all_counters(username="admin", password="wrong")
    with pytest.raises(ForbiddenError):
        ledger.reset_all_counters()

    assert ledger.profile(users["u1"]).wins == 1


def test_purge_all_empties_table(ledger, users):
    assert ledger.purge_all(user_id=users["admin"]) == 0

    assert ledger.repository.table_exists(USERS_TABLE)
    assert ledger.load() == []


def test_purge_requires_admin(ledger, users):
    with pytest.raises(ForbiddenError):
        ledger.purge_all(user_id=users["u2"])

    assert len(ledger.load()) == 3


def test_promote_without_table_is_not_found(ledger):
    with pytest.raises(NotFoundError, match="users table not found"):
        ledger.promote(username="alice")


def test_promote_is_idempotent(ledger):
    alice = ledger.register("alice", "p1")
    ledger.register("bob", "p2")

    first = ledger.promote(username="alice")
    second = ledger.promote(user_id=alice.id)

    assert first.total == second.total == 2
    assert first.promoted.id == second.promoted.id == alice.id
    assert [u.username for u in ledger.load() if u.is_admin] == ["alice"]


def test_promote_unknown_user_rewrites_table(ledger):
    ledger.register("alice", "p1")

    result = ledger.promote(username="nobody")

    assert result.total == 1
    assert result.promoted is None
