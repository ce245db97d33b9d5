"""FastAPI application exposing the account and bet operations.

Handlers are plain ``def`` functions, so FastAPI runs each request in its
thread pool as an independent unit of work. Nothing is cached between
requests: every handler re-reads the tables it touches.
"""

import logging

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware

from scrutinio import __version__
from scrutinio.accounts import UserLedger
from scrutinio.api.error_handlers import register_error_handlers
from scrutinio.api.schemas import (
    AdminRequest,
    CreateBetRequest,
    CredentialsRequest,
    DeleteBetRequest,
    JoinBetRequest,
    MigrateRequest,
    TerminateBetRequest,
    UpdateUserRequest,
    UserRequest,
)
from scrutinio.bets import BetEngine
from scrutinio.config import Settings, get_settings
from scrutinio.services.objectstore import ObjectStore, create_object_store
from scrutinio.storage import TableRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_ledger(request: Request) -> UserLedger:
    return request.app.state.ledger


def get_engine(request: Request) -> BetEngine:
    return request.app.state.engine


# ============================================================================
# Accounts
# ============================================================================


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: CredentialsRequest, ledger: UserLedger = Depends(get_ledger)):
    user = ledger.register(body.username, body.password)
    return {"status": "created", "user": user.public()}


@router.post("/login")
def login(body: CredentialsRequest, ledger: UserLedger = Depends(get_ledger)):
    user = ledger.login(body.username, body.password)
    return {"status": "ok", "user": user.session()}


@router.post("/profile")
def profile(body: UserRequest, ledger: UserLedger = Depends(get_ledger)):
    user = ledger.profile(body.user_id)
    return {"status": "ok", "user": user.profile()}


@router.post("/users/update")
def update_user(body: UpdateUserRequest, ledger: UserLedger = Depends(get_ledger)):
    user = ledger.update_credentials(body.user_id, body.new_username, body.new_password)
    return {"status": "updated", "user": user.public()}


@router.post("/users/reset")
def reset_counters(body: AdminRequest, ledger: UserLedger = Depends(get_ledger)):
    total = ledger.reset_all_counters(
        user_id=body.user_id, username=body.username, password=body.password
    )
    return {"status": "reset", "total": total}


@router.post("/users/purge")
def purge_users(body: AdminRequest, ledger: UserLedger = Depends(get_ledger)):
    total = ledger.purge_all(user_id=body.user_id, username=body.username, password=body.password)
    return {"status": "purged", "total": total}


@router.post("/users/migrate")
def migrate_users(body: MigrateRequest, ledger: UserLedger = Depends(get_ledger)):
    result = ledger.promote(username=body.promote_username, user_id=body.promote_user_id)
    return {
        "status": "migrated",
        "total": result.total,
        "promoted": result.promoted.public() if result.promoted else None,
    }


# ============================================================================
# Bets
# ============================================================================


@router.post("/bets/create", status_code=status.HTTP_201_CREATED)
def create_bet(body: CreateBetRequest, engine: BetEngine = Depends(get_engine)):
    bet = engine.create(
        owner_id=body.user_id,
        subject=body.subject,
        outcome=body.outcome,
        stance=body.stance,
        probation_detail=body.probation_detail,
    )
    return {"status": "created", "bet": bet.to_view()}


@router.post("/bets/join")
def join_bet(body: JoinBetRequest, engine: BetEngine = Depends(get_engine)):
    bet = engine.join(body.bet_id, body.user_id, body.stance)
    return {"status": "joined", "bet": bet.to_view()}


@router.post("/bets/terminate")
def terminate_bet(body: TerminateBetRequest, engine: BetEngine = Depends(get_engine)):
    settlement = engine.terminate(body.user_id, body.bet_id, body.realized)
    return {
        "status": "terminated",
        "betId": settlement.bet_id,
        "winners": settlement.winners,
        "losers": settlement.losers,
        "realized": settlement.realized_text,
    }


@router.post("/bets/delete")
def delete_bet(body: DeleteBetRequest, engine: BetEngine = Depends(get_engine)):
    bet_id = engine.delete(body.user_id, body.bet_id)
    return {"status": "deleted", "betId": bet_id}


@router.post("/bets/list")
def list_bets(engine: BetEngine = Depends(get_engine)):
    return {"status": "ok", "bets": engine.list_bets()}


# ============================================================================
# Application factory
# ============================================================================


def create_app(settings: Settings | None = None, store: ObjectStore | None = None) -> FastAPI:
    """Build the app with its own storage client, repository, ledger and engine."""
    settings = settings or get_settings()
    if store is None:
        store = create_object_store(settings.storage.object_store_config())

    repository = TableRepository.from_config(store, settings.storage)
    ledger = UserLedger(repository, settings.security)
    engine = BetEngine(repository, ledger)

    app = FastAPI(title="Scrutinio API", version=__version__)
    app.state.settings = settings
    app.state.ledger = ledger
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.server.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(router)

    @app.get("/health")
    def health():
        return {"status": "ok", "service": "scrutinio-api", "version": __version__}

    logger.info(
        f"Scrutinio API ready (bucket={settings.storage.bucket}, "
        f"prefix={settings.storage.prefix!r}, suffix={settings.storage.object_suffix})"
    )
    return app
