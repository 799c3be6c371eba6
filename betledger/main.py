"""
FastAPI application for the Bet Ledger
Includes REST API, the daily balance snapshot job, and health checks
"""

from contextlib import asynccontextmanager
from datetime import date, datetime
from typing import Optional
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.orm import Session

from betledger import __version__
from betledger.config import get_settings
from betledger.core.enums import BetStatus, BetType, FreebetStatus, TransactionType
from betledger.core.settlement import InvalidBetInput
from betledger.models import Database
from betledger.schemas import (
    BetCreate,
    BetSettle,
    BetUpdate,
    BookMakerCreate,
    BookMakerUpdate,
    FreebetCreate,
    FreebetUpdate,
    TransactionCreate,
    TransactionUpdate,
)
from betledger.services import bets as bet_service
from betledger.services import bookmakers as bookmaker_service
from betledger.services import freebets as freebet_service
from betledger.services import transactions as transaction_service
from betledger.services.errors import LedgerConflict, RecordNotFound
from betledger.services.snapshots import generate_daily_snapshot, list_snapshots, run_snapshot_job

# Logging setup
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database, start the snapshot scheduler; undo both on shutdown."""
    cfg = app.state.settings
    logger.info("Starting Bet Ledger %s", __version__)

    database = Database(cfg.database_url)
    database.create_all()
    app.state.db = database

    scheduler = None
    if cfg.scheduler_enabled:
        scheduler = BackgroundScheduler()
        scheduler.add_job(
            run_snapshot_job,
            CronTrigger(hour=cfg.snapshot_cron_hour, minute=0, timezone=cfg.snapshot_timezone),
            args=[database],
            id="daily_balance_snapshot",
            name="Daily Balance Snapshot",
            replace_existing=True,
        )
        scheduler.start()
        logger.info(
            "Scheduler started: balance snapshot@%02d:00 %s",
            cfg.snapshot_cron_hour, cfg.snapshot_timezone,
        )
    else:
        logger.info("Scheduler disabled")
    app.state.scheduler = scheduler

    yield

    logger.info("Shutting down Bet Ledger")
    if scheduler is not None and scheduler.running:
        scheduler.shutdown()
    database.dispose()


app = FastAPI(
    title="Bet Ledger",
    description="Bet settlement and bookmaker balance tracking",
    version=__version__,
    lifespan=lifespan,
)
app.state.settings = settings

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_db(request: Request):
    """One session per request, closed afterwards."""
    yield from request.app.state.db.sessions()


def _check_window(start_date: date, end_date: date) -> None:
    if end_date < start_date:
        raise HTTPException(status_code=422, detail="end_date must not be before start_date")


# ============================================================================
# HEALTH
# ============================================================================

@app.get("/")
async def root():
    """Health check"""
    return {
        "app": "Bet Ledger",
        "version": __version__,
        "status": "operational",
        "timestamp": datetime.utcnow().isoformat(),
    }


@app.get("/health")
def health_check(request: Request, db: Session = Depends(get_db)):
    health = {"status": "healthy", "database": "connected", "scheduler": "running"}

    try:
        db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Health check database error: %s", e)
        health["status"] = "degraded"
        health["database"] = f"error: {e}"

    scheduler = request.app.state.scheduler
    if scheduler is None:
        health["scheduler"] = "disabled"
    elif not scheduler.running:
        health["status"] = "degraded"
        health["scheduler"] = "stopped"

    return health


# ============================================================================
# BOOKMAKERS
# ============================================================================

@app.get("/api/bookmakers")
def get_bookmakers(db: Session = Depends(get_db)):
    return bookmaker_service.list_bookmakers(db)


@app.post("/api/bookmakers", status_code=201)
def create_bookmaker(payload: BookMakerCreate, db: Session = Depends(get_db)):
    return bookmaker_service.create_bookmaker(db, payload)


@app.get("/api/bookmakers/{bookmaker_id}")
def get_bookmaker(bookmaker_id: int, db: Session = Depends(get_db)):
    return bookmaker_service.bookmaker_to_dict(bookmaker_service.get_bookmaker(db, bookmaker_id))


@app.put("/api/bookmakers/{bookmaker_id}")
def update_bookmaker(bookmaker_id: int, payload: BookMakerUpdate, db: Session = Depends(get_db)):
    return bookmaker_service.update_bookmaker(db, bookmaker_id, payload)


@app.delete("/api/bookmakers/{bookmaker_id}")
def delete_bookmaker(bookmaker_id: int, db: Session = Depends(get_db)):
    bookmaker_service.delete_bookmaker(db, bookmaker_id)
    return {"message": "BookMaker deleted", "bookmaker_id": bookmaker_id}


@app.get("/api/bookmakers/{bookmaker_id}/balance")
def get_bookmaker_balance(bookmaker_id: int, db: Session = Depends(get_db)):
    """Current balance with its full breakdown."""
    return bookmaker_service.get_bookmaker_balance(db, bookmaker_id)


@app.get("/api/bookmakers/{bookmaker_id}/activity")
def get_bookmaker_activity(
    bookmaker_id: int,
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return bookmaker_service.get_bookmaker_activity(db, bookmaker_id, limit=limit)


@app.get("/api/bookmakers/{bookmaker_id}/performance")
def get_bookmaker_performance(
    bookmaker_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
):
    if start_date and end_date:
        _check_window(start_date, end_date)
    return bookmaker_service.get_bookmaker_performance(db, bookmaker_id, start_date, end_date)


# ============================================================================
# BETS
# ============================================================================

@app.get("/api/bets")
def get_bets(
    bet_type: Optional[BetType] = None,
    status: Optional[BetStatus] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return bet_service.list_bets(
        db,
        bet_type=bet_type.value if bet_type else None,
        status=status.value if status else None,
        page=page,
        limit=limit,
    )


@app.post("/api/bets", status_code=201)
def create_bet(payload: BetCreate, db: Session = Depends(get_db)):
    return bet_service.create_bet(db, payload)


@app.get("/api/bets/stats/summary")
def get_bet_stats(db: Session = Depends(get_db)):
    return bet_service.get_bet_stats(db)


@app.get("/api/bets/summary/daily")
def get_daily_summary(db: Session = Depends(get_db)):
    return bet_service.get_bets_summary(db, "day")


@app.get("/api/bets/summary/monthly")
def get_monthly_summary(db: Session = Depends(get_db)):
    return bet_service.get_bets_summary(db, "month")


@app.get("/api/bets/bookmaker/{bookmaker_id}")
def get_bets_by_bookmaker(bookmaker_id: int, db: Session = Depends(get_db)):
    return bet_service.bets_for_bookmaker(db, bookmaker_id)


@app.get("/api/bets/type/{bet_type}")
def get_bets_by_type(bet_type: BetType, db: Session = Depends(get_db)):
    return bet_service.list_bets(db, bet_type=bet_type.value)


@app.get("/api/bets/status/{status}")
def get_bets_by_status(status: BetStatus, db: Session = Depends(get_db)):
    return bet_service.list_bets(db, status=status.value)


@app.get("/api/bets/period/{start_date}/{end_date}")
def get_bets_by_period(start_date: date, end_date: date, db: Session = Depends(get_db)):
    _check_window(start_date, end_date)
    return bet_service.list_bets(db, start_date=start_date, end_date=end_date)


@app.get("/api/bets/{bet_id}")
def get_bet(bet_id: int, db: Session = Depends(get_db)):
    return bet_service.bet_to_dict(bet_service.get_bet(db, bet_id))


@app.put("/api/bets/{bet_id}")
def update_bet(bet_id: int, payload: BetUpdate, db: Session = Depends(get_db)):
    return bet_service.update_bet(db, bet_id, payload)


@app.put("/api/bets/{bet_id}/settle")
def settle_bet(bet_id: int, payload: BetSettle, db: Session = Depends(get_db)):
    """Resolve a pending bet as won or lost."""
    return bet_service.settle(db, bet_id, payload.status)


@app.delete("/api/bets/{bet_id}")
def delete_bet(bet_id: int, db: Session = Depends(get_db)):
    bet_service.delete_bet(db, bet_id)
    return {"message": "Bet deleted", "bet_id": bet_id}


# ============================================================================
# TRANSACTIONS
# ============================================================================

@app.get("/api/transactions")
def get_transactions(db: Session = Depends(get_db)):
    return transaction_service.list_transactions(db)


@app.post("/api/transactions", status_code=201)
def create_transaction(payload: TransactionCreate, db: Session = Depends(get_db)):
    return transaction_service.create_transaction(db, payload)


@app.get("/api/transactions/stats/summary")
def get_transaction_stats(db: Session = Depends(get_db)):
    return transaction_service.get_transaction_stats(db)


@app.get("/api/transactions/cashflow/monthly")
def get_monthly_cashflow(db: Session = Depends(get_db)):
    return transaction_service.get_monthly_cashflow(db)


@app.get("/api/transactions/summary/deposits")
def get_deposits_summary(db: Session = Depends(get_db)):
    return transaction_service.get_type_summary(db, TransactionType.DEPOSIT)


@app.get("/api/transactions/summary/withdrawals")
def get_withdrawals_summary(db: Session = Depends(get_db)):
    return transaction_service.get_type_summary(db, TransactionType.WITHDRAWAL)


@app.get("/api/transactions/bookmaker/{bookmaker_id}")
def get_transactions_by_bookmaker(bookmaker_id: int, db: Session = Depends(get_db)):
    bookmaker_service.get_bookmaker(db, bookmaker_id)
    return transaction_service.list_transactions(db, bookmaker_id=bookmaker_id)


@app.get("/api/transactions/type/{transaction_type}")
def get_transactions_by_type(transaction_type: TransactionType, db: Session = Depends(get_db)):
    return transaction_service.list_transactions(db, transaction_type=transaction_type.value)


@app.get("/api/transactions/range/{start_date}/{end_date}")
def get_transactions_by_range(start_date: date, end_date: date, db: Session = Depends(get_db)):
    _check_window(start_date, end_date)
    return transaction_service.list_transactions(db, start_date=start_date, end_date=end_date)


@app.get("/api/transactions/balance/{start_date}/{end_date}")
def get_period_balance(start_date: date, end_date: date, db: Session = Depends(get_db)):
    """Balance movement per bookmaker inside the window (initial balances excluded)."""
    _check_window(start_date, end_date)
    return transaction_service.get_period_balance(db, start_date, end_date)


@app.get("/api/transactions/{transaction_id}")
def get_transaction(transaction_id: int, db: Session = Depends(get_db)):
    return transaction_service.transaction_to_dict(
        transaction_service.get_transaction(db, transaction_id)
    )


@app.put("/api/transactions/{transaction_id}")
def update_transaction(transaction_id: int, payload: TransactionUpdate, db: Session = Depends(get_db)):
    return transaction_service.update_transaction(db, transaction_id, payload)


@app.delete("/api/transactions/{transaction_id}")
def delete_transaction(transaction_id: int, db: Session = Depends(get_db)):
    transaction_service.delete_transaction(db, transaction_id)
    return {"message": "Transaction deleted", "transaction_id": transaction_id}


# ============================================================================
# FREEBETS
# ============================================================================

@app.get("/api/freebets")
def get_freebets(db: Session = Depends(get_db)):
    return freebet_service.list_freebets(db)


@app.post("/api/freebets", status_code=201)
def create_freebet(payload: FreebetCreate, db: Session = Depends(get_db)):
    return freebet_service.create_freebet(db, payload)


@app.get("/api/freebets/stats/summary")
def get_freebet_stats(db: Session = Depends(get_db)):
    return freebet_service.get_freebet_stats(db)


@app.get("/api/freebets/expiring")
def get_expiring_freebets(days: int = Query(7, ge=0, le=365), db: Session = Depends(get_db)):
    return freebet_service.get_expiring_freebets(db, days=days)


@app.get("/api/freebets/conversion-rate")
def get_conversion_rate(db: Session = Depends(get_db)):
    return freebet_service.get_conversion_rate(db)


@app.get("/api/freebets/value/{min_amount}")
def get_freebets_by_value(min_amount: float, db: Session = Depends(get_db)):
    return freebet_service.get_freebets_by_value(db, min_amount)


@app.get("/api/freebets/bookmaker/{bookmaker_id}")
def get_freebets_by_bookmaker(bookmaker_id: int, db: Session = Depends(get_db)):
    bookmaker_service.get_bookmaker(db, bookmaker_id)
    return freebet_service.list_freebets(db, bookmaker_id=bookmaker_id)


@app.get("/api/freebets/status/{status}")
def get_freebets_by_status(status: FreebetStatus, db: Session = Depends(get_db)):
    return freebet_service.list_freebets(db, status=status.value)


@app.get("/api/freebets/{freebet_id}")
def get_freebet(freebet_id: int, db: Session = Depends(get_db)):
    return freebet_service.freebet_to_dict(freebet_service.get_freebet(db, freebet_id))


@app.put("/api/freebets/{freebet_id}")
def update_freebet(freebet_id: int, payload: FreebetUpdate, db: Session = Depends(get_db)):
    return freebet_service.update_freebet(db, freebet_id, payload)


@app.delete("/api/freebets/{freebet_id}")
def delete_freebet(freebet_id: int, db: Session = Depends(get_db)):
    freebet_service.delete_freebet(db, freebet_id)
    return {"message": "Freebet deleted", "freebet_id": freebet_id}


# ============================================================================
# SNAPSHOTS & ADMIN
# ============================================================================

@app.get("/api/snapshots")
def get_snapshots(days: int = Query(30, ge=1, le=365), db: Session = Depends(get_db)):
    return list_snapshots(db, days=days)


@app.post("/admin/snapshot")
def trigger_snapshot(db: Session = Depends(get_db)):
    """Write today's balance snapshot now instead of waiting for the scheduler."""
    snaps = generate_daily_snapshot(db)
    return {"message": "Snapshot stored", "bookmakers": len(snaps), "snapshot_date": date.today().isoformat()}


@app.get("/admin/scheduler/status")
def get_scheduler_status(request: Request):
    """Get scheduler job status"""
    scheduler = request.app.state.scheduler
    if scheduler is None:
        return {"running": False, "jobs": []}

    jobs = []
    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
        })

    return {
        "running": scheduler.running,
        "jobs": jobs,
    }


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(RecordNotFound)
async def not_found_handler(request, exc):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(LedgerConflict)
async def conflict_handler(request, exc):
    logger.warning("Rejected: %s", exc)
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(InvalidBetInput)
async def invalid_bet_handler(request, exc):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all exception handler"""
    logger.error("Unhandled exception: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
