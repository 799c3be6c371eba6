"""
Database models for the Bet Ledger
SQLAlchemy ORM with PostgreSQL (SQLite works for tests)
"""

import logging
from datetime import date, datetime
from typing import Iterator

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    create_engine,
    text,
)
from sqlalchemy.orm import Session, declarative_base, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

Base = declarative_base()

MONEY = Numeric(12, 2)


class Database:
    """
    Explicit persistence handle: one engine plus its session factory.

    Created once at process start (FastAPI lifespan, scripts, tests) and
    passed to whoever needs a session; ``dispose()`` on shutdown.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        kwargs = {"echo": echo}
        if url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if url in ("sqlite://", "sqlite:///:memory:"):
                # A single shared connection keeps the in-memory DB alive
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True
        self.engine = create_engine(url, **kwargs)
        self.SessionLocal = sessionmaker(autoflush=False, bind=self.engine)

    def session(self) -> Session:
        return self.SessionLocal()

    def sessions(self) -> Iterator[Session]:
        """Yield one session and always close it (FastAPI dependency shape)."""
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def ping(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")


class BookMaker(Base):
    """A bookmaker or exchange account"""

    __tablename__ = "bookmakers"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, unique=True)
    type = Column(String(20), nullable=False)  # "regular" | "exchange"
    commission = Column(Numeric(5, 2), nullable=False, default=0)  # % of winning profit
    initial_balance = Column(MONEY, nullable=False, default=0)
    info = Column(String(500))

    bets = relationship("Bet", back_populates="bookmaker")
    transactions = relationship("Transaction", back_populates="bookmaker")
    freebets = relationship("Freebet", back_populates="bookmaker")

    created_at = Column(DateTime, default=datetime.utcnow)


class Bet(Base):
    """One wagering record. liability/result are always derived, never entered."""

    __tablename__ = "bets"

    id = Column(Integer, primary_key=True, index=True)
    bookmaker_id = Column(Integer, ForeignKey("bookmakers.id"), nullable=False, index=True)

    bet_date = Column(Date, nullable=False, index=True, default=date.today)
    event_date = Column(Date, nullable=False)
    event = Column(String(200), nullable=False)
    bet = Column(String(200), nullable=False)  # Selection, e.g. "Real Madrid to win"

    bank = Column(String(20), nullable=False, default="real")  # "real" | "freebet"
    bet_type = Column(String(20), nullable=False, index=True)
    stake = Column(MONEY, nullable=False)
    odds = Column(Numeric(10, 3), nullable=False)  # Decimal (European) odds
    status = Column(String(20), nullable=False, default="pending", index=True)

    # Derived by the settlement calculator
    liability = Column(MONEY, nullable=False, default=0)
    result = Column(MONEY, nullable=False, default=0)

    matched_bet_id = Column(Integer, index=True)  # Groups the legs of one matched bet
    promo = Column(String(100))
    info = Column(String(500))

    bookmaker = relationship("BookMaker", back_populates="bets")

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class Transaction(Base):
    """Real-money deposit or withdrawal against a bookmaker"""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True)
    bookmaker_id = Column(Integer, ForeignKey("bookmakers.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    type = Column(String(20), nullable=False)  # "deposit" | "withdrawal"
    amount = Column(MONEY, nullable=False)
    info = Column(String(500))

    bookmaker = relationship("BookMaker", back_populates="transactions")


class Freebet(Base):
    """Promotional credit offered by a bookmaker"""

    __tablename__ = "freebets"

    id = Column(Integer, primary_key=True, index=True)
    bookmaker_id = Column(Integer, ForeignKey("bookmakers.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    type = Column(String(20), nullable=False)
    amount = Column(MONEY)
    event = Column(String(200), nullable=False)
    bet = Column(String(200))
    requirements = Column(String(500))
    status = Column(String(20), nullable=False, index=True)

    bookmaker = relationship("BookMaker", back_populates="freebets")


class BalanceSnapshot(Base):
    """Daily copy of each bookmaker's balance breakdown"""

    __tablename__ = "balance_snapshots"

    id = Column(Integer, primary_key=True, index=True)
    snapshot_date = Column(Date, nullable=False, index=True)
    bookmaker_id = Column(Integer, ForeignKey("bookmakers.id"), nullable=False, index=True)

    initial_balance = Column(MONEY, nullable=False)
    total_deposits = Column(MONEY, nullable=False)
    total_withdrawals = Column(MONEY, nullable=False)
    total_results = Column(MONEY, nullable=False)
    total_liability = Column(MONEY, nullable=False)
    balance = Column(MONEY, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)

    bookmaker = relationship("BookMaker")

    __table_args__ = (
        UniqueConstraint("snapshot_date", "bookmaker_id", name="_snapshot_date_bookmaker_uc"),
    )
