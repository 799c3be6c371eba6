#!/usr/bin/env python3
"""
Database initialization script
Creates all ledger tables and optionally seeds demo data
"""

import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from datetime import date, timedelta
import logging

from sqlalchemy import inspect

from betledger.config import get_settings
from betledger.models import Database
from betledger.schemas import BetCreate, BookMakerCreate, FreebetCreate, TransactionCreate
from betledger.services.bets import create_bet, settle
from betledger.services.bookmakers import create_bookmaker
from betledger.services.freebets import create_freebet
from betledger.services.transactions import create_transaction

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def init_database(database: Database, drop_existing: bool = False):
    """
    Initialize database tables

    Args:
        drop_existing: If True, drops all tables first (DANGER: data loss!)
    """
    logger.info("Initializing Bet Ledger database...")

    if drop_existing:
        logger.warning("Dropping all existing tables!")
        response = input("Are you sure? This will delete all data. Type 'yes' to confirm: ")
        if response.lower() != 'yes':
            logger.info("Aborted.")
            return False

        database.drop_all()
        logger.info("Existing tables dropped")

    database.create_all()
    logger.info("Database tables created successfully")

    tables = inspect(database.engine).get_table_names()
    logger.info("Tables: %s", ", ".join(tables))
    return True


def seed_test_data(database: Database):
    """Add a bookmaker, an exchange and a small matched-betting history"""
    logger.info("Seeding test data...")
    today = date.today()
    db = database.session()

    try:
        bookie = create_bookmaker(db, BookMakerCreate(
            name="Demo Sportsbook", type="regular", commission=0, initial_balance=0,
        ))
        exchange = create_bookmaker(db, BookMakerCreate(
            name="Demo Exchange", type="exchange", commission=5, initial_balance=0,
        ))

        for bm in (bookie, exchange):
            create_transaction(db, TransactionCreate(
                bookmaker_id=bm["id"], date=today - timedelta(days=7), type="deposit", amount=200,
            ))

        event = "Real Madrid v Sevilla"
        back = create_bet(db, BetCreate(
            bookmaker_id=bookie["id"], bet_type="mugBet", bet_date=today - timedelta(days=2),
            event_date=today - timedelta(days=1), event=event, bet="Real Madrid",
            stake=100, odds=2.5, promo="Bet 100 get 25",
        ))
        lay = create_bet(db, BetCreate(
            bookmaker_id=exchange["id"], bet_type="layBet", bet_date=today - timedelta(days=2),
            event_date=today - timedelta(days=1), event=event, bet="Real Madrid",
            stake=100, odds=2.6, matched_bet_id=back["id"],
        ))
        settle(db, back["id"], "lost")
        settle(db, lay["id"], "won")

        create_freebet(db, FreebetCreate(
            bookmaker_id=bookie["id"], date=today + timedelta(days=3), type="bet-and-get",
            amount=25, event=event, requirements="Qualifying bet of 100 at odds >= 2.0",
        ))

        logger.info("Test data seeded")

    except Exception as e:
        logger.error("Error seeding data: %s", e)
        db.rollback()

    finally:
        db.close()


def check_connection(database: Database):
    """Test database connection"""
    try:
        database.ping()
        logger.info("Database connection successful")
        return True
    except Exception as e:
        logger.error("Database connection failed: %s", e)
        return False


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Initialize Bet Ledger database")
    parser.add_argument("--drop", action="store_true", help="Drop existing tables (DANGER!)")
    parser.add_argument("--seed", action="store_true", help="Seed demo data")
    parser.add_argument("--check", action="store_true", help="Only check connection")

    args = parser.parse_args()
    database = Database(get_settings().database_url)

    try:
        if args.check:
            check_connection(database)
        elif check_connection(database):
            if init_database(database, drop_existing=args.drop) and args.seed:
                seed_test_data(database)
            logger.info("Database initialization complete!")
        else:
            logger.error("Cannot initialize database - connection failed")
            sys.exit(1)
    finally:
        database.dispose()
