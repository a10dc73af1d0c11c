"""
main.py
-------
Entry point for the AssistentePro backend.

Responsibilities:
    - Open the database connection pool and create the schema.
    - Wire repositories, services and external clients together.
    - Build the Flask app with all blueprints and error handlers.
"""

from dataclasses import dataclass
from typing import Optional

import psycopg2
from flask import Flask, jsonify

import config
from ai.gemini_client import GeminiClient
from db.connection import Database, DatabaseBusyError
from db.init_db import create_tables
from handlers.bills import bills_bp
from handlers.profile import profile_bp
from handlers.reminders import reminders_bp
from handlers.transactions import transactions_bp
from handlers.webhook import whatsapp_bp
from messaging.whatsapp import WhatsAppClient
from repositories.bill_repo import BillRepository
from repositories.reminder_repo import ReminderRepository
from repositories.transaction_repo import TransactionRepository
from repositories.user_repo import UserRepository
from security.rate_limiter import RateLimiter
from services.bill_service import BillService
from services.errors import NotFoundError, ValidationError
from services.message_service import MessageService
from services.reminder_service import ReminderService
from services.transaction_service import TransactionService
from utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Services:
    """Everything the handlers need, built once per process."""
    users: UserRepository
    bills: BillService
    transactions: TransactionService
    messages: MessageService
    reminders: ReminderService


def build_services(db: Database) -> Services:
    """Wire repositories and services around an open database handle."""
    messenger = WhatsAppClient(
        access_token=config.META_ACCESS_TOKEN,
        phone_number_id=config.META_PHONE_NUMBER_ID,
        api_version=config.META_GRAPH_VERSION,
    )
    classifier = None
    if config.GEMINI_API_KEY:
        classifier = GeminiClient(config.GEMINI_API_KEY, config.GEMINI_MODEL)
    else:
        logger.warning("GEMINI_API_KEY is not set: WhatsApp messages will not be classified.")

    users = UserRepository(db)
    transactions = TransactionService(TransactionRepository(db))
    return Services(
        users=users,
        bills=BillService(BillRepository(db)),
        transactions=transactions,
        messages=MessageService(
            users=users,
            transactions=transactions,
            messenger=messenger,
            classifier=classifier,
            rate_limiter=RateLimiter(config.RATE_LIMIT_MESSAGES, config.RATE_LIMIT_WINDOW_SECONDS),
        ),
        reminders=ReminderService(ReminderRepository(db), messenger),
    )


def _connect() -> Optional[Services]:
    """Open the pool and build services; None when the database is unreachable."""
    db = Database(config.DATABASE_URL)
    try:
        db.open()
        create_tables(db)
    except psycopg2.Error as e:
        logger.error(f"Database unavailable, API will answer 'not configured': {e}")
        db.close()
        return None
    return build_services(db)


def create_app(services: Optional[Services] = None, overrides: Optional[dict] = None) -> Flask:
    """
    Build the Flask application.

    Args:
        services: Pre-built service container (tests pass fakes here).
            When omitted, one is built from `config`.
        overrides: Extra Flask config values.
    """
    app = Flask(__name__)
    app.config.update(
        META_VERIFY_TOKEN=config.META_VERIFY_TOKEN,
        REMINDER_CRON_SECRET=config.REMINDER_CRON_SECRET,
    )
    if overrides:
        app.config.update(overrides)

    app.extensions["services"] = services if services is not None else _connect()

    app.register_blueprint(whatsapp_bp)
    app.register_blueprint(reminders_bp)
    app.register_blueprint(bills_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(profile_bp)

    @app.errorhandler(ValidationError)
    def _validation_error(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(NotFoundError)
    def _not_found(e):
        return jsonify({"error": str(e)}), 404

    @app.errorhandler(DatabaseBusyError)
    def _database_busy(e):
        logger.warning(f"Request rejected: {e}")
        return jsonify({"error": "Database busy, try again"}), 503

    @app.route("/health", methods=["GET"])
    def health():
        configured = app.extensions["services"] is not None
        return jsonify({"status": "ok", "database": configured}), 200

    return app


def main() -> None:
    """Run the development server."""
    app = create_app()
    logger.info(f"🚀 AssistentePro listening on {config.HOST}:{config.PORT}")
    app.run(host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    main()
