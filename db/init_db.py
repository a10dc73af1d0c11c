"""
db/init_db.py
-------------
Creates the database schema (tables) if they do not already exist.
Run this module directly to initialize a fresh database:
    python -m db.init_db

Transaction categories are stored as free text in `transactions.category`;
there is no separate categories table.
"""

from db.connection import Database
from utils.logger import get_logger

logger = get_logger(__name__)

SCHEMA_SQL = """
-- Users: dashboard accounts and WhatsApp senders
CREATE TABLE IF NOT EXISTS users (
    id              SERIAL PRIMARY KEY,
    name            VARCHAR(120),
    email           VARCHAR(200) UNIQUE,
    whatsapp_number VARCHAR(32) UNIQUE,
    timezone        VARCHAR(64) DEFAULT 'America/Sao_Paulo',
    currency        VARCHAR(5) DEFAULT 'BRL',
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Transactions: every income or expense entry
CREATE TABLE IF NOT EXISTS transactions (
    id              SERIAL PRIMARY KEY,
    user_id         INT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    type            VARCHAR(10) NOT NULL CHECK (type IN ('income', 'expense')),
    amount          NUMERIC(12,2) NOT NULL CHECK (amount > 0),
    category        VARCHAR(80),
    description     TEXT DEFAULT '',
    payment_method  VARCHAR(10) NOT NULL DEFAULT 'cash'
                    CHECK (payment_method IN ('pix', 'card', 'transfer', 'cash')),
    date            DATE NOT NULL DEFAULT CURRENT_DATE,
    created_at      TIMESTAMPTZ DEFAULT NOW()
);

-- Bills: payables and receivables share one column layout
CREATE TABLE IF NOT EXISTS accounts_payable (
    id                  SERIAL PRIMARY KEY,
    user_id             INT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    amount              NUMERIC(12,2) NOT NULL CHECK (amount > 0),
    due_date            DATE NOT NULL,
    description         TEXT DEFAULT '',
    supplier_name       VARCHAR(200) NOT NULL,
    payment_method      VARCHAR(10) NOT NULL DEFAULT 'pix'
                        CHECK (payment_method IN ('pix', 'card', 'transfer', 'cash')),
    status              VARCHAR(10) NOT NULL DEFAULT 'pending'
                        CHECK (status IN ('pending', 'paid', 'overdue')),
    payment_date        DATE,
    is_recurring        BOOLEAN NOT NULL DEFAULT FALSE,
    recurrence_interval VARCHAR(10)
                        CHECK (recurrence_interval IN ('weekly', 'monthly', 'quarterly', 'annual')),
    recurrence_count    INT,
    recurrence_end_date DATE,
    created_at          TIMESTAMPTZ DEFAULT NOW()
);

CREATE TABLE IF NOT EXISTS accounts_receivable (
    id                  SERIAL PRIMARY KEY,
    user_id             INT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    amount              NUMERIC(12,2) NOT NULL CHECK (amount > 0),
    due_date            DATE NOT NULL,
    description         TEXT DEFAULT '',
    client_name         VARCHAR(200) NOT NULL,
    payment_method      VARCHAR(10) NOT NULL DEFAULT 'pix'
                        CHECK (payment_method IN ('pix', 'card', 'transfer', 'cash')),
    status              VARCHAR(10) NOT NULL DEFAULT 'pending'
                        CHECK (status IN ('pending', 'paid', 'overdue')),
    payment_date        DATE,
    is_recurring        BOOLEAN NOT NULL DEFAULT FALSE,
    recurrence_interval VARCHAR(10)
                        CHECK (recurrence_interval IN ('weekly', 'monthly', 'quarterly', 'annual')),
    recurrence_count    INT,
    recurrence_end_date DATE,
    created_at          TIMESTAMPTZ DEFAULT NOW()
);

-- Reminders: dispatched over WhatsApp on their due date
CREATE TABLE IF NOT EXISTS reminders (
    id                   SERIAL PRIMARY KEY,
    user_id              INT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    title                VARCHAR(200),
    description          TEXT,
    due_date             DATE NOT NULL,
    due_time             TIME,
    status               VARCHAR(10) NOT NULL DEFAULT 'pending',
    send_notification    BOOLEAN NOT NULL DEFAULT TRUE,
    notification_sent_at TIMESTAMPTZ,
    created_at           TIMESTAMPTZ DEFAULT NOW()
);

-- Indexes for faster queries
CREATE INDEX IF NOT EXISTS idx_transactions_user_date ON transactions(user_id, date);
CREATE INDEX IF NOT EXISTS idx_payable_user_due ON accounts_payable(user_id, due_date);
CREATE INDEX IF NOT EXISTS idx_receivable_user_due ON accounts_receivable(user_id, due_date);
CREATE INDEX IF NOT EXISTS idx_reminders_due ON reminders(due_date)
    WHERE notification_sent_at IS NULL;
"""


def create_tables(db: Database) -> None:
    """
    Execute the schema SQL to create all tables.
    Safe to call multiple times (uses IF NOT EXISTS).
    """
    conn = db.get_connection()
    try:
        with conn.cursor() as cur:
            cur.execute(SCHEMA_SQL)
        conn.commit()
        logger.info("Database schema initialized successfully.")
    except Exception as e:
        conn.rollback()
        logger.error(f"Failed to initialize schema: {e}")
        raise
    finally:
        db.release_connection(conn)


if __name__ == "__main__":
    from config import DATABASE_URL

    database = Database(DATABASE_URL)
    database.open()
    create_tables(database)
    database.close()
    logger.info("Database schema created successfully.")
