"""
repositories/transaction_repo.py
--------------------------------
Data access layer for income/expense transactions.
All SQL queries related to the `transactions` table live here.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from db.connection import Database
from models.bill import PaymentMethod
from models.transaction import DEFAULT_CATEGORY, Transaction
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = "id, user_id, type, amount, category, description, payment_method, date, created_at"


class TransactionRepository:
    """Repository for CRUD operations on the transactions table."""

    def __init__(self, db: Database):
        self.db = db

    # ── CREATE ────────────────────────────────────────────

    def add(self, tx: Transaction) -> Transaction:
        """
        Insert a new income/expense record.

        Returns:
            The same Transaction with its `id` and `created_at` populated.
        """
        sql = """
            INSERT INTO transactions (user_id, type, amount, category, description, payment_method, date)
            VALUES (%s, %s, %s, %s, %s, %s, %s)
            RETURNING id, created_at;
        """
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    tx.user_id, tx.type, tx.amount, tx.category,
                    tx.description, tx.payment_method.value, tx.date,
                ))
                row = cur.fetchone()
                tx.id = row[0]
                tx.created_at = row[1]
            conn.commit()
            logger.info(f"Added {tx.type} #{tx.id} for user {tx.user_id}")
            return tx
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to add transaction: {e}")
            raise
        finally:
            self.db.release_connection(conn)

    # ── READ ──────────────────────────────────────────────

    def get_by_id(self, tx_id: int, user_id: int) -> Optional[Transaction]:
        sql = f"SELECT {_COLUMNS} FROM transactions WHERE id = %s AND user_id = %s;"
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (tx_id, user_id))
                row = cur.fetchone()
                return self._row_to_transaction(row) if row else None
        finally:
            self.db.release_connection(conn)

    def find(
        self,
        user_id: int,
        start: Optional[date] = None,
        end: Optional[date] = None,
        tx_type: Optional[str] = None,
    ) -> list[Transaction]:
        """
        Fetch a user's transactions, newest first.

        Args:
            start: Start date (inclusive).
            end: End date (inclusive).
            tx_type: Optional filter ('income' or 'expense').
        """
        sql = f"SELECT {_COLUMNS} FROM transactions WHERE user_id = %s"
        params: list = [user_id]
        if start:
            sql += " AND date >= %s"
            params.append(start)
        if end:
            sql += " AND date <= %s"
            params.append(end)
        if tx_type:
            sql += " AND type = %s"
            params.append(tx_type)
        sql += " ORDER BY date DESC, id DESC;"

        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return [self._row_to_transaction(r) for r in cur.fetchall()]
        finally:
            self.db.release_connection(conn)

    def get_totals(
        self, user_id: int, start: Optional[date] = None, end: Optional[date] = None
    ) -> dict:
        """
        Sum income and expenses, optionally within a date range.

        Returns:
            Dict with Decimal values under 'total_income' and 'total_expenses'.
        """
        sql = "SELECT type, COALESCE(SUM(amount), 0) FROM transactions WHERE user_id = %s"
        params: list = [user_id]
        if start:
            sql += " AND date >= %s"
            params.append(start)
        if end:
            sql += " AND date <= %s"
            params.append(end)
        sql += " GROUP BY type;"

        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                result = {"total_income": Decimal("0"), "total_expenses": Decimal("0")}
                for tx_type, total in cur.fetchall():
                    if tx_type == "income":
                        result["total_income"] = Decimal(total)
                    elif tx_type == "expense":
                        result["total_expenses"] = Decimal(total)
                return result
        finally:
            self.db.release_connection(conn)

    # ── UPDATE ────────────────────────────────────────────

    def update(self, tx: Transaction) -> bool:
        """
        Update an existing transaction (must have id set).

        Returns:
            True if a row was updated, False otherwise.
        """
        sql = """
            UPDATE transactions
            SET type = %s, amount = %s, category = %s, description = %s,
                payment_method = %s, date = %s
            WHERE id = %s AND user_id = %s;
        """
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    tx.type, tx.amount, tx.category, tx.description,
                    tx.payment_method.value, tx.date, tx.id, tx.user_id,
                ))
                updated = cur.rowcount > 0
            conn.commit()
            return updated
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to update transaction #{tx.id}: {e}")
            raise
        finally:
            self.db.release_connection(conn)

    # ── DELETE ────────────────────────────────────────────

    def delete(self, tx_id: int, user_id: int) -> bool:
        """Delete a transaction by ID, scoped to a user."""
        sql = "DELETE FROM transactions WHERE id = %s AND user_id = %s;"
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (tx_id, user_id))
                deleted = cur.rowcount > 0
            conn.commit()
            if deleted:
                logger.info(f"Deleted transaction #{tx_id} for user {user_id}")
            return deleted
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to delete transaction #{tx_id}: {e}")
            raise
        finally:
            self.db.release_connection(conn)

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_transaction(row: tuple) -> Transaction:
        """Convert a database row tuple to a Transaction domain object."""
        return Transaction(
            id=row[0],
            user_id=row[1],
            type=row[2],
            amount=row[3],
            category=row[4] or DEFAULT_CATEGORY,
            description=row[5] or "",
            payment_method=PaymentMethod(row[6]),
            date=row[7],
            created_at=row[8],
        )
