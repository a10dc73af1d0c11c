"""
repositories/bill_repo.py
-------------------------
Data access layer for bills.
All SQL queries related to the `accounts_payable` and
`accounts_receivable` tables live here.

Table and counterparty column names come from `BillKind`, never from
request input.
"""

from datetime import date
from typing import Optional

from psycopg2 import extras

from db.connection import Database
from models.bill import (
    Bill,
    BillKind,
    BillStatus,
    Interval,
    ObligationInstance,
    PaymentMethod,
)
from utils.logger import get_logger

logger = get_logger(__name__)


def _columns(kind: BillKind) -> str:
    return (
        f"id, user_id, amount, due_date, description, {kind.party_column}, "
        "payment_method, status, payment_date, is_recurring, recurrence_interval, "
        "recurrence_count, recurrence_end_date, created_at"
    )


class BillRepository:
    """Repository for CRUD operations on the two bill tables."""

    def __init__(self, db: Database):
        self.db = db

    # ── CREATE ────────────────────────────────────────────

    def add_many(self, instances: list[ObligationInstance]) -> list[Bill]:
        """
        Insert every instance of one submission in a single transaction.

        Args:
            instances: Rows produced by the recurrence expander. All must
                share the same kind.

        Returns:
            The persisted bills, in insertion order.
        """
        if not instances:
            return []
        kind = instances[0].kind
        if any(i.kind is not kind for i in instances):
            raise ValueError("All instances of a submission must share the same kind.")

        sql = f"""
            INSERT INTO {kind.table}
                (user_id, amount, due_date, description, {kind.party_column},
                 payment_method, status, is_recurring, recurrence_interval,
                 recurrence_count, recurrence_end_date)
            VALUES %s
            RETURNING {_columns(kind)};
        """
        values = [
            (
                i.user_id, i.amount, i.due_date, i.description, i.party_name,
                i.payment_method.value, i.status.value, i.is_recurring,
                i.recurrence_interval.value if i.recurrence_interval else None,
                i.recurrence_count, i.recurrence_end_date,
            )
            for i in instances
        ]
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                rows = extras.execute_values(cur, sql, values, fetch=True)
            conn.commit()
            bills = [self._row_to_bill(kind, r) for r in rows]
            logger.info(f"Added {len(bills)} {kind.value} bill(s) for user {instances[0].user_id}")
            return bills
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to add {kind.value} bills: {e}")
            raise
        finally:
            self.db.release_connection(conn)

    # ── READ ──────────────────────────────────────────────

    def get_by_id(self, kind: BillKind, bill_id: int, user_id: int) -> Optional[Bill]:
        """Fetch a single bill by ID, scoped to user."""
        sql = f"SELECT {_columns(kind)} FROM {kind.table} WHERE id = %s AND user_id = %s;"
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (bill_id, user_id))
                row = cur.fetchone()
                return self._row_to_bill(kind, row) if row else None
        finally:
            self.db.release_connection(conn)

    def find(
        self,
        user_id: int,
        kind: BillKind,
        start: Optional[date] = None,
        end: Optional[date] = None,
        status: Optional[BillStatus] = None,
    ) -> list[Bill]:
        """
        Fetch a user's bills ordered by due date.

        Args:
            start: Earliest due date (inclusive).
            end: Latest due date (inclusive).
            status: Only bills with this status.
        """
        sql = f"SELECT {_columns(kind)} FROM {kind.table} WHERE user_id = %s"
        params: list = [user_id]
        if start:
            sql += " AND due_date >= %s"
            params.append(start)
        if end:
            sql += " AND due_date <= %s"
            params.append(end)
        if status:
            sql += " AND status = %s"
            params.append(status.value)
        sql += " ORDER BY due_date ASC, id ASC;"

        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return [self._row_to_bill(kind, r) for r in cur.fetchall()]
        finally:
            self.db.release_connection(conn)

    # ── UPDATE ────────────────────────────────────────────

    def mark_overdue(self, kind: BillKind, bill_ids: list[int]) -> int:
        """Flip the given pending bills to overdue. Returns the number updated."""
        if not bill_ids:
            return 0
        sql = f"UPDATE {kind.table} SET status = 'overdue' WHERE id = ANY(%s) AND status = 'pending';"
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (list(bill_ids),))
                updated = cur.rowcount
            conn.commit()
            logger.info(f"Marked {updated} {kind.value} bill(s) as overdue")
            return updated
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to mark {kind.value} bills overdue: {e}")
            raise
        finally:
            self.db.release_connection(conn)

    def mark_paid(self, kind: BillKind, bill_id: int, user_id: int, payment_date: date) -> bool:
        sql = f"UPDATE {kind.table} SET status = 'paid', payment_date = %s WHERE id = %s AND user_id = %s;"
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (payment_date, bill_id, user_id))
                updated = cur.rowcount > 0
            conn.commit()
            return updated
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to mark {kind.value} #{bill_id} as paid: {e}")
            raise
        finally:
            self.db.release_connection(conn)

    def update(self, bill_id: int, data: ObligationInstance) -> bool:
        """
        Overwrite the editable fields of one bill. Status is left alone.

        Returns:
            True if a row was updated, False otherwise.
        """
        kind = data.kind
        sql = f"""
            UPDATE {kind.table}
            SET amount = %s, due_date = %s, description = %s, {kind.party_column} = %s,
                payment_method = %s, is_recurring = %s, recurrence_interval = %s,
                recurrence_count = %s, recurrence_end_date = %s
            WHERE id = %s AND user_id = %s;
        """
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (
                    data.amount, data.due_date, data.description, data.party_name,
                    data.payment_method.value, data.is_recurring,
                    data.recurrence_interval.value if data.recurrence_interval else None,
                    data.recurrence_count, data.recurrence_end_date,
                    bill_id, data.user_id,
                ))
                updated = cur.rowcount > 0
            conn.commit()
            return updated
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to update {kind.value} #{bill_id}: {e}")
            raise
        finally:
            self.db.release_connection(conn)

    # ── DELETE ────────────────────────────────────────────

    def delete(self, kind: BillKind, bill_id: int, user_id: int) -> bool:
        """Delete a bill by ID, scoped to user."""
        sql = f"DELETE FROM {kind.table} WHERE id = %s AND user_id = %s;"
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (bill_id, user_id))
                deleted = cur.rowcount > 0
            conn.commit()
            if deleted:
                logger.info(f"Deleted {kind.value} bill #{bill_id}")
            return deleted
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to delete {kind.value} #{bill_id}: {e}")
            raise
        finally:
            self.db.release_connection(conn)

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _row_to_bill(kind: BillKind, row: tuple) -> Bill:
        """Convert a database row tuple to a Bill domain object."""
        return Bill(
            id=row[0],
            user_id=row[1],
            kind=kind,
            amount=row[2],
            due_date=row[3],
            description=row[4] or "",
            party_name=row[5],
            payment_method=PaymentMethod(row[6]),
            status=BillStatus(row[7]),
            payment_date=row[8],
            is_recurring=row[9],
            recurrence_interval=Interval(row[10]) if row[10] else None,
            recurrence_count=row[11],
            recurrence_end_date=row[12],
            created_at=row[13],
        )
