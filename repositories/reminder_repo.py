"""
repositories/reminder_repo.py
-----------------------------
Data access layer for reminders.
All SQL queries related to the `reminders` table live here.
"""

from datetime import date, datetime, timezone

from db.connection import Database
from models.reminder import Reminder
from utils.logger import get_logger

logger = get_logger(__name__)


class ReminderRepository:
    """Repository for the reminders table."""

    def __init__(self, db: Database):
        self.db = db

    def get_due_unsent(self, day: date) -> list[Reminder]:
        """
        Get pending reminders for `day` whose notification has not gone out.
        Used by the dispatch endpoint.

        Returns:
            Reminders joined with the owner's WhatsApp number and name.
        """
        sql = """
            SELECT r.id, r.user_id, r.title, r.description, r.due_date, r.due_time,
                   r.status, r.send_notification, r.notification_sent_at,
                   u.whatsapp_number, u.name
            FROM reminders r
            JOIN users u ON u.id = r.user_id
            WHERE r.due_date = %s
              AND r.status = 'pending'
              AND r.send_notification = TRUE
              AND r.notification_sent_at IS NULL
            ORDER BY r.due_time ASC NULLS FIRST, r.id ASC;
        """
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (day,))
                return [self._row_to_reminder(r) for r in cur.fetchall()]
        finally:
            self.db.release_connection(conn)

    def mark_sent(self, reminder_id: int) -> None:
        """Stamp `notification_sent_at` so the reminder is not sent twice."""
        sql = "UPDATE reminders SET notification_sent_at = %s WHERE id = %s;"
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (datetime.now(timezone.utc), reminder_id))
            conn.commit()
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to mark reminder #{reminder_id} as sent: {e}")
            raise
        finally:
            self.db.release_connection(conn)

    @staticmethod
    def _row_to_reminder(row: tuple) -> Reminder:
        """Convert a database row tuple to a Reminder domain object."""
        return Reminder(
            id=row[0],
            user_id=row[1],
            title=row[2],
            description=row[3],
            due_date=row[4],
            due_time=row[5],
            status=row[6],
            send_notification=row[7],
            notification_sent_at=row[8],
            whatsapp_number=row[9],
            user_name=row[10],
        )
