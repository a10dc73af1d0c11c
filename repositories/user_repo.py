"""
repositories/user_repo.py
--------------------------
Data access layer for user records.
"""

from typing import Optional

from config import DEFAULT_CURRENCY
from db.connection import Database
from utils.logger import get_logger

logger = get_logger(__name__)

_COLUMNS = "id, name, email, whatsapp_number, timezone, currency"


def _row_to_dict(row: tuple) -> dict:
    return {
        "id": row[0],
        "name": row[1],
        "email": row[2],
        "whatsapp_number": row[3],
        "timezone": row[4],
        "currency": row[5],
    }


class UserRepository:
    """Repository for CRUD operations on the users table."""

    def __init__(self, db: Database):
        self.db = db

    def ensure_whatsapp_user(self, whatsapp_number: str) -> dict:
        """
        Return the user behind a WhatsApp number, creating it on first contact.
        Uses PostgreSQL's ON CONFLICT (upsert) for atomicity.

        Args:
            whatsapp_number: Sender number as delivered by the webhook.

        Returns:
            User dict: {'id', 'name', 'email', 'whatsapp_number', 'timezone', 'currency'}.
        """
        sql = f"""
            INSERT INTO users (name, whatsapp_number, currency)
            VALUES (%s, %s, %s)
            ON CONFLICT (whatsapp_number) DO UPDATE SET whatsapp_number = EXCLUDED.whatsapp_number
            RETURNING {_COLUMNS};
        """
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (f"User {whatsapp_number}", whatsapp_number, DEFAULT_CURRENCY))
                row = cur.fetchone()
            conn.commit()
            return _row_to_dict(row)
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to ensure user {whatsapp_number}: {e}")
            raise
        finally:
            self.db.release_connection(conn)

    def get_by_id(self, user_id: int) -> Optional[dict]:
        """
        Fetch a user by primary key.

        Returns:
            User dict or None.
        """
        sql = f"SELECT {_COLUMNS} FROM users WHERE id = %s;"
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (user_id,))
                row = cur.fetchone()
                return _row_to_dict(row) if row else None
        finally:
            self.db.release_connection(conn)

    def update_profile(
        self,
        user_id: int,
        name: Optional[str] = None,
        timezone: Optional[str] = None,
        currency: Optional[str] = None,
        whatsapp_number: Optional[str] = None,
    ) -> Optional[dict]:
        """
        Update onboarding fields; None leaves a field unchanged.

        Returns:
            The updated user dict, or None if the user does not exist.
        """
        sql = f"""
            UPDATE users
            SET name = COALESCE(%s, name),
                timezone = COALESCE(%s, timezone),
                currency = COALESCE(%s, currency),
                whatsapp_number = COALESCE(%s, whatsapp_number)
            WHERE id = %s
            RETURNING {_COLUMNS};
        """
        conn = self.db.get_connection()
        try:
            with conn.cursor() as cur:
                cur.execute(sql, (name, timezone, currency, whatsapp_number, user_id))
                row = cur.fetchone()
            conn.commit()
            return _row_to_dict(row) if row else None
        except Exception as e:
            conn.rollback()
            logger.error(f"Failed to update profile for user {user_id}: {e}")
            raise
        finally:
            self.db.release_connection(conn)
