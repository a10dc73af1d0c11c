"""
models/reminder.py
------------------
Domain model for user reminders delivered over WhatsApp.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Optional


@dataclass
class Reminder:
    """
    A dated reminder, joined with the owner's contact data.

    Attributes:
        id: Database primary key.
        user_id: Owning user.
        title: Short title; a generic one is used when empty.
        description: Optional detail line.
        due_date: Day the reminder should be sent.
        due_time: Optional time of the appointment, shown in the message.
        status: 'pending' until the appointment is done or dismissed.
        send_notification: Whether the user wants a WhatsApp notification.
        notification_sent_at: When the notification went out (None = not yet).
        whatsapp_number: Recipient, from the users table.
        user_name: Owner's display name.
    """
    id: int
    user_id: int
    due_date: date
    title: Optional[str] = None
    description: Optional[str] = None
    due_time: Optional[time] = None
    status: str = "pending"
    send_notification: bool = True
    notification_sent_at: Optional[datetime] = None
    whatsapp_number: Optional[str] = None
    user_name: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.title or 'Compromisso'} - {self.due_date}"
