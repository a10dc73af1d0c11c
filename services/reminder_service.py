"""
services/reminder_service.py
----------------------------
Sends the day's reminders over WhatsApp.
Called by the scheduled dispatch endpoint.
"""

from datetime import date
from typing import Callable, Optional

import requests

from messaging.whatsapp import MessagingError, WhatsAppClient
from models.reminder import Reminder
from repositories.reminder_repo import ReminderRepository
from utils.logger import get_logger

logger = get_logger(__name__)


def build_reminder_message(reminder: Reminder) -> str:
    """Format the WhatsApp text for one reminder."""
    when = f" às {reminder.due_time.strftime('%H:%M')}" if reminder.due_time else ""
    title = reminder.title or "Compromisso"
    description = f"\n{reminder.description}" if reminder.description else ""
    return f"🔔 Lembrete do AssistentePro\n\n{title}{description}\n🗓️ {reminder.due_date}{when}"


class ReminderService:
    """
    Args:
        repo: Reminder persistence.
        messenger: Outbound WhatsApp client.
        today: Clock deciding which reminders are due.
    """

    def __init__(
        self,
        repo: ReminderRepository,
        messenger: WhatsAppClient,
        today: Callable[[], date] = date.today,
    ):
        self.repo = repo
        self.messenger = messenger
        self.today = today

    def dispatch_due(self, day: Optional[date] = None) -> int:
        """
        Send every pending, not-yet-notified reminder due on `day`.

        Reminders whose owner has no WhatsApp number (or when WhatsApp is
        not configured) are marked as sent without a message. A reminder
        whose send fails stays unmarked so the next run retries it.

        Returns:
            Number of reminders marked as sent.
        """
        day = day or self.today()
        reminders = self.repo.get_due_unsent(day)
        logger.info(f"{len(reminders)} reminder(s) due on {day}")

        sent = 0
        for reminder in reminders:
            if reminder.whatsapp_number and self.messenger.is_configured:
                try:
                    self.messenger.send_text(reminder.whatsapp_number, build_reminder_message(reminder))
                except (MessagingError, requests.RequestException) as e:
                    logger.error(f"Failed to send reminder #{reminder.id}: {e}")
                    continue
            self.repo.mark_sent(reminder.id)
            sent += 1

        logger.info(f"Dispatched {sent} reminder(s) for {day}")
        return sent
