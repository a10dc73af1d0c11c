"""
Shared fixtures.

Repositories and external clients are replaced by in-memory fakes, so no
test touches PostgreSQL, Gemini or the Graph API.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from messaging.whatsapp import MessagingError
from models.bill import Bill, BillStatus
from models.classification import ClassificationError
from services.bill_service import BillService
from services.message_service import MessageService
from services.reminder_service import ReminderService
from services.transaction_service import TransactionService

TODAY = date(2024, 6, 15)


class FakeBillRepository:
    def __init__(self):
        self.bills: list[Bill] = []
        self.overdue_calls: list[list[int]] = []
        self._next_id = 1

    def add_many(self, instances):
        saved = []
        for i in instances:
            bill = Bill(
                id=self._next_id,
                user_id=i.user_id,
                kind=i.kind,
                amount=i.amount,
                due_date=i.due_date,
                party_name=i.party_name,
                payment_method=i.payment_method,
                description=i.description,
                status=i.status,
                is_recurring=i.is_recurring,
                recurrence_interval=i.recurrence_interval,
                recurrence_count=i.recurrence_count,
                recurrence_end_date=i.recurrence_end_date,
            )
            self._next_id += 1
            self.bills.append(bill)
            saved.append(bill)
        return saved

    def get_by_id(self, kind, bill_id, user_id):
        for b in self.bills:
            if b.id == bill_id and b.user_id == user_id and b.kind is kind:
                return b
        return None

    def find(self, user_id, kind, start=None, end=None, status=None):
        rows = [b for b in self.bills if b.user_id == user_id and b.kind is kind]
        if start:
            rows = [b for b in rows if b.due_date >= start]
        if end:
            rows = [b for b in rows if b.due_date <= end]
        if status:
            rows = [b for b in rows if b.status is status]
        return [replace(b) for b in sorted(rows, key=lambda b: (b.due_date, b.id))]

    def mark_overdue(self, kind, bill_ids):
        self.overdue_calls.append(list(bill_ids))
        for b in self.bills:
            if b.id in bill_ids and b.status is BillStatus.PENDING:
                b.status = BillStatus.OVERDUE
        return len(bill_ids)

    def mark_paid(self, kind, bill_id, user_id, payment_date):
        bill = self.get_by_id(kind, bill_id, user_id)
        if bill is None:
            return False
        bill.status = BillStatus.PAID
        bill.payment_date = payment_date
        return True

    def update(self, bill_id, data):
        bill = self.get_by_id(data.kind, bill_id, data.user_id)
        if bill is None:
            return False
        bill.amount = data.amount
        bill.due_date = data.due_date
        bill.party_name = data.party_name
        bill.description = data.description
        bill.payment_method = data.payment_method
        bill.is_recurring = data.is_recurring
        bill.recurrence_interval = data.recurrence_interval
        bill.recurrence_count = data.recurrence_count
        bill.recurrence_end_date = data.recurrence_end_date
        return True

    def delete(self, kind, bill_id, user_id):
        bill = self.get_by_id(kind, bill_id, user_id)
        if bill is None:
            return False
        self.bills.remove(bill)
        return True


class FakeTransactionRepository:
    def __init__(self):
        self.rows = []
        self._next_id = 1

    def add(self, tx):
        tx.id = self._next_id
        self._next_id += 1
        self.rows.append(tx)
        return tx

    def get_by_id(self, tx_id, user_id):
        return next((t for t in self.rows if t.id == tx_id and t.user_id == user_id), None)

    def find(self, user_id, start=None, end=None, tx_type=None):
        rows = [t for t in self.rows if t.user_id == user_id]
        if start:
            rows = [t for t in rows if t.date >= start]
        if end:
            rows = [t for t in rows if t.date <= end]
        if tx_type:
            rows = [t for t in rows if t.type == tx_type]
        return sorted(rows, key=lambda t: (t.date, t.id), reverse=True)

    def get_totals(self, user_id, start=None, end=None):
        rows = self.find(user_id, start, end)
        return {
            "total_income": sum((t.amount for t in rows if t.is_income()), Decimal("0")),
            "total_expenses": sum((t.amount for t in rows if t.is_expense()), Decimal("0")),
        }

    def update(self, tx):
        current = self.get_by_id(tx.id, tx.user_id)
        if current is None:
            return False
        self.rows[self.rows.index(current)] = tx
        return True

    def delete(self, tx_id, user_id):
        current = self.get_by_id(tx_id, user_id)
        if current is None:
            return False
        self.rows.remove(current)
        return True


class FakeUserRepository:
    def __init__(self):
        self.users = {}

    def ensure_whatsapp_user(self, whatsapp_number):
        for user in self.users.values():
            if user["whatsapp_number"] == whatsapp_number:
                return user
        user_id = len(self.users) + 1
        self.users[user_id] = {
            "id": user_id,
            "name": f"User {whatsapp_number}",
            "email": None,
            "whatsapp_number": whatsapp_number,
            "timezone": "America/Sao_Paulo",
            "currency": "BRL",
        }
        return self.users[user_id]

    def get_by_id(self, user_id):
        return self.users.get(user_id)

    def update_profile(self, user_id, name=None, timezone=None, currency=None, whatsapp_number=None):
        user = self.users.get(user_id)
        if user is None:
            return None
        for key, value in (("name", name), ("timezone", timezone),
                           ("currency", currency), ("whatsapp_number", whatsapp_number)):
            if value is not None:
                user[key] = value
        return user


class FakeReminderRepository:
    def __init__(self, reminders=None):
        self.reminders = list(reminders or [])
        self.sent_ids = []
        self.requested_days = []

    def get_due_unsent(self, day):
        self.requested_days.append(day)
        return [r for r in self.reminders if r.due_date == day and r.id not in self.sent_ids]

    def mark_sent(self, reminder_id):
        self.sent_ids.append(reminder_id)


class FakeMessenger:
    def __init__(self, configured=True, media=None, fail_for=()):
        self.configured = configured
        self.media = media
        self.fail_for = set(fail_for)
        self.sent = []

    @property
    def is_configured(self):
        return self.configured

    def send_text(self, to, body):
        if to in self.fail_for:
            raise MessagingError("Meta error 400: bad recipient")
        self.sent.append((to, body))

    def download_media(self, media_id):
        return self.media


class FakeClassifier:
    def __init__(self, result=None, error=None, transcript=None):
        self.result = result
        self.error = error
        self.transcript = transcript
        self.classified = []
        self.transcribed = []

    def classify(self, text):
        self.classified.append(text)
        if self.error is not None:
            raise self.error
        if self.result is None:
            raise ClassificationError("no result configured")
        return self.result

    def transcribe(self, audio, mime_type="audio/ogg"):
        self.transcribed.append((audio, mime_type))
        return self.transcript


@pytest.fixture
def bill_repo():
    return FakeBillRepository()


@pytest.fixture
def bill_service(bill_repo):
    return BillService(bill_repo, today=lambda: TODAY)


@pytest.fixture
def transaction_repo():
    return FakeTransactionRepository()


@pytest.fixture
def transaction_service(transaction_repo):
    return TransactionService(transaction_repo, today=lambda: TODAY)


@pytest.fixture
def user_repo():
    return FakeUserRepository()


@pytest.fixture
def messenger():
    return FakeMessenger()


@pytest.fixture
def classifier():
    return FakeClassifier()


@pytest.fixture
def message_service(user_repo, transaction_service, messenger, classifier):
    return MessageService(
        users=user_repo,
        transactions=transaction_service,
        messenger=messenger,
        classifier=classifier,
    )


@pytest.fixture
def reminder_repo():
    return FakeReminderRepository()


@pytest.fixture
def reminder_service(reminder_repo, messenger):
    return ReminderService(reminder_repo, messenger, today=lambda: TODAY)


def whatsapp_payload(sender="5511999990000", text=None, audio_id=None):
    """Minimal Cloud API webhook body with one message."""
    message = {"from": sender, "id": "wamid.TEST", "type": "text" if text else "audio"}
    if text is not None:
        message["text"] = {"body": text}
    if audio_id is not None:
        message["audio"] = {"id": audio_id, "mime_type": "audio/ogg; codecs=opus"}
    return {
        "object": "whatsapp_business_account",
        "entry": [{"id": "1", "changes": [{"field": "messages", "value": {"messages": [message]}}]}],
    }


@pytest.fixture
def make_payload():
    return whatsapp_payload
