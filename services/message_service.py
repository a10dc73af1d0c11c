"""
services/message_service.py
---------------------------
Inbound WhatsApp pipeline: read the webhook payload, understand the
message and reply.

Workflow:
    1. Extract sender and text (or voice note) from the payload.
    2. Find or create the sender's user record.
    3. Transcribe audio when needed.
    4. Classify with Gemini: record a transaction or answer a query.
    5. Reply through the WhatsApp client.
"""

from dataclasses import dataclass
from typing import Optional

import requests

from ai.gemini_client import GeminiClient
from messaging.whatsapp import MessagingError, WhatsAppClient
from models.classification import ClassificationError, Expense, Income, Query
from repositories.user_repo import UserRepository
from security.rate_limiter import RateLimiter
from services.transaction_service import TransactionService
from utils.logger import get_logger

logger = get_logger(__name__)

UNREADABLE_REPLY = "Não consegui ler sua mensagem. Tente enviar em texto."
AI_DISABLED_REPLY = "Integração com IA não configurada. Defina GEMINI_API_KEY para habilitar."
FALLBACK_REPLY = (
    'Mensagem processada. Para registrar transações, diga algo como "Gastei R$ 50 no mercado".'
)
HELP_REPLY = (
    "Olá! Sou seu assistente financeiro. Posso registrar transações como "
    '"Gastei R$ 50 no mercado" ou responder perguntas sobre seu saldo e relatórios.'
)

_BALANCE_KEYWORDS = ("saldo", "quanto tenho")
_REPORT_KEYWORDS = ("relatório", "relatorio", "resumo")


@dataclass(frozen=True)
class InboundMessage:
    sender: str
    text: Optional[str] = None
    audio_id: Optional[str] = None


def extract_message(payload) -> Optional[InboundMessage]:
    """
    Pull the first user message out of a Cloud API webhook payload.

    Returns:
        None for status callbacks and payloads without text or audio.
    """
    try:
        value = payload["entry"][0]["changes"][0]["value"]
        message = value["messages"][0]
    except (KeyError, IndexError, TypeError):
        return None

    sender = message.get("from")
    text = ((message.get("text") or {}).get("body") or "").strip() or None
    audio_id = (message.get("audio") or {}).get("id")
    if not sender or not (text or audio_id):
        return None
    return InboundMessage(sender=sender, text=text, audio_id=audio_id)


def _brl(value) -> str:
    return f"R$ {value:.2f}"


class MessageService:
    """
    Args:
        users: User lookup/creation by WhatsApp number.
        transactions: Records classified transactions and answers balance queries.
        messenger: Outbound WhatsApp client.
        classifier: Gemini client, or None when no API key is configured.
        rate_limiter: Optional per-sender limiter.
    """

    def __init__(
        self,
        users: UserRepository,
        transactions: TransactionService,
        messenger: WhatsAppClient,
        classifier: Optional[GeminiClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.users = users
        self.transactions = transactions
        self.messenger = messenger
        self.classifier = classifier
        self.rate_limiter = rate_limiter

    def handle_inbound(self, payload: dict) -> None:
        """Process one webhook delivery. Status-only payloads are ignored."""
        message = extract_message(payload)
        if message is None:
            return

        logger.info(
            f"Inbound message from {message.sender} "
            f"(text: {bool(message.text)}, audio: {bool(message.audio_id)})"
        )
        if self.rate_limiter and not self.rate_limiter.allow(message.sender):
            return

        user = self.users.ensure_whatsapp_user(message.sender)

        content = message.text or self._transcribe(message.audio_id)
        if not content:
            self._reply(message.sender, UNREADABLE_REPLY)
            return

        self._reply(message.sender, self.process_text(content, user["id"]))

    def process_text(self, text: str, user_id: int) -> str:
        """Classify a message and build the reply text."""
        if self.classifier is None:
            return AI_DISABLED_REPLY

        try:
            result = self.classifier.classify(text)
        except ClassificationError as e:
            logger.warning(f"Could not classify message from user {user_id}: {e}")
            return FALLBACK_REPLY
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            return FALLBACK_REPLY

        if isinstance(result, Query):
            return self.answer_query(text, user_id)

        if isinstance(result, (Income, Expense)):
            saved = self.transactions.record(user_id, result)
            label = "Receita" if saved.is_income() else "Despesa"
            return (
                f"✅ Transação registrada: {label} de {_brl(saved.amount)} "
                f"na categoria {saved.category}"
            )
        return FALLBACK_REPLY

    def answer_query(self, text: str, user_id: int) -> str:
        """Keyword-routed answers for balance and monthly summary questions."""
        lowered = text.lower()

        if any(k in lowered for k in _BALANCE_KEYWORDS):
            totals = self.transactions.get_balance(user_id)
            return (
                f"💰 Seu saldo atual é {_brl(totals['balance'])} "
                f"(Receitas: {_brl(totals['total_income'])}, "
                f"Despesas: {_brl(totals['total_expenses'])})"
            )

        if any(k in lowered for k in _REPORT_KEYWORDS):
            totals = self.transactions.get_month_summary(user_id)
            return (
                f"📊 Resumo do mês: Receitas {_brl(totals['total_income'])}, "
                f"Despesas {_brl(totals['total_expenses'])}, "
                f"Lucro {_brl(totals['net'])}"
            )

        return HELP_REPLY

    # ── HELPERS ───────────────────────────────────────────

    def _transcribe(self, audio_id: Optional[str]) -> Optional[str]:
        if not audio_id or self.classifier is None:
            return None
        try:
            media = self.messenger.download_media(audio_id)
            if media is None:
                return None
            audio, mime_type = media
            return self.classifier.transcribe(audio, mime_type)
        except requests.RequestException as e:
            logger.error(f"Failed to download voice note {audio_id}: {e}")
        except Exception as e:
            logger.error(f"Failed to transcribe voice note {audio_id}: {e}")
        return None

    def _reply(self, to: str, body: str) -> None:
        try:
            self.messenger.send_text(to, body)
        except (MessagingError, requests.RequestException) as e:
            logger.error(f"Failed to reply to {to}: {e}")
