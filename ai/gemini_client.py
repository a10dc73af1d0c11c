"""
ai/gemini_client.py
-------------------
Uses Google Gemini to understand WhatsApp messages.

Responsibilities:
    - Classify Brazilian-Portuguese free text as a query, an income or an expense.
    - Extract: amount, category, payment method, description.
    - Transcribe voice notes to text.
"""

import json

import google.generativeai as genai

from models.classification import Classification, ClassificationError, parse_classification
from utils.logger import get_logger

logger = get_logger(__name__)

# ── System prompt for the AI ─────────────────────────────

_CLASSIFY_PROMPT = """Você é um assistente financeiro. Analise a mensagem do usuário e extraia informações de transações financeiras.

## Regras:

1. **Tipo (type):**
   - "expense" = despesa → gastei, paguei, comprei, conta de...
   - "income" = receita → recebi, ganhei, salário, caiu um pix...
   - "query" = qualquer outra coisa (saldo, resumo, relatório, saudação, dúvida)

2. **Valor (amount):** número positivo, com ponto como separador decimal.

3. **Categoria (category):** curta, em português (Alimentação, Transporte, Moradia,
   Serviços, Saúde, Lazer, Educação, Salário, Vendas, Outros).

4. **Método (payment_method):** "pix", "card", "transfer" ou "cash".
   Se não for mencionado, use "cash".

5. **Descrição (description):** frase curta em português.

## Exemplos:
- "Gastei R$ 50 no mercado com cartão" → {"type":"expense","amount":50,"category":"Alimentação","payment_method":"card","description":"Mercado"}
- "Recebi R$ 1000 de salário no PIX" → {"type":"income","amount":1000,"category":"Salário","payment_method":"pix","description":"Salário"}
- "Paguei a conta de luz R$ 150" → {"type":"expense","amount":150,"category":"Serviços","payment_method":"cash","description":"Conta de luz"}
- "Qual é o meu saldo?" → {"type":"query"}

## Formato:
Retorne apenas JSON, sem explicação e sem markdown:
{"type":"income|expense","amount":<número>,"category":"<categoria>","payment_method":"pix|card|transfer|cash","description":"<descrição>"}
Se não for uma transação: {"type":"query"}
"""

_TRANSCRIBE_PROMPT = (
    "Transcreva este áudio em português do Brasil. "
    "Retorne somente o texto falado, sem comentários."
)


def _strip_fences(raw: str) -> str:
    """Remove markdown code fences the model sometimes adds around JSON."""
    raw = raw.strip()
    if raw.startswith("```"):
        raw = raw.split("\n", 1)[1] if "\n" in raw else raw[3:]
    if raw.endswith("```"):
        raw = raw[:-3]
    return raw.strip()


class GeminiClient:
    """
    Thin wrapper over a Gemini model.

    Args:
        api_key: Google AI Studio key.
        model_name: e.g. 'gemini-2.5-flash'.
        temperature: Sampling temperature for classification.
    """

    def __init__(self, api_key: str, model_name: str, temperature: float = 0.1):
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(model_name)
        self.temperature = temperature

    def classify(self, text: str) -> Classification:
        """
        Classify a message and extract transaction data.

        Args:
            text: Raw message, e.g. "Gastei R$ 50 no mercado".

        Returns:
            Query, Income or Expense.

        Raises:
            ClassificationError: If the reply is not JSON or does not match
                a known variant.
        """
        response = self.model.generate_content(
            [
                {"role": "user", "parts": [{"text": _CLASSIFY_PROMPT}]},
                {"role": "user", "parts": [{"text": text}]},
            ],
            generation_config=genai.GenerationConfig(
                temperature=self.temperature,
                max_output_tokens=300,
            ),
        )
        raw = _strip_fences(response.text)
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Gemini returned non-JSON: {raw!r}")
            raise ClassificationError("Classifier reply is not JSON") from None

        result = parse_classification(payload)
        logger.info(f"Gemini classified message as {result}")
        return result

    def transcribe(self, audio: bytes, mime_type: str = "audio/ogg") -> str | None:
        """
        Transcribe a voice note.

        Returns:
            The spoken text, or None if nothing was recognized.
        """
        response = self.model.generate_content(
            [{"mime_type": mime_type, "data": audio}, _TRANSCRIBE_PROMPT],
            generation_config=genai.GenerationConfig(temperature=0.0),
        )
        text = (response.text or "").strip()
        logger.info(f"Transcribed voice note ({len(audio)} bytes, {len(text)} chars)")
        return text or None
