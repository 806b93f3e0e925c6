import logging
from typing import Dict, List

from openai import (
    APIConnectionError,
    APITimeoutError,
    InternalServerError,
    OpenAI,
    OpenAIError,
    RateLimitError,
)
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..config import settings

logger = logging.getLogger(__name__)

# The SDK's own retries are off; tenacity below is the single retry layer.
client = OpenAI(
    api_key=settings.OPENAI_API_KEY,
    timeout=settings.OPENAI_TIMEOUT_SECONDS,
    max_retries=0,
)

INTENTS = ("systems", "learn", "has_broker", "promises", "no_capital", "other")
FALLBACK_INTENT = "other"

CLASSIFY_PROMPT = """You classify Instagram and WhatsApp replies from trading leads.

Answer with exactly ONE label, lowercase, nothing else:
- systems: wants a ready-made trading system, signals or automation
- learn: wants to learn to trade, asks about courses or mentoring
- has_broker: already has a broker account and is ready to operate
- promises: chasing guaranteed returns or "get rich quick" promises
- no_capital: says they have no money to invest right now
- other: anything else, greetings, unclear messages"""

RESPONSE_PROMPT = """You are a friendly sales assistant replying to a lead on Instagram or WhatsApp.

**Rules:**
- Reply in the lead's language
- Keep it short: 1-3 sentences, like a real chat message
- Ask at most ONE question
- Never promise returns or guaranteed profits
- If the lead wants to stop, thank them and say goodbye

**Lead intent:** {intent}
**Lead context:** {lead_context}"""

_RETRYABLE = (APITimeoutError, APIConnectionError, RateLimitError, InternalServerError)


class CompletionError(Exception):
    """The text-completion service failed or returned nothing usable."""


@retry(
    retry=retry_if_exception_type(_RETRYABLE),
    stop=stop_after_attempt(settings.OPENAI_MAX_RETRIES + 1),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    before_sleep=before_sleep_log(logger, logging.WARNING),
)
def _create(messages: List[Dict[str, str]], max_tokens: int):
    return client.chat.completions.create(
        model=settings.OPENAI_MODEL,
        messages=messages,
        temperature=settings.OPENAI_TEMPERATURE,
        max_tokens=max_tokens,
    )


def complete(messages: List[Dict[str, str]], max_tokens: int | None = None) -> str:
    """
    Run one chat completion and return the text.

    Raises:
        CompletionError: on timeout/connection/rate-limit/5xx after the
            bounded retries, any other SDK error, or an empty answer
    """
    try:
        resp = _create(messages, max_tokens or settings.OPENAI_MAX_TOKENS)
    except RetryError as e:
        raise CompletionError(f"Completion failed after retries: {e.last_attempt.exception()}") from e
    except OpenAIError as e:
        raise CompletionError(f"Completion failed: {e}") from e

    content = resp.choices[0].message.content if resp.choices else None
    if not content or not content.strip():
        raise CompletionError("Completion returned an empty message")
    return content.strip()


def normalize_intent(raw: str) -> str:
    label = raw.strip().strip(".\"'`").lower().replace("-", "_").replace(" ", "_")
    return label if label in INTENTS else FALLBACK_INTENT


def classify_intent(message: str) -> str:
    """Classify a lead's message into one of INTENTS."""
    raw = complete(
        [
            {"role": "system", "content": CLASSIFY_PROMPT},
            {"role": "user", "content": message},
        ],
        max_tokens=10,
    )
    intent = normalize_intent(raw)
    if intent == FALLBACK_INTENT and raw.lower() != FALLBACK_INTENT:
        logger.info("Unrecognised intent label %r, using %r", raw, FALLBACK_INTENT)
    return intent


def generate_response(lead_context: str, user_message: str, intent: str) -> str:
    """Draft the next chat reply for a lead."""
    return complete([
        {"role": "system", "content": RESPONSE_PROMPT.format(intent=intent, lead_context=lead_context or "none")},
        {"role": "user", "content": user_message},
    ])
