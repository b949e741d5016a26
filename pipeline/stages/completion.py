"""Assistant reply generation against a hosted completion API.

One completion request per reply with fixed sampling parameters, retried a
fixed number of times with exponential backoff; each attempt carries its own
request timeout. Failures never escape: callers always get a string back,
either the model's reply or an apology matching what went wrong.

Providers (settings.AI_PROVIDER):
  openai      OpenAI chat completions
  perplexity  OpenAI-compatible endpoint; needs strict user/assistant
              alternation and returns [n] citation markers
  gemini      google-genai
"""

import logging

import openai
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from openai import OpenAI

from backend.core.settings import settings
from pipeline.stages.history import ChatTurn, enforce_alternation
from pipeline.utils import call_with_retries, strip_citations

logger = logging.getLogger(__name__)

SYSTEM_INSTRUCTION = (
    "You are a helpful AI assistant in a chat application. Provide helpful, friendly, "
    "and conversational responses. Keep responses concise but informative."
)
MAX_TOKENS = 500
TEMPERATURE = 0.7

PERPLEXITY_BASE_URL = "https://api.perplexity.ai"

PROVIDER_NAMES = {"openai": "OpenAI", "perplexity": "Perplexity", "gemini": "Gemini"}

FALLBACK_REPLIES = {
    "generic": "I'm sorry, I'm having trouble responding right now. Please try again in a moment.",
    "timeout": "I'm sorry, the request took too long. Please try again with a shorter message.",
    "not_configured": (
        "I'm sorry, but I'm not properly configured to respond right now. "
        "Please check the {provider} API key configuration."
    ),
    "quota": (
        "I'm sorry, but there seems to be an issue with the {provider} account. "
        "Please check your billing and usage limits."
    ),
    "rate_limit": "I'm receiving too many requests right now. Please wait a moment and try again.",
    "bad_request": (
        "I'm sorry, there was an issue with the message format. "
        "Please try rephrasing your message."
    ),
}


class EmptyCompletionError(RuntimeError):
    pass


def _complete_openai(
    messages: list[ChatTurn], api_key: str, model: str, base_url: str | None = None
) -> str:
    # Retries are ours; the SDK's own retry loop would multiply attempts.
    client = OpenAI(api_key=api_key, base_url=base_url, max_retries=0)
    completion = client.chat.completions.create(
        model=model,
        messages=messages,  # type: ignore[arg-type]
        max_tokens=MAX_TOKENS,
        temperature=TEMPERATURE,
        timeout=settings.AI_REQUEST_TIMEOUT,
    )
    if not completion.choices:
        return ""
    return completion.choices[0].message.content or ""


def _complete_gemini(messages: list[ChatTurn], api_key: str, model: str) -> str:
    client = genai.Client(
        api_key=api_key,
        http_options=types.HttpOptions(timeout=int(settings.AI_REQUEST_TIMEOUT * 1000)),
    )
    system_instruction = "\n".join(t["content"] for t in messages if t["role"] == "system")
    contents = [
        types.Content(
            role="model" if t["role"] == "assistant" else "user",
            parts=[types.Part(text=t["content"])],
        )
        for t in messages
        if t["role"] != "system"
    ]
    response = client.models.generate_content(
        model=model,
        contents=contents,
        config=types.GenerateContentConfig(
            system_instruction=system_instruction,
            max_output_tokens=MAX_TOKENS,
            temperature=TEMPERATURE,
        ),
    )
    return response.text or ""


def _complete(provider: str, messages: list[ChatTurn], api_key: str) -> str:
    if provider == "perplexity":
        return _complete_openai(
            messages, api_key, settings.PERPLEXITY_MODEL, base_url=PERPLEXITY_BASE_URL
        )
    if provider == "gemini":
        return _complete_gemini(messages, api_key, settings.GEMINI_MODEL)
    return _complete_openai(messages, api_key, settings.OPENAI_MODEL)


def _failure_kind(exc: Exception) -> str:
    if isinstance(exc, (openai.APITimeoutError, TimeoutError)):
        return "timeout"
    if isinstance(exc, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return "not_configured"
    if isinstance(exc, openai.RateLimitError):
        text = str(exc).lower()
        return "quota" if "quota" in text or "billing" in text else "rate_limit"
    if isinstance(exc, openai.BadRequestError):
        return "bad_request"
    if isinstance(exc, genai_errors.APIError):
        if exc.code in (401, 403):
            return "not_configured"
        if exc.code == 429:
            return "quota" if "quota" in str(exc).lower() else "rate_limit"
        if exc.code == 400:
            return "bad_request"
        if exc.code in (408, 504):
            return "timeout"
    text = str(exc).lower()
    if "timed out" in text or "timeout" in text:
        return "timeout"
    return "generic"


def _is_retryable(exc: Exception) -> bool:
    return _failure_kind(exc) not in ("not_configured", "bad_request")


def generate_ai_response(user_message: str, history: list[ChatTurn] | None = None) -> str:
    """Return the assistant's reply to user_message given prior turns.

    Never raises: a missing key, exhausted retries or an empty completion all
    produce a static apology instead.
    """
    provider = settings.AI_PROVIDER
    provider_name = PROVIDER_NAMES.get(provider, provider)
    api_key = settings.ai_api_key
    if not api_key:
        logger.error("%s API key not found in environment variables", provider_name)
        return FALLBACK_REPLIES["not_configured"].format(provider=provider_name)

    limit = settings.AI_HISTORY_LIMIT
    turns = list(history or [])[-limit:] if limit > 0 else []
    if provider == "perplexity":
        turns = enforce_alternation(turns)
    messages: list[ChatTurn] = [
        {"role": "system", "content": SYSTEM_INSTRUCTION},
        *turns,
        {"role": "user", "content": user_message},
    ]
    logger.info("Sending request to %s with %d messages", provider_name, len(messages))

    def _attempt() -> str:
        text = _complete(provider, messages, api_key).strip()
        if not text:
            raise EmptyCompletionError(f"No response from {provider_name}")
        return text

    try:
        reply = call_with_retries(
            _attempt,
            attempts=settings.AI_MAX_ATTEMPTS,
            base_delay=settings.AI_RETRY_BASE_DELAY,
            retry_if=_is_retryable,
        )
    except Exception as exc:
        logger.exception("Error generating AI response from %s", provider_name)
        return FALLBACK_REPLIES[_failure_kind(exc)].format(provider=provider_name)

    if provider == "perplexity":
        reply = strip_citations(reply)
    logger.info("Received AI response: %s...", reply[:100])
    return reply
