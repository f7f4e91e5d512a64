"""
Bridge to the external chat-completion service.

Each action maps to a fixed system prompt and a user prompt built from the
note's text with markup stripped. One request goes out per call; the
structured actions try to decode the model's reply as JSON and hand back the
raw reply when that fails.
"""
import json
import logging
import re
from typing import Any, Optional

import httpx

from . import config
from .errors import ConfigurationError, InvalidAction, QuotaExceeded, RateLimited, UpstreamError

logger = logging.getLogger(__name__)

TAG_RE = re.compile(r"<[^>]*>")
CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

SYSTEM_PROMPTS = {
    "glossary": (
        "You are a helpful assistant that identifies key technical terms and provides concise "
        "definitions. Return a JSON array of objects with 'term' and 'definition' properties. "
        "Limit to the 5-8 most important terms."
    ),
    "summarize": "You are a helpful assistant that creates concise, 1-2 sentence summaries.",
    "tags": "You are a helpful assistant that suggests 3-5 relevant tags. Return a JSON array of tag strings.",
    "grammar": (
        "You are a grammar checking assistant. Identify grammatical errors and return a JSON "
        "array of objects with 'error', 'correction', and 'position' (character index) "
        "properties. If no errors, return empty array."
    ),
    "translate": (
        "You are a translation assistant. Translate the text to {target_language}. "
        "Return only the translated text."
    ),
    "insights": (
        "You are an AI assistant that provides intelligent insights. Analyze the text and "
        "provide 2-3 key insights, recommendations, or highlights in a clear format."
    ),
}

USER_PROMPTS = {
    "glossary": "Analyze this text and identify key terms with definitions:\n\n{text}",
    "summarize": "Summarize this text in 1-2 sentences:\n\n{text}",
    "tags": "Suggest 3-5 relevant tags for this text:\n\n{text}",
    "grammar": "Check for grammar errors in this text:\n\n{text}",
    "translate": "{text}",
    "insights": "Analyze this text and provide key insights:\n\n{text}",
}

ACTIONS = tuple(SYSTEM_PROMPTS)
STRUCTURED_ACTIONS = frozenset({"glossary", "tags", "grammar"})


def strip_markup(text: str) -> str:
    """Drop every `<...>` tag so the model only sees plain text."""
    return TAG_RE.sub("", text or "")


def parse_structured(raw: str) -> Any:
    """Decode a JSON reply, tolerating a Markdown code fence. Returns `raw` on failure."""
    candidate = raw.strip()
    fenced = CODE_FENCE_RE.match(candidate)
    if fenced:
        candidate = fenced.group(1)
    try:
        return json.loads(candidate)
    except ValueError:
        return raw


def build_messages(text: str, action: str, target_language: Optional[str] = None) -> list[dict[str, str]]:
    """Return the system/user message pair for `action`."""
    if action not in SYSTEM_PROMPTS:
        raise InvalidAction()
    if action == "translate" and not target_language:
        raise InvalidAction("translate requires a target language")
    plain = strip_markup(text)
    return [
        {"role": "system", "content": SYSTEM_PROMPTS[action].format(target_language=target_language)},
        {"role": "user", "content": USER_PROMPTS[action].format(text=plain)},
    ]


class AIProxy:
    """Stateless client for the completion endpoint. Never touches the note store."""

    def __init__(
        self,
        api_key: Optional[str],
        gateway_url: str = config.AI_GATEWAY_URL,
        model: str = config.AI_MODEL,
        timeout: float = config.AI_TIMEOUT_SECONDS,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.api_key = api_key
        self.gateway_url = gateway_url
        self.model = model
        self.timeout = timeout
        self._client = client

    def invoke(self, text: str, action: str, target_language: Optional[str] = None) -> Any:
        """Run `action` over `text` and return a parsed structure or plain text."""
        messages = build_messages(text, action, target_language)
        if not self.api_key:
            raise ConfigurationError()

        logger.info("AI action %s (%d chars)", action, len(messages[1]["content"]))
        response = self._post({"model": self.model, "messages": messages})

        if response.status_code == 429:
            raise RateLimited()
        if response.status_code == 402:
            raise QuotaExceeded()
        if not response.is_success:
            logger.error("AI gateway error: %s %s", response.status_code, response.text)
            raise UpstreamError()

        try:
            result = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as exc:
            logger.error("Malformed AI gateway response: %s", exc)
            raise UpstreamError() from exc
        if not isinstance(result, str):
            logger.error("Malformed AI gateway response: message content is %r", result)
            raise UpstreamError()

        if action in STRUCTURED_ACTIONS:
            return parse_structured(result)
        return result

    def _post(self, payload: dict[str, Any]) -> httpx.Response:
        headers = {"Authorization": f"Bearer {self.api_key}"}
        try:
            if self._client is not None:
                return self._client.post(self.gateway_url, json=payload, headers=headers)
            with httpx.Client(timeout=self.timeout) as client:
                return client.post(self.gateway_url, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            logger.error("AI gateway timed out after %ss", self.timeout)
            raise UpstreamError("AI gateway timed out") from exc
        except httpx.HTTPError as exc:
            logger.error("AI gateway request failed: %s", exc)
            raise UpstreamError() from exc


# PUBLIC_INTERFACE
def get_ai_proxy() -> AIProxy:
    """FastAPI dependency building a proxy from the current configuration."""
    return AIProxy(api_key=config.AI_API_KEY)
