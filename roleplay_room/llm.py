"""Generation backends - produce one structured turn from a role-tagged prompt.

Agents depend only on the protocol:

    async def complete(self, messages: list[ChatMessage],
                       options: GenerationOptions) -> StructuredTurn: ...

Two implementations are provided:

    HttpBackend - real HTTP client, supports OpenAI-compatible chat
                  completions and KoboldCpp text generation. Selected by
                  provider_format. Responses are decoded with
                  parse_structured_turn().
    StubBackend - canned thought plus a canned line that depends on the
                  prompt. No network calls; used by tests and demos.

Transport failures and malformed envelopes raise LLMError (with the response
body as `raw` when one arrived). Undecodable payloads raise DecodeError
(see roleplay_room.parsing). Neither is retried here.
"""

from __future__ import annotations

import logging
from typing import Literal, Protocol

import httpx

from roleplay_room.models import ChatMessage, GenerationOptions, StructuredTurn
from roleplay_room.parsing import DecodeError, parse_structured_turn

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Protocol - every backend must match this signature
# ---------------------------------------------------------------------------

class GenerationBackend(Protocol):
    async def complete(
        self, messages: list[ChatMessage], options: GenerationOptions
    ) -> StructuredTurn: ...


# ---------------------------------------------------------------------------
# HttpBackend - connects to a real model server
# ---------------------------------------------------------------------------

ProviderFormat = Literal["openai", "koboldcpp"]


class HttpBackend:
    """Async HTTP client for structured-turn generation.

    Supported formats:
      "openai"     - POST /v1/chat/completions
                     {"model", "messages", "temperature", "max_tokens",
                      "response_format": {"type": "json_object"}}
                     Response: {"choices": [{"message": {"content": "..."}}]}
      "koboldcpp"  - POST /api/v1/generate
                     {"prompt", "max_length", "temperature"}
                     Messages are flattened into a single text prompt.
                     Response: {"results": [{"text": "..."}]}

    Args:
        provider_url:    Base URL of the backend, e.g. "http://localhost:8080".
        api_key:         Bearer token, or empty string if not required.
        provider_format: Wire format to use. Defaults to "openai".
        timeout:         HTTP timeout in seconds. Defaults to 120.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "openai",
        timeout: float = 120.0,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._format = provider_format
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    def _build_request(
        self, messages: list[ChatMessage], options: GenerationOptions
    ) -> tuple[str, dict]:
        """Return (url, body) for the configured format."""
        if self._format == "koboldcpp":
            url = f"{self._base_url}/api/v1/generate"
            return url, {
                "prompt": _flatten_messages(messages),
                "max_length": options.max_output_size,
                "temperature": options.temperature,
            }

        # openai (default)
        url = f"{self._base_url}/v1/chat/completions"
        return url, {
            "model": options.model,
            "messages": [m.model_dump() for m in messages],
            "temperature": options.temperature,
            "max_tokens": options.max_output_size,
            "response_format": {"type": "json_object"},
        }

    def _parse_response(self, resp: httpx.Response) -> str:
        """Extract the raw completion text from the response envelope.

        Anything other than the expected envelope around a string payload
        raises LLMError carrying the response body.
        """
        source = "KoboldCpp" if self._format == "koboldcpp" else "OpenAI-compatible"
        try:
            data = resp.json()
            if self._format == "koboldcpp":
                text = data["results"][0]["text"]
            else:
                text = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise LLMError(
                f"Unexpected response format from {source} backend", raw=resp.text
            ) from e

        # null content (e.g. a refusal) decodes as an empty turn
        if text is None:
            return ""
        if not isinstance(text, str):
            raise LLMError(
                f"Unexpected response format from {source} backend: "
                f"content is {type(text).__name__}, not text",
                raw=resp.text,
            )
        return text

    async def complete(
        self, messages: list[ChatMessage], options: GenerationOptions
    ) -> StructuredTurn:
        url, body = self._build_request(messages, options)
        prompt_len = sum(len(m.content) for m in messages)
        logger.debug("llm call model=%s url=%s prompt_len=%d", options.model, url, prompt_len)

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=self._headers())
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise LLMError(f"Cannot connect to LLM backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise LLMError(
                f"LLM backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise LLMError(f"LLM backend timed out after {self._timeout}s") from e
        except httpx.TransportError as e:
            raise LLMError(f"Connection to LLM backend at {self._base_url} failed: {e}") from e

        text = self._parse_response(resp)
        logger.debug("llm response model=%s len=%d", options.model, len(text))
        try:
            return parse_structured_turn(text)
        except DecodeError:
            logger.error("Failed to decode structured turn: %r", text)
            raise


def _flatten_messages(messages: list[ChatMessage]) -> str:
    parts = [f"### {m.role.capitalize()}\n{m.content.strip()}" for m in messages]
    parts.append("### Assistant\n")
    return "\n\n".join(parts)


# ---------------------------------------------------------------------------
# StubBackend - deterministic canned turns; no network calls
# ---------------------------------------------------------------------------

class StubBackend:
    """Returns a fixed private thought and a line that depends on the prompt.

    A question mark anywhere in the last message yields a considered reply;
    otherwise the agent chimes in. Lets you run a whole room without a model.
    """

    THOUGHT = "I should steer the scene toward my hidden agenda."
    QUESTION_REPLY = "Let me think... here's my take."
    REMARK = "I chime in with a sharp remark."

    async def complete(
        self, messages: list[ChatMessage], options: GenerationOptions
    ) -> StructuredTurn:
        last = messages[-1].content if messages else ""
        say = self.QUESTION_REPLY if "?" in last else self.REMARK
        logger.debug("StubBackend model=%s say=%r", options.model, say)
        return StructuredTurn(thought=self.THOUGHT, say=say)


# ---------------------------------------------------------------------------
# LLMError - raised by HttpBackend for all connection and protocol failures
# ---------------------------------------------------------------------------

class LLMError(RuntimeError):
    """Raised when the LLM backend cannot be reached or returns an error."""

    def __init__(self, message: str, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw
