"""HTTP client for the chat completion, model listing and balance endpoints."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

import httpx

DEFAULT_BASE_URL = "https://api.deepseek.com"
DEFAULT_TIMEOUT = 270.0

_CJK_RANGES = (
    (0x3400, 0x4DBF),
    (0x4E00, 0x9FFF),
    (0xF900, 0xFAFF),
    (0x20000, 0x2A6DF),
    (0x2A700, 0x2EBEF),
    (0x2F800, 0x2FA1F),
    (0x30000, 0x3134F),
)


class DeepseekAPIError(Exception):
    """The API answered with an error status or an unreadable body."""

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(f"API error (status {status_code}): {message}")
        self.status_code = status_code
        self.message = message


@dataclass(frozen=True)
class ChatMessage:
    """One message of a chat conversation."""

    role: str
    content: str


@dataclass
class ChatCompletionRequest:
    """Parameters of a chat completion call."""

    model: str
    messages: list[ChatMessage]
    temperature: float = 0.0
    json_mode: bool = False

    def to_payload(self) -> dict[str, Any]:
        """The JSON body sent to the API."""
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in self.messages],
        }
        if self.temperature:
            payload["temperature"] = self.temperature
        if self.json_mode:
            payload["response_format"] = {"type": "json_object"}
        return payload


@dataclass(frozen=True)
class ChatCompletionResponse:
    """The answer to a chat completion call."""

    id: str = ""
    model: str = ""
    choices: list[ChatMessage] = field(default_factory=list)

    @property
    def content(self) -> str:
        """Text of the first choice, or an empty string."""
        return self.choices[0].content if self.choices else ""


@dataclass(frozen=True)
class APIModel:
    """A model entry as listed by the API."""

    id: str
    owned_by: str = ""
    object: str = "model"


@dataclass(frozen=True)
class BalanceInfo:
    """Balance amounts in one currency, as strings reported by the API."""

    currency: str
    total_balance: str
    granted_balance: str
    topped_up_balance: str


@dataclass(frozen=True)
class BalanceResponse:
    """Account availability and per-currency balances."""

    is_available: bool
    balance_infos: list[BalanceInfo] = field(default_factory=list)


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if isinstance(error, str) and error:
            return error
        if body.get("message"):
            return str(body["message"])
    return response.text


def _as_dict(value: Any, status: int, what: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise DeepseekAPIError(status, f"unexpected {what} in response")
    return value


class DeepseekClient:
    """Synchronous client for the API; usable as a context manager."""

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            },
        )

    def __enter__(self) -> DeepseekClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, path: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        try:
            response = self._http.request(method, path, json=payload)
        except httpx.TimeoutException as exc:
            raise TimeoutError(f"request to {path} timed out: {exc}") from exc
        except httpx.TransportError as exc:
            raise ConnectionError(f"connection error during request to {path}: {exc}") from exc
        if response.status_code >= 400:
            raise DeepseekAPIError(response.status_code, _error_message(response))
        try:
            body = response.json()
        except ValueError as exc:
            raise DeepseekAPIError(response.status_code, f"invalid JSON in response: {exc}") from exc
        return _as_dict(body, response.status_code, "body")

    def create_chat_completion(self, request: ChatCompletionRequest) -> ChatCompletionResponse:
        """Send a chat completion request."""
        body = self._request("POST", "/chat/completions", request.to_payload())
        choices = []
        for choice in body.get("choices") or []:
            message = _as_dict(choice, 200, "choice").get("message") or {}
            message = _as_dict(message, 200, "message")
            choices.append(
                ChatMessage(role=message.get("role") or "assistant", content=message.get("content") or "")
            )
        return ChatCompletionResponse(id=body.get("id") or "", model=body.get("model") or "", choices=choices)

    def list_models(self) -> list[APIModel]:
        """Models the API offers."""
        body = self._request("GET", "/models")
        return [
            APIModel(
                id=entry.get("id", ""),
                owned_by=entry.get("owned_by", ""),
                object=entry.get("object", "model"),
            )
            for entry in (_as_dict(item, 200, "model") for item in body.get("data") or [])
        ]

    def get_balance(self) -> BalanceResponse:
        """Account balance."""
        body = self._request("GET", "/user/balance")
        infos = [
            BalanceInfo(
                currency=str(entry.get("currency", "")),
                total_balance=str(entry.get("total_balance", "")),
                granted_balance=str(entry.get("granted_balance", "")),
                topped_up_balance=str(entry.get("topped_up_balance", "")),
            )
            for entry in (_as_dict(item, 200, "balance") for item in body.get("balance_infos") or [])
        ]
        return BalanceResponse(is_available=bool(body.get("is_available", False)), balance_infos=infos)

    def close(self) -> None:
        """Release the underlying connections."""
        self._http.close()


def _is_cjk(char: str) -> bool:
    code = ord(char)
    return any(low <= code <= high for low, high in _CJK_RANGES)


def estimate_token_count(text: str) -> int:
    """Rough token count: 0.6 per CJK ideograph, 0.3 per other visible character."""
    cjk = sum(1 for char in text if _is_cjk(char))
    other = sum(1 for char in text if not char.isspace() and not _is_cjk(char))
    return math.ceil((cjk * 6 + other * 3) / 10)