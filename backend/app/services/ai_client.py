import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Sequence

import httpx

from ..config import Settings


logger = logging.getLogger(__name__)

SUPPORTED_PROVIDERS = ("openai", "gemini")


class AIClientError(RuntimeError):
    pass


class AIClientConfigError(AIClientError):
    pass


class AIClientEmptyResponse(AIClientError):
    pass


class AIClientHTTPError(AIClientError):
    def __init__(self, *, provider: str, status_code: int, body: str):
        super().__init__(f"{provider} {status_code}: {body}")
        self.provider = provider
        self.status_code = status_code
        self.body = body


@dataclass(frozen=True)
class CompletionMeta:
    provider: str
    model: str
    latency_ms: int
    status_code: int | None


def _safe_truncate(s: str, n: int = 800) -> str:
    s = s or ""
    if len(s) <= n:
        return s
    return s[:n] + "…"


def _first_dict(items: Any) -> dict:
    if isinstance(items, list) and items and isinstance(items[0], dict):
        return items[0]
    return {}


def _first_choice_text(data: Any) -> str:
    """
    Read `choices[0].message.content`, falling back to the legacy completions
    shape `choices[0].text`.
    """
    if not isinstance(data, dict):
        return ""
    first = _first_dict(data.get("choices"))
    message = first.get("message") if isinstance(first.get("message"), dict) else {}
    text = message.get("content") or first.get("text") or ""
    return text if isinstance(text, str) else ""


def _first_candidate_text(data: Any) -> str:
    if not isinstance(data, dict):
        return ""
    first = _first_dict(data.get("candidates"))
    content = first.get("content") if isinstance(first.get("content"), dict) else {}
    text = _first_dict(content.get("parts")).get("text", "")
    return text if isinstance(text, str) else ""


async def openai_chat_completion(
    *,
    api_key: str | None,
    base_url: str,
    model: str,
    messages: Sequence[dict[str, str]],
    temperature: float = 0.0,
    max_tokens: int = 512,
    stop: Sequence[str] | None = None,
    response_format: dict[str, Any] | None = None,
    timeout_s: float | None = None,
    log_payloads: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[str, CompletionMeta]:
    """
    Calls an OpenAI-compatible chat-completions endpoint once and returns the
    trimmed text of the first choice.

    Endpoint:
      POST {base_url}/chat/completions
    Auth:
      Authorization: Bearer {api_key}
    """
    if not api_key:
        raise AIClientConfigError("OPENAI_API_KEY missing")
    if not model:
        raise AIClientConfigError("LLM_MODEL missing for OpenAI")

    url = f"{(base_url or '').rstrip('/')}/chat/completions"
    body: dict[str, Any] = {
        "model": model,
        "temperature": float(temperature),
        "max_tokens": int(max_tokens),
        "messages": list(messages),
    }
    if stop:
        body["stop"] = list(stop)
    if response_format:
        body["response_format"] = response_format

    headers = {
        "Authorization": f"Bearer {api_key}",
        "content-type": "application/json",
    }

    start = time.perf_counter()
    async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
        if log_payloads:
            logger.info(
                "OpenAI request model=%s url=%s body=%s",
                model,
                url,
                _safe_truncate(json.dumps(body, ensure_ascii=False)),
            )
        r = await client.post(url, json=body, headers=headers)

    if r.status_code >= 400:
        raise AIClientHTTPError(provider="OpenAI", status_code=r.status_code, body=_safe_truncate(r.text, 1000))

    try:
        data = r.json()
    except ValueError:
        data = None
    text = _first_choice_text(data).strip()
    if not text:
        raise AIClientEmptyResponse("OpenAI empty response")

    meta = CompletionMeta(
        provider="openai",
        model=model,
        latency_ms=int((time.perf_counter() - start) * 1000),
        status_code=r.status_code,
    )
    logger.info("OpenAI ok model=%s status=%s latency_ms=%s", meta.model, meta.status_code, meta.latency_ms)
    return text, meta


async def gemini_generate_content(
    *,
    api_key: str | None,
    base_url: str,
    api_version: str = "v1beta",
    model: str,
    messages: Sequence[dict[str, str]],
    temperature: float = 0.0,
    max_tokens: int = 512,
    stop: Sequence[str] | None = None,
    timeout_s: float | None = None,
    log_payloads: bool = False,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[str, CompletionMeta]:
    """
    Calls Gemini Generative Language API (API key auth) once and returns the model text.

    Endpoint:
      POST {base_url}/{api_version}/models/{model}:generateContent
    Auth:
      x-goog-api-key: {api_key}
    """
    if not api_key:
        raise AIClientConfigError("GEMINI_API_KEY missing")
    if not model:
        raise AIClientConfigError("LLM_MODEL missing for Gemini")
    api_v = (api_version or "v1beta").strip().lstrip("/")
    base = (base_url or "").rstrip("/")
    model_path = model.strip()
    if model_path.startswith("models/"):
        model_path = model_path[len("models/") :]
    url = f"{base}/{api_v}/models/{model_path}:generateContent"

    def _build_body() -> dict[str, Any]:
        """
        Chat roles are flattened into one user turn: system text first, then the
        conversation in order. Not every deployment accepts systemInstruction.
        """
        system_parts = [{"text": m["content"]} for m in messages if m.get("role") == "system"]
        other_parts = [{"text": m["content"]} for m in messages if m.get("role") != "system"]
        config: dict[str, Any] = {
            "temperature": float(temperature),
            "maxOutputTokens": int(max_tokens),
        }
        if stop:
            config["stopSequences"] = list(stop)
        return {
            "contents": [
                {"role": "user", "parts": system_parts + other_parts},
            ],
            "generationConfig": config,
        }

    body = _build_body()
    headers = {
        "x-goog-api-key": api_key,
        "content-type": "application/json",
    }

    start = time.perf_counter()
    async with httpx.AsyncClient(timeout=timeout_s, transport=transport) as client:
        if log_payloads:
            logger.info(
                "Gemini request model=%s url=%s body=%s",
                model,
                url,
                _safe_truncate(json.dumps(body, ensure_ascii=False)),
            )
        r = await client.post(url, json=body, headers=headers)

    if r.status_code >= 400:
        raise AIClientHTTPError(provider="Gemini", status_code=r.status_code, body=_safe_truncate(r.text, 1000))

    try:
        data = r.json()
    except ValueError:
        data = None
    # Typical shape:
    # { candidates: [ { content: { parts: [ { text: "..." } ] } } ], ... }
    text = _first_candidate_text(data).strip()
    if not text:
        raise AIClientEmptyResponse("Gemini empty response")

    meta = CompletionMeta(
        provider="gemini",
        model=model,
        latency_ms=int((time.perf_counter() - start) * 1000),
        status_code=r.status_code,
    )
    logger.info("Gemini ok model=%s status=%s latency_ms=%s", meta.model, meta.status_code, meta.latency_ms)
    return text, meta


async def generate_chat_text(
    *,
    settings: Settings,
    provider: str | None,
    model: str,
    messages: Sequence[dict[str, str]],
    temperature: float = 0.0,
    max_tokens: int = 512,
    stop: Sequence[str] | None = None,
    response_format: dict[str, Any] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[str, CompletionMeta]:
    """Single upstream attempt against the configured provider; no retries."""
    if provider == "openai":
        return await openai_chat_completion(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            stop=stop,
            response_format=response_format,
            timeout_s=settings.ai_timeout_s,
            log_payloads=settings.ai_log_payloads,
            transport=transport,
        )
    if provider == "gemini":
        return await gemini_generate_content(
            api_key=settings.gemini_api_key,
            base_url=settings.gemini_base_url,
            api_version=settings.gemini_api_version,
            model=model,
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
            stop=stop,
            timeout_s=settings.ai_timeout_s,
            log_payloads=settings.ai_log_payloads,
            transport=transport,
        )
    raise AIClientConfigError(f"Unsupported LLM_PROVIDER: {provider!r} (expected one of {', '.join(SUPPORTED_PROVIDERS)})")
