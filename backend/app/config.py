import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping

from dotenv import load_dotenv

# Override=True so changes in backend/.env take effect on process reload (and not get
# stuck on old environment variables).
#
# For automated tests we need to prevent backend/.env from leaking real provider keys
# into the process. Set DISABLE_DOTENV=1 to skip loading .env.
if os.getenv("DISABLE_DOTENV") != "1":
    load_dotenv(override=True)

_TRUTHY = {"1", "true", "True", "yes", "YES"}

DEFAULT_OPENAI_BASE_URL = "https://api.openai.com/v1"
DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com"
DEFAULT_WIZARD_MODEL = "gpt-4o-mini"

# Minimum wage is the lower bound; the upper bound filters obvious typos.
DEFAULT_MIN_SALARY = 22104
DEFAULT_MAX_SALARY = 100000


@dataclass(frozen=True)
class Settings:
    llm_provider: str | None = None
    llm_model: str = ""
    wizard_model: str = DEFAULT_WIZARD_MODEL
    openai_api_key: str | None = None
    openai_base_url: str = DEFAULT_OPENAI_BASE_URL
    gemini_api_key: str | None = None
    gemini_base_url: str = DEFAULT_GEMINI_BASE_URL
    gemini_api_version: str = "v1beta"
    # None means no client-side timeout; the hosting platform's deadline applies.
    ai_timeout_s: float | None = None
    ai_log_payloads: bool = False
    min_salary: int = DEFAULT_MIN_SALARY
    max_salary: int = DEFAULT_MAX_SALARY
    bio_max_sentences: int = 4
    bio_reject_profanity: bool = True
    log_level: str = "INFO"


def _get(env: Mapping[str, str], name: str) -> str:
    return (env.get(name) or "").strip()


def _int(env: Mapping[str, str], name: str, default: int) -> int:
    try:
        return int(_get(env, name) or default)
    except ValueError:
        return default


def _float_or_none(env: Mapping[str, str], name: str) -> float | None:
    raw = _get(env, name)
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def load_settings(env: Mapping[str, str] | None = None) -> Settings:
    """
    Build the immutable settings object from environment-style values.
    Unparseable numbers fall back to their defaults instead of failing startup.
    """
    env = os.environ if env is None else env

    provider = _get(env, "LLM_PROVIDER").lower() or None
    llm_model = _get(env, "LLM_MODEL")
    reject_raw = _get(env, "BIO_REJECT_PROFANITY")

    return Settings(
        llm_provider=provider,
        llm_model=llm_model,
        wizard_model=(
            _get(env, "WIZARD_LLM_MODEL")
            or (llm_model if provider == "openai" else "")
            or DEFAULT_WIZARD_MODEL
        ),
        openai_api_key=_get(env, "OPENAI_API_KEY") or None,
        openai_base_url=_get(env, "OPENAI_BASE_URL") or DEFAULT_OPENAI_BASE_URL,
        gemini_api_key=_get(env, "GEMINI_API_KEY") or None,
        gemini_base_url=_get(env, "GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL,
        gemini_api_version=_get(env, "GEMINI_API_VERSION") or "v1beta",
        ai_timeout_s=_float_or_none(env, "AI_TIMEOUT_S"),
        ai_log_payloads=_get(env, "AI_LOG_PAYLOADS") in _TRUTHY,
        min_salary=_int(env, "MIN_SALARY", DEFAULT_MIN_SALARY),
        max_salary=_int(env, "MAX_SALARY", DEFAULT_MAX_SALARY),
        bio_max_sentences=max(1, _int(env, "BIO_MAX_SENTENCES", 4)),
        bio_reject_profanity=(reject_raw in _TRUTHY) if reject_raw else True,
        log_level=(_get(env, "LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache
def get_settings() -> Settings:
    return load_settings()
