import logging

from ..config import Settings
from ..schemas.bio import BioRewriteMeta
from ..utils.error_handlers import BadRequestError, ConfigurationError, UpstreamError
from .ai_client import (
    AIClientConfigError,
    AIClientEmptyResponse,
    AIClientError,
    AIClientHTTPError,
    generate_chat_text,
)
from .ai_common import strip_code_fence, strip_wrapping_quotes
from .ai_prompts import bio_system_prompt, bio_user_prompt
from .bio_text import (
    RUSH_SENTENCE,
    capitalize_sentences,
    clamp_range,
    count_sentences,
    enforce_sentence_cap,
    mentions_rush_hours,
    merge_redundant_sentences,
    neutralize_subjective,
    pick_target_range,
    precorrect_spelling,
    split_sentences,
    tidy_spacing,
)
from .profanity import find_profanity, full_sanitize


logger = logging.getLogger(__name__)

# Cut trailing commentary: a blank line, a code fence, or a "Biyografi:" heading.
BIO_STOP_SEQUENCES = ["\n\n", "```", "Biyografi"]


def _max_tokens_for(input_sentences: int) -> int:
    return min(90 + input_sentences * 10, 220)


def _ensure_terminal_punctuation(text: str) -> str:
    s = text.rstrip()
    if s and s[-1] not in ".!?":
        s += "."
    return s


def postprocess_bio(text: str, *, rush: bool, max_sentences: int) -> str:
    """
    Deterministic clean-up of the model output. The substitutions are best-effort;
    the sentence cap and the final profanity mask are hard guarantees.
    """
    s = strip_wrapping_quotes(strip_code_fence(text))
    s = tidy_spacing(s.replace("\n", " "))
    s = neutralize_subjective(s)
    s = merge_redundant_sentences(s)
    s = capitalize_sentences(s)
    s = _ensure_terminal_punctuation(s)

    if rush and not mentions_rush_hours(s):
        # Leave room so the appended sentence survives the cap.
        s = enforce_sentence_cap(s, max_sentences - 1)
        s = f"{s} {RUSH_SENTENCE}".strip()

    s = enforce_sentence_cap(s, max_sentences)
    return full_sanitize(s)


async def rewrite_bio(*, settings: Settings, raw_bio: str) -> tuple[str, BioRewriteMeta]:
    """
    Returns (improved_bio, meta).

    Raises BadRequestError for empty or abusive input, ConfigurationError when the
    provider cannot be called as configured and UpstreamError when the provider
    fails or returns nothing usable.
    """
    text = (raw_bio or "").strip()
    if not text:
        raise BadRequestError("`rawBio` is required in JSON body")

    offending = find_profanity(text)
    if offending and settings.bio_reject_profanity:
        raise BadRequestError(
            f"Biyografide uygunsuz ifadeler var: {', '.join(offending)}",
            details={"offending_terms": offending},
        )
    if not settings.llm_provider:
        raise BadRequestError("LLM_PROVIDER is missing (openai|gemini)")

    cleaned = precorrect_spelling(full_sanitize(text))
    cleaned = neutralize_subjective(cleaned)

    input_sentences = count_sentences(cleaned)
    cap = settings.bio_max_sentences
    target = clamp_range(pick_target_range(input_sentences), cap)
    rush = mentions_rush_hours(cleaned)

    meta = BioRewriteMeta(
        provider=settings.llm_provider,
        model=settings.llm_model or None,
        input_sentences=input_sentences,
        target_min=target.min,
        target_max=target.max,
        rush=rush,
    )

    messages = [
        {
            "role": "system",
            "content": bio_system_prompt(
                input_sentences=input_sentences,
                target_min=target.min,
                target_max=target.max,
                max_sentences=cap,
                rush=rush,
            ),
        },
        {"role": "user", "content": bio_user_prompt(bio_text=cleaned)},
    ]

    try:
        raw_text, call_meta = await generate_chat_text(
            settings=settings,
            provider=settings.llm_provider,
            model=settings.llm_model,
            messages=messages,
            temperature=0.0,
            max_tokens=_max_tokens_for(input_sentences),
            stop=BIO_STOP_SEQUENCES,
        )
    except AIClientConfigError as e:
        raise ConfigurationError(str(e)) from e
    except AIClientHTTPError as e:
        raise UpstreamError(str(e), status_code=e.status_code) from e
    except AIClientEmptyResponse as e:
        raise UpstreamError(str(e)) from e
    except AIClientError as e:
        raise UpstreamError(f"LLM request failed: {e}") from e

    improved = postprocess_bio(raw_text, rush=rush, max_sentences=cap)
    if not improved:
        raise UpstreamError("LLM returned no usable biography text")

    logger.info(
        "Bio rewritten provider=%s input_sentences=%s output_sentences=%s rush=%s latency_ms=%s",
        call_meta.provider,
        input_sentences,
        len(split_sentences(improved)),
        rush,
        call_meta.latency_ms,
    )
    return improved, meta
