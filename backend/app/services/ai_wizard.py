import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError

from ..config import Settings
from ..schemas.wizard import WizardLLMReply, WizardRequest, WizardResponse
from ..utils.error_handlers import BadRequestError
from .ai_client import generate_chat_text
from .ai_common import extract_first_json_object
from .ai_prompts import wizard_bio_system_prompt, wizard_system_prompt, wizard_user_prompt
from .profanity import full_sanitize, mentions_insurance
from .wizard_steps import (
    STEPS,
    BenefitsStep,
    BioGenerationStep,
    SalaryStep,
    WizardStep,
    bio_form_state,
    compute_next_step,
    get_step,
    salary_in_range,
)


logger = logging.getLogger(__name__)

WIZARD_TEMPERATURE = 0.2
WIZARD_MAX_TOKENS = 512
REPLY_PREVIEW_CHARS = 180

FALLBACK_MESSAGES = {
    "tr": "Üzgünüm, tam anlayamadım. Cevabını biraz daha net yazar mısın?",
    "en": "Sorry, I couldn’t fully understand that. Could you write it a bit more clearly?",
}
FINISHED_MESSAGES = {
    "tr": "Harika, temel bilgilerin tamam. Aşağıdaki profilini kontrol edebilirsin; hazırsan 'İş Bulmaya Başlayalım' butonuna basabilirsin.",
    "en": "Great, I have all the basic info I need. You can review your profile below and tap 'Let's Find A Job' when you’re ready.",
}
COMPLETED_MESSAGES = {
    "tr": "Tüm soruları tamamladık. Profilini inceleyebilirsin.",
    "en": "All questions are completed. You can review your profile.",
}
INSURANCE_DISCLAIMERS = {
    "tr": (
        " Sigorta (SGK) konusu yasal bir zorunluluktur; bunu mutlaka iş görüşmesinde işverenle "
        "netleştirmeni öneriyorum. Biz sigortasız çalışmayı teşvik etmiyoruz."
    ),
    "en": (
        " Insurance/social security is a legal requirement; you should always clarify it directly with "
        "the employer during the interview. We do not encourage working without insurance."
    ),
}
BIO_RETRY_MESSAGES = {
    "tr": "Biyografini şu an oluşturamadım. Deneyimini biraz daha detaylı yazıp tekrar onay verir misin?",
    "en": "I couldn’t create your biography just now. Could you add a bit more about your experience and confirm again?",
}


def salary_retry_message(lang: str, *, min_salary: int, max_salary: int) -> str:
    if lang == "en":
        return (
            "The salary number you wrote looks a bit unrealistic. Please enter your expected monthly salary "
            f"again as numbers only, with a range between {min_salary} and {max_salary} TL."
        )
    return (
        "Yazdığın maaş rakamı biraz gerçek dışı görünüyor. Maaş beklentini lütfen asgari ücret olan "
        f"{min_salary} TL ile {max_salary} TL arasında, sadece rakamlarla ve bir aralık olarak tekrar yazar mısın?"
    )


def parse_llm_reply(text: str) -> WizardLLMReply | None:
    """None when the model did not answer with a usable JSON object."""
    try:
        return WizardLLMReply.model_validate(extract_first_json_object(text))
    except (ValueError, ValidationError):
        return None


def _follow_up(form: dict[str, Any], lang: str, settings: Settings) -> tuple[str, int, bool]:
    nxt = compute_next_step(form, min_salary=settings.min_salary, max_salary=settings.max_salary)
    if nxt.is_finished:
        return FINISHED_MESSAGES[lang], nxt.next_step, True
    return STEPS[nxt.next_step].question(lang), nxt.next_step, False


def _build_messages(
    *, step: WizardStep, step_index: int, lang: str, answer: str, form: dict[str, Any], settings: Settings
) -> list[dict[str, str]]:
    instruction = step.instruction(
        index=step_index,
        lang=lang,
        min_salary=settings.min_salary,
        max_salary=settings.max_salary,
        form_state=form,
    )
    if isinstance(step, BioGenerationStep):
        system = wizard_bio_system_prompt(lang=lang)
        prompt_state = bio_form_state(form)
    else:
        system = wizard_system_prompt(lang=lang, field=step.field, enums=step.enums())
        prompt_state = form
    user = wizard_user_prompt(
        step_instruction=instruction,
        lang=lang,
        step_index=step_index,
        answer=answer,
        form_state=prompt_state,
    )
    return [{"role": "system", "content": system}, {"role": "user", "content": user}]


def _log_step(
    *,
    request: WizardRequest,
    step: WizardStep | None,
    step_done: bool,
    response: WizardResponse,
    started: float,
) -> None:
    form = response.form_state
    payload = {
        "type": "wizard_step_log",
        "ts": datetime.now(timezone.utc).isoformat(),
        "user_id": request.user_id,
        "lang": request.language_code,
        "step_index": request.step_index,
        "step_field": step.field if step else None,
        "step_done": step_done,
        "next_step": response.step_index,
        "is_finished": response.is_finished,
        "has_experience": bool(form.get("p_experience")),
        "has_bio": bool(form.get("p_bio")),
        "has_salary": bool(form.get("p_salary_min") and form.get("p_salary_max")),
        "assistant_reply_preview": response.assistant_reply[:REPLY_PREVIEW_CHARS],
        "duration_ms": int((time.perf_counter() - started) * 1000),
    }
    try:
        logger.info(json.dumps(payload, ensure_ascii=False, default=str))
    except (TypeError, ValueError):
        logger.debug("wizard step log skipped", exc_info=True)


async def process_wizard_step(*, settings: Settings, request: WizardRequest) -> WizardResponse:
    """
    Runs one wizard turn: extract the current step's fields from the answer,
    merge them into the caller's form and decide which step comes next.

    The returned step_index stays on the current step until it is done.
    Upstream LLM errors propagate to the caller.
    """
    started = time.perf_counter()
    lang = request.language_code
    form: dict[str, Any] = dict(request.form_state)
    step = get_step(request.step_index)

    if step is None:
        # Past the last field: nothing to parse, just point at whatever is missing.
        follow, next_index, finished = _follow_up(form, lang, settings)
        reply = COMPLETED_MESSAGES[lang] if finished else follow
        response = WizardResponse(
            assistant_reply=reply, is_finished=finished, step_index=next_index, form_state=form
        )
        _log_step(request=request, step=None, step_done=finished, response=response, started=started)
        return response

    raw_answer = request.user_input_text or ""
    if not raw_answer.strip() and not isinstance(step, BioGenerationStep):
        raise BadRequestError("user_input_text is required")

    messages = _build_messages(
        step=step,
        step_index=request.step_index,
        lang=lang,
        answer=full_sanitize(raw_answer),
        form=form,
        settings=settings,
    )
    text, _ = await generate_chat_text(
        settings=settings,
        provider="openai",
        model=settings.wizard_model,
        messages=messages,
        temperature=WIZARD_TEMPERATURE,
        max_tokens=WIZARD_MAX_TOKENS,
        response_format={"type": "json_object"},
    )

    parsed = parse_llm_reply(text)
    if parsed is None:
        logger.warning("Wizard reply was not valid JSON step=%s preview=%s", request.step_index, text[:REPLY_PREVIEW_CHARS])
        parsed = WizardLLMReply(assistant_comment=FALLBACK_MESSAGES[lang])

    scoped = {k: v for k, v in parsed.updates.items() if k in step.fields}
    form.update(step.clean_updates(scoped, form_state=form))
    step_done = parsed.step_done
    comment = full_sanitize(parsed.assistant_comment.strip())
    forced: str | None = None

    if isinstance(step, SalaryStep):
        low, high = form.get("p_salary_min"), form.get("p_salary_max")
        if low is not None or high is not None:
            ok = (
                salary_in_range(low, min_salary=settings.min_salary, max_salary=settings.max_salary)
                and salary_in_range(high, min_salary=settings.min_salary, max_salary=settings.max_salary)
                and low <= high
            )
            if not ok:
                form["p_salary_min"] = None
                form["p_salary_max"] = None
                step_done = False
                forced = salary_retry_message(lang, min_salary=settings.min_salary, max_salary=settings.max_salary)

    if step_done and not step.is_filled(form):
        step_done = False
        if isinstance(step, BioGenerationStep):
            forced = BIO_RETRY_MESSAGES[lang]

    if forced:
        comment = forced

    if step_done:
        follow, next_index, finished = _follow_up(form, lang, settings)
        reply = f"{comment} {follow}" if comment else follow
    else:
        next_index, finished = request.step_index, False
        reply = comment or step.question(lang)

    if isinstance(step, BenefitsStep) and mentions_insurance(raw_answer):
        reply = (reply + INSURANCE_DISCLAIMERS[lang]).strip()

    response = WizardResponse(
        assistant_reply=reply, is_finished=finished, step_index=next_index, form_state=form
    )
    _log_step(request=request, step=step, step_done=step_done, response=response, started=started)
    return response
