"""
Static step table for the job seeker wizard.

Each step kind is its own class carrying the prompt rules for the model and the
server-side cleaning applied to whatever the model sends back. The table is
built once at import time and never mutated.
"""
import math
import re
from dataclasses import dataclass
from datetime import date
from typing import Any, ClassVar, NamedTuple

from . import ai_prompts
from .bio_text import enforce_sentence_cap, split_sentences
from .profanity import full_sanitize, mentions_insurance, normalize

GENDERS = ("kadın", "erkek", "belirtmek istemiyorum")
START_DAYS = ("yarın", "3 gün içinde", "1 hafta içinde")
SHIFTS = ("sabah", "öğle", "akşam")
BENEFITS = ("yemek", "ulaşım", "özel gün izni")
ATTRIBUTES = (
    "insan ilişkileri iyi",
    "sorun çözen",
    "konuşkan",
    "titiz",
    "çabuk öğrenen",
    "zamanında işe gelen",
)
TIPS = ("bahşiş çalışana ait", "ortak bahşiş", "bahşiş yok")

# Multi-select fields where an explicit empty choice still counts as answered.
OPTIONAL_ARRAY_FIELDS = frozenset({"p_shift_prefs", "p_benefits", "p_attributes"})

MIN_BIRTH_YEAR = 1900
MAX_NAME_LENGTH = 80
MAX_EXPERIENCE_SENTENCES = 2
MAX_EXPERIENCE_LENGTH = 600
BIO_MIN_SENTENCES = 3
BIO_MAX_SENTENCES = 7

_YEAR_RE = re.compile(r"(?<!\d)(\d{4})(?!\d)")
_DIGITS_RE = re.compile(r"\D+")
_SALARY_WORDS_RE = re.compile(r"maaş|ücret|salary|\bTL\b|₺", re.IGNORECASE)


class NextStep(NamedTuple):
    next_step: int
    is_finished: bool


# -------------------- coercion helpers --------------------

def ensure_string_array(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    out = []
    for v in value:
        s = str(v).strip() if v is not None else ""
        if s:
            out.append(s)
    return out


def coerce_number_or_null(value: Any) -> int | float | None:
    """
    Parse a salary-like value: currency symbols, spaces and thousands
    separators are stripped. Negative, non-finite or empty values give None.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        if not math.isfinite(value) or value < 0:
            return None
        return int(value) if float(value).is_integer() else value
    s = str(value).strip()
    if not s or s.startswith("-"):
        return None
    digits = _DIGITS_RE.sub("", s)
    if not digits:
        return None
    return int(digits)


def coerce_enum(value: Any, allowed: tuple[str, ...]) -> str | None:
    if value is None:
        return None
    s = str(value).strip()
    if not s:
        return None
    key = normalize(s)
    for option in allowed:
        if normalize(option) == key:
            return option
    return None


def coerce_enum_list(value: Any, allowed: tuple[str, ...]) -> list[str]:
    out: list[str] = []
    for item in ensure_string_array(value):
        option = coerce_enum(item, allowed)
        if option and option not in out:
            out.append(option)
    return out


def coerce_birth_year(value: Any, today: date | None = None) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    m = _YEAR_RE.search(str(value))
    if not m:
        return None
    year = int(m.group(1))
    current = (today or date.today()).year
    if year < MIN_BIRTH_YEAR or year > current:
        return None
    return str(year)


def salary_in_range(value: Any, *, min_salary: int, max_salary: int) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
        and min_salary <= value <= max_salary
    )


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


# -------------------- step variants --------------------

@dataclass(frozen=True)
class WizardStep:
    field: str
    label: str
    question_tr: str
    question_en: str
    vague_hint_tr: str = ""
    vague_hint_en: str = ""

    kind: ClassVar[str] = ""
    allowed: ClassVar[tuple[str, ...]] = ()

    @property
    def fields(self) -> tuple[str, ...]:
        return (self.field,)

    def enums(self) -> dict[str, list[str]]:
        return {self.field: list(self.allowed)} if self.allowed else {}

    def question(self, lang: str) -> str:
        return self.question_en if lang == "en" else self.question_tr

    def vague_hint(self, lang: str) -> str:
        return self.vague_hint_en if lang == "en" else self.vague_hint_tr

    def rules(self, *, lang: str, min_salary: int, max_salary: int, form_state: dict[str, Any]) -> str:
        raise NotImplementedError

    def instruction(
        self,
        *,
        index: int,
        lang: str,
        min_salary: int,
        max_salary: int,
        form_state: dict[str, Any],
    ) -> str:
        parts = [
            ai_prompts.step_header(step_index=index, field=self.field, label=self.label),
            self.rules(lang=lang, min_salary=min_salary, max_salary=max_salary, form_state=form_state),
        ]
        hint = self.vague_hint(lang)
        if hint:
            parts.append(f"Vague hint for the user: {hint}")
        parts.append(ai_prompts.enums_snippet(self.enums()))
        return "\n\n".join(parts)

    def clean_updates(self, updates: dict[str, Any], *, form_state: dict[str, Any]) -> dict[str, Any]:
        """
        Keep only this step's fields, coerced to their stored types.
        Values that cannot be coerced are dropped rather than stored.
        """
        raise NotImplementedError

    def is_filled(self, form: dict[str, Any]) -> bool:
        value = form.get(self.field)
        if isinstance(value, list):
            return bool(value) or self.field in OPTIONAL_ARRAY_FIELDS
        return not _is_blank(value)


@dataclass(frozen=True)
class NameStep(WizardStep):
    kind: ClassVar[str] = "name"

    def rules(self, **_: Any) -> str:
        return ai_prompts.name_rules()

    def clean_updates(self, updates, *, form_state):
        if self.field not in updates or _is_blank(updates[self.field]):
            return {}
        name = full_sanitize(str(updates[self.field]).strip())[:MAX_NAME_LENGTH]
        return {self.field: name}


@dataclass(frozen=True)
class BirthYearStep(WizardStep):
    kind: ClassVar[str] = "birth_year"

    def rules(self, **_: Any) -> str:
        return ai_prompts.birth_year_rules()

    def clean_updates(self, updates, *, form_state):
        year = coerce_birth_year(updates.get(self.field))
        return {self.field: year} if year else {}


@dataclass(frozen=True)
class ChoiceStep(WizardStep):
    def rules(self, **_: Any) -> str:
        return ai_prompts.single_choice_rules(allowed=list(self.allowed))

    def clean_updates(self, updates, *, form_state):
        option = coerce_enum(updates.get(self.field), self.allowed)
        return {self.field: option} if option else {}


@dataclass(frozen=True)
class GenderStep(ChoiceStep):
    kind: ClassVar[str] = "gender"
    allowed: ClassVar[tuple[str, ...]] = GENDERS


@dataclass(frozen=True)
class StartDayStep(ChoiceStep):
    kind: ClassVar[str] = "start_day"
    allowed: ClassVar[tuple[str, ...]] = START_DAYS


@dataclass(frozen=True)
class TipStep(ChoiceStep):
    kind: ClassVar[str] = "tip"
    allowed: ClassVar[tuple[str, ...]] = TIPS


@dataclass(frozen=True)
class MultiChoiceStep(WizardStep):
    def candidates(self, values: list[str]) -> list[str]:
        return values

    def clean_updates(self, updates, *, form_state):
        if self.field not in updates:
            return {}
        raw = ensure_string_array(updates[self.field])
        options = coerce_enum_list(self.candidates(raw), self.allowed)
        # Only a literal [] is an explicit "none"; an answer that matched no option is not.
        if raw and not options:
            return {}
        return {self.field: options}


@dataclass(frozen=True)
class ShiftStep(MultiChoiceStep):
    kind: ClassVar[str] = "shift"
    allowed: ClassVar[tuple[str, ...]] = SHIFTS

    def rules(self, **_: Any) -> str:
        return ai_prompts.shift_rules(allowed=list(self.allowed))


@dataclass(frozen=True)
class BenefitsStep(MultiChoiceStep):
    kind: ClassVar[str] = "benefits"
    allowed: ClassVar[tuple[str, ...]] = BENEFITS

    def rules(self, **_: Any) -> str:
        return ai_prompts.benefits_rules(allowed=list(self.allowed))

    def candidates(self, values: list[str]) -> list[str]:
        # Insurance is a legal obligation, never a benefit choice.
        return [v for v in values if not mentions_insurance(v)]


@dataclass(frozen=True)
class AttributesStep(MultiChoiceStep):
    kind: ClassVar[str] = "attributes"
    allowed: ClassVar[tuple[str, ...]] = ATTRIBUTES

    def rules(self, **_: Any) -> str:
        return ai_prompts.attributes_rules(allowed=list(self.allowed))


@dataclass(frozen=True)
class SalaryStep(WizardStep):
    kind: ClassVar[str] = "salary"

    @property
    def fields(self) -> tuple[str, ...]:
        return ("p_salary_min", "p_salary_max")

    def rules(self, *, lang: str, min_salary: int, max_salary: int, **_: Any) -> str:
        return ai_prompts.salary_rules(lang=lang, min_salary=min_salary, max_salary=max_salary)

    def clean_updates(self, updates, *, form_state):
        if "p_salary_min" not in updates and "p_salary_max" not in updates:
            return {}
        low = coerce_number_or_null(updates.get("p_salary_min"))
        high = coerce_number_or_null(updates.get("p_salary_max"))
        # A single figure means a fixed expectation.
        if low is None:
            low = high
        if high is None:
            high = low
        return {"p_salary_min": low, "p_salary_max": high}

    def is_filled(self, form: dict[str, Any]) -> bool:
        return form.get("p_salary_min") is not None and form.get("p_salary_max") is not None


@dataclass(frozen=True)
class ExperienceStep(WizardStep):
    kind: ClassVar[str] = "experience"

    @property
    def fields(self) -> tuple[str, ...]:
        return (self.field, "p_interests")

    def rules(self, **_: Any) -> str:
        return (
            ai_prompts.experience_rules()
            + "\n- If they mention hobbies or interests, you MAY set updates.p_interests to an array of short strings."
        )

    def clean_updates(self, updates, *, form_state):
        out: dict[str, Any] = {}
        if not _is_blank(updates.get(self.field)):
            text = full_sanitize(str(updates[self.field]).strip())
            out[self.field] = enforce_sentence_cap(text, MAX_EXPERIENCE_SENTENCES)[:MAX_EXPERIENCE_LENGTH]
        if "p_interests" in updates:
            out["p_interests"] = [full_sanitize(v) for v in ensure_string_array(updates["p_interests"])]
        return out


def bio_form_state(form_state: dict[str, Any]) -> dict[str, Any]:
    """The subset of the form the biography may be written from."""
    return {k: form_state[k] for k in ai_prompts.BIO_ALLOWED_FIELDS if k in form_state}


def _private_markers(form_state: dict[str, Any]) -> tuple[list[str], list[str]]:
    name_tokens = [
        normalize(t) for t in str(form_state.get("p_name") or "").split() if len(t) >= 3
    ]
    figures = []
    for key in ("p_salary_min", "p_salary_max"):
        value = coerce_number_or_null(form_state.get(key))
        if value:
            figures.append(str(int(value)))
    return name_tokens, figures


def strip_private_mentions(bio: str, form_state: dict[str, Any]) -> str:
    """Drop sentences that leak the person's name or salary expectation."""
    name_tokens, figures = _private_markers(form_state)
    kept = []
    for sentence in split_sentences(bio):
        words = {normalize(w) for w in re.findall(r"[^\W\d_]+", sentence)}
        digits = _DIGITS_RE.sub("", sentence)
        if any(t in words for t in name_tokens):
            continue
        if _SALARY_WORDS_RE.search(sentence) or any(f in digits for f in figures):
            continue
        kept.append(sentence)
    return " ".join(kept)


@dataclass(frozen=True)
class BioGenerationStep(WizardStep):
    kind: ClassVar[str] = "bio_generation"

    def rules(self, *, form_state: dict[str, Any], **_: Any) -> str:
        return ai_prompts.bio_generation_rules(bio_form_state=bio_form_state(form_state))

    def clean_updates(self, updates, *, form_state):
        if _is_blank(updates.get(self.field)):
            return {}
        text = full_sanitize(str(updates[self.field]).strip())
        text = strip_private_mentions(text, form_state)
        text = enforce_sentence_cap(text, BIO_MAX_SENTENCES)
        if len(split_sentences(text)) < BIO_MIN_SENTENCES:
            return {}
        return {self.field: text}


STEPS: tuple[WizardStep, ...] = (
    NameStep(
        field="p_name",
        label="name",
        question_tr="Merhaba! Önce seni tanıyalım. Adını ve soyadını yazabilir misin? Sana nasıl hitap edeyim?",
        question_en="Hi! Let’s get to know you. Could you write your first and last name? How should I address you?",
    ),
    BirthYearStep(
        field="p_birthday_year",
        label="birth year",
        question_tr="Doğum yılın nedir?",
        question_en="What is your year of birth?",
    ),
    GenderStep(
        field="p_gender",
        label="gender",
        question_tr="Doğrulamak için soruyorum. Cinsiyet belirtebilirsen sevinirim: kadın, erkek veya belirtmek istemiyorum.",
        question_en="Just to confirm, could you share your gender: female, male or prefer not to say?",
        vague_hint_tr="Kadın / erkek / belirtmek istemiyorum arasından birini seçmen gerekiyor.",
        vague_hint_en="You need to choose one of: female / male / prefer not to say.",
    ),
    StartDayStep(
        field="p_start_day",
        label="start day",
        question_tr="Ne zaman işe başlayabilirsin? 'Yarın', '3 Gün İçinde' veya '1 Hafta İçinde' yazman yeterli.",
        question_en="When can you start working? Typing 'Tomorrow', 'Within 3 Days' or 'Within 1 Week' is enough.",
        vague_hint_tr="Başlangıç için yarın, 3 gün içinde veya 1 hafta içinde gibi net bir zaman söylemen iyi olur.",
        vague_hint_en="Please choose a clear option like tomorrow, in 3 days or within 1 week.",
    ),
    ShiftStep(
        field="p_shift_prefs",
        label="shift preferences",
        question_tr="Hangi vardiyalarda çalışmak istersin? Sabah, Öğle, Akşam; hatta birden fazlasını da söyleyebilirsin.",
        question_en="Which shifts would you like to work? Morning, Noon, Evening; you can also mention more than one.",
        vague_hint_tr="Daha fazla vardiya seçmek sana daha çok ilan gösterebilir, ama son karar senin.",
        vague_hint_en="Choosing more shifts can show you more jobs, but the final decision is yours.",
    ),
    BenefitsStep(
        field="p_benefits",
        label="benefits",
        question_tr="İş yerinden hangi yan hakları beklersin? Örneğin Yemek, Ulaşım, Özel Gün İzni.",
        question_en="Which benefits do you expect from the workplace? For example: Meal, Transportation, Special Day Off.",
        vague_hint_tr="Sana gerçekten önemli olan yan hakları seçmen, eşleşmelerin daha doğru olmasını sağlar.",
        vague_hint_en="Choosing benefits that really matter to you helps with better matches.",
    ),
    AttributesStep(
        field="p_attributes",
        label="attributes",
        question_tr=(
            "Seni en iyi anlatan özelliklerden 2 tanesini yazar mısın? Örneğin: insan ilişkileri iyi, sorun çözen, "
            "konuşkan, titiz, çabuk öğrenen, zamanında işe gelen."
        ),
        question_en=(
            "Could you write 2 traits that describe you best? For example: good with people, problem solver, "
            "talkative, tidy, fast learner, always on time."
        ),
        vague_hint_tr="Seni en iyi anlatan 2-3 özelliği seçmen, işverenin seni daha iyi tanımasına yardım eder.",
        vague_hint_en="Picking 2–3 traits that describe you best helps employers understand you.",
    ),
    SalaryStep(
        field="p_salary_min",
        label="salary expectation",
        question_tr="Aylık maaş beklentin nedir? Bir maaş aralığını rakamla yazarsan sevinirim.",
        question_en="What is your monthly salary expectation? It would be great if you could write a numeric range.",
        vague_hint_tr="Kabaca bir maaş aralığı söylemen, sana uygun ilanları filtrelememiz için önemli.",
        vague_hint_en="Giving at least an approximate salary range helps us filter better jobs for you.",
    ),
    TipStep(
        field="p_tip_preference",
        label="tip preference",
        question_tr="Bahşiş nasıl olsun istersin? 'Bahşiş Çalışana Ait', 'Ortak Bahşiş' veya 'Bahşiş Yok' diyebilirsin.",
        question_en="How would you like the tip policy to be? You can say 'Tips Belong to Employee', 'Shared Tips' or 'No Tips'.",
        vague_hint_tr="Bahşiş konusunda net olman, iş yeri beklentilerinle uyumu artırır.",
        vague_hint_en="Being clear about tip policy helps align with workplace expectations.",
    ),
    ExperienceStep(
        field="p_experience",
        label="experience",
        question_tr="Kısaca deneyiminden bahseder misin? Nerede, ne kadar süre çalıştın, neler yaptın, uzmanlıkların neler?",
        question_en="Can you briefly describe your experience? Where did you work, for how long, what did you do, what are your specialties?",
        vague_hint_tr="Kısaca nerede, ne kadar süre çalıştığını yazman yeterli, çok uzun olmasına gerek yok.",
        vague_hint_en="A short summary of where and how long you worked is enough, no need for long stories.",
    ),
    BioGenerationStep(
        field="p_bio",
        label="professional biography",
        question_tr=(
            "Son olarak, topladığım tüm bu bilgileri kullanarak senin için profesyonel bir biyografi oluşturacağım. "
            "'Tamam, oluştur' demen yeterli mi?"
        ),
        question_en=(
            "Finally, I’ll use all this information to create a professional biography for you. "
            "Is it okay if I go ahead and create it now? Just say 'Yes, create it'."
        ),
        vague_hint_tr="Sana profesyonel bir biyografi hazırlamam için onay vermen gerekiyor. Bu metin işverenlere gösterilecek.",
        vague_hint_en="You need to approve the creation of your professional biography. This text will be shown to employers.",
    ),
)

STEP_FIELDS: tuple[str, ...] = tuple(step.field for step in STEPS)


def get_step(index: int) -> WizardStep | None:
    return STEPS[index] if 0 <= index < len(STEPS) else None


def compute_next_step(form: dict[str, Any], *, min_salary: int, max_salary: int) -> NextStep:
    """
    Scan the fields in order; the first incomplete one is the next step.
    Salary counts as complete only when both bounds are valid and ordered.
    """
    for i, key in enumerate(STEP_FIELDS):
        value = form.get(key)

        if _is_blank(value):
            return NextStep(i, False)

        if isinstance(value, list) and not value:
            if key in OPTIONAL_ARRAY_FIELDS:
                continue
            return NextStep(i, False)

        if key == "p_salary_min":
            low, high = value, form.get("p_salary_max")
            low_ok = salary_in_range(low, min_salary=min_salary, max_salary=max_salary)
            high_ok = salary_in_range(high, min_salary=min_salary, max_salary=max_salary)
            if not low_ok or not high_ok or low > high:
                return NextStep(i, False)

    return NextStep(len(STEP_FIELDS), True)
