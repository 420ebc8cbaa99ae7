"""
Deterministic text rules around the biography rewrite.

The substitutions here are heuristics layered on top of the model output: they
catch the common cases (filler intensifiers, self-praise, colloquial verb forms)
but are not a grammar engine and do not guarantee a clean result.
"""
import re
from typing import NamedTuple


class SentenceRange(NamedTuple):
    min: int
    max: int


_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")
# Rough separators for estimating how long the raw input is.
_INPUT_SENTENCE_SEP_RE = re.compile(r"[.!?;\n]+")
_MULTI_SPACE_RE = re.compile(r"[ \t]{2,}")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([.,;:!?])")
_FIRST_LETTER_RE = re.compile(r"[^\W\d_]")

RUSH_RE = re.compile(r"yoğun|kalabalık|\bpik\b|\bpeak\b|\brush\b", re.IGNORECASE)
RUSH_SENTENCE = "Yoğun saatlerde çalışmaya alışığım."

# Colloquial forms and frequent misspellings of workplace/food terms.
SPELLING_FIXES: dict[str, str] = {
    "yapıyom": "yaparım",
    "biliyom": "bilirim",
    "çalışıyom": "çalışırım",
    "ediyom": "ederim",
    "restorant": "restoran",
    "restoranta": "restoranda",
    "restorantta": "restoranda",
    "restorantda": "restoranda",
    "ocakbası": "ocakbaşı",
    "ocak başı": "ocakbaşı",
    "lamacun": "lahmacun",
    "kasiyelik": "kasiyerlik",
    "garsonlu": "garsonluk",
    "bulaşıkcı": "bulaşıkçı",
}

_SPELLING_RES = tuple(
    (re.compile(rf"\b{re.escape(wrong)}\b", re.IGNORECASE), right)
    for wrong, right in SPELLING_FIXES.items()
)

# Order matters: specific phrases before the bare words they contain.
_SUBJECTIVE_SUBS = tuple(
    (re.compile(pattern, re.IGNORECASE), replacement)
    for pattern, replacement in (
        (r"\b(?:son derece|oldukça|aşırı|gayet)\s+", ""),
        (r"\bçok\s+(?!sayıda|fazla|yönlü)", ""),
        (r"\b(?:mükemmel|muhteşem|kusursuz|süper|harika|olağanüstü)\s+(?=\w)", ""),
        (r"\b(?:mükemmel|muhteşem|kusursuz|süper|harika|olağanüstü)\b", "iyi"),
        (r"\buzman(?:ıyım|ım)\b", "deneyimliyim"),
        (r"\buzman\b", "deneyimli"),
        (r"\bliderlik (?:ettim|yaptım)\b", "sorumluluk aldım"),
        (r"\blider(?:iyim|im)\b", "sorumluyum"),
        (r"\blideri\b", "sorumlusu"),
        (r"\blider\b", "sorumlu"),
        (r"\btutkulu(?:yum)?\s*", ""),
    )
)

# (kept, dropped): when a sentence matching the first pattern exists, sentences
# matching only the second say the same thing again and are removed.
_REDUNDANT_PAIRS = tuple(
    (re.compile(keep, re.IGNORECASE), re.compile(drop, re.IGNORECASE))
    for keep, drop in (
        (r"yoğun saatlerde çalışmaya alışığım", r"yoğun saatlerde çalıştım"),
        (r"müşterilerle iyi iletişim kurarım", r"müşteri ilişkiler(?:im|i) iyi"),
        (r"ekip çalışmasına (?:uygunum|yatkınım)", r"takım çalışmasına (?:uygunum|yatkınım)"),
        (r"zamanında işe gelirim", r"\bdakiğim\b"),
    )
)


def count_sentences(text: str) -> int:
    parts = [p.strip() for p in _INPUT_SENTENCE_SEP_RE.split(text or "") if p.strip()]
    return len(parts) or 1


def pick_target_range(n: int) -> SentenceRange:
    if n <= 3:
        return SentenceRange(2, 3)
    if n <= 5:
        return SentenceRange(3, 4)
    if n <= 8:
        return SentenceRange(4, 6)
    return SentenceRange(5, 8)


def clamp_range(target: SentenceRange, cap: int) -> SentenceRange:
    return SentenceRange(min(target.min, cap), min(target.max, cap))


def split_sentences(text: str) -> list[str]:
    return [p.strip() for p in _SENTENCE_SPLIT_RE.split((text or "").strip()) if p.strip()]


def enforce_sentence_cap(text: str, k: int) -> str:
    parts = split_sentences(text)
    if len(parts) <= k:
        return text
    return " ".join(parts[: max(k, 0)])


def mentions_rush_hours(text: str) -> bool:
    return bool(RUSH_RE.search(text or ""))


def tidy_spacing(text: str) -> str:
    s = _SPACE_BEFORE_PUNCT_RE.sub(r"\1", text or "")
    s = _MULTI_SPACE_RE.sub(" ", s)
    return s.strip()


def precorrect_spelling(text: str) -> str:
    s = text or ""
    for pattern, right in _SPELLING_RES:
        s = pattern.sub(right, s)
    return s


def neutralize_subjective(text: str) -> str:
    s = text or ""
    for pattern, replacement in _SUBJECTIVE_SUBS:
        s = pattern.sub(replacement, s)
    return tidy_spacing(s)


def merge_redundant_sentences(text: str) -> str:
    sentences = split_sentences(text)
    if len(sentences) < 2:
        return text
    dropped: set[int] = set()
    for keep_re, drop_re in _REDUNDANT_PAIRS:
        if not any(keep_re.search(s) for s in sentences):
            continue
        for i, s in enumerate(sentences):
            if drop_re.search(s) and not keep_re.search(s):
                dropped.add(i)
    if not dropped:
        return text
    return " ".join(s for i, s in enumerate(sentences) if i not in dropped)


def _turkish_upper(ch: str) -> str:
    if ch == "i":
        return "İ"
    if ch == "ı":
        return "I"
    return ch.upper()


def capitalize_sentences(text: str) -> str:
    out = []
    for sentence in split_sentences(text):
        # Sentences opening with a digit ("3 yıl ...") are left alone.
        if _FIRST_LETTER_RE.match(sentence):
            sentence = _turkish_upper(sentence[0]) + sentence[1:]
        out.append(sentence)
    return " ".join(out)
