"""
Profanity detection and masking for Turkish user text.

Matching is done on a normalized form (Turkish lowercasing, diacritics folded to
plain Latin letters), so "ŞEREFSİZ", "şerefsiz" and "serefsiz" are the same word.
Non-letter characters are never altered.
"""
import re

MASK = "***"

BANNED_WORDS = (
    "amk",
    "amina",
    "amına",
    "amını",
    "orospu",
    "piç",
    "sic",
    "sıç",
    "sik",
    "sikerim",
    "sikeyim",
    "siktir",
    "salak",
    "aptal",
    "gerizekali",
    "gerizekalı",
    "mal",
    "oç",
    "yarrak",
    "ibne",
    "top",
    "serefsiz",
    "şerefsiz",
    "kahpe",
)

_FOLD = str.maketrans({
    "ç": "c",
    "ğ": "g",
    "ı": "i",
    "ö": "o",
    "ş": "s",
    "ü": "u",
    # Combining dot left behind when "İ" is lowercased outside Turkish rules.
    "\u0307": None,
})

# Letters only: word characters minus digits and underscore.
_LETTER_RUN_RE = re.compile(r"[^\W\d_]+")
# A chunk of text between whitespace; separators inside it may hide a word ("a.m.k").
_CHUNK_RE = re.compile(r"\S+")

_INSURANCE_TERMS = ("sigorta", "sgk")

FUZZY_MIN_LEN = 2
FUZZY_MAX_LEN = 6
FUZZY_MAX_GROUPS = 4


def turkish_lower(text: str) -> str:
    return (text or "").replace("I", "ı").replace("İ", "i").lower()


def normalize(word: str) -> str:
    return turkish_lower(word).translate(_FOLD)


BANNED_SET = frozenset(normalize(w) for w in BANNED_WORDS)
SHORT_BANNED_SET = frozenset(w for w in BANNED_SET if FUZZY_MIN_LEN <= len(w) <= FUZZY_MAX_LEN)


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out


def sanitize_exact(text: str) -> tuple[str, list[str]]:
    """
    Mask every maximal letter run whose normalized form is a banned word.
    Returns (cleaned_text, distinct surface forms that were masked).
    """
    replaced: list[str] = []

    def _sub(m: re.Match) -> str:
        word = m.group(0)
        if normalize(word) in BANNED_SET:
            replaced.append(word)
            return MASK
        return word

    cleaned = _LETTER_RUN_RE.sub(_sub, text or "")
    return cleaned, _dedupe(replaced)


def _fuzzy_chunk(chunk: str, matched: list[str]) -> str:
    """
    Scan windows of 2..FUZZY_MAX_GROUPS consecutive letter groups inside one
    whitespace-free chunk; mask the window when its letters spell a short banned word.
    """
    groups = list(_LETTER_RUN_RE.finditer(chunk))
    if len(groups) < 2:
        return chunk

    spans: list[tuple[int, int]] = []
    i = 0
    while i < len(groups):
        hit = None
        for size in range(min(FUZZY_MAX_GROUPS, len(groups) - i), 1, -1):
            window = groups[i : i + size]
            letters = "".join(normalize(g.group(0)) for g in window)
            if letters in SHORT_BANNED_SET:
                hit = (window[0].start(), window[-1].end(), size)
                break
        if hit:
            start, end, size = hit
            spans.append((start, end))
            matched.append(chunk[start:end])
            i += size
        else:
            i += 1

    if not spans:
        return chunk
    out = []
    last = 0
    for start, end in spans:
        out.append(chunk[last:start])
        out.append(MASK)
        last = end
    out.append(chunk[last:])
    return "".join(out)


def sanitize_fuzzy(text: str) -> tuple[str, list[str]]:
    """
    Catch short banned words with separators inserted between letters, e.g.
    "a.m.k" or "s-i-k". Whitespace is not treated as a separator, so two
    ordinary neighbouring words are never merged into a match.
    """
    matched: list[str] = []
    cleaned = _CHUNK_RE.sub(lambda m: _fuzzy_chunk(m.group(0), matched), text or "")
    return cleaned, _dedupe(matched)


def find_profanity(text: str) -> list[str]:
    """All distinct offending surface forms, exact matches first."""
    after_exact, exact = sanitize_exact(text)
    _, fuzzy = sanitize_fuzzy(after_exact)
    return _dedupe(exact + fuzzy)


def full_sanitize(text: str) -> str:
    out, _ = sanitize_exact(text)
    out, _ = sanitize_fuzzy(out)
    return out


def mentions_insurance(text: str) -> bool:
    if not text:
        return False
    norm = normalize(text)
    return any(term in norm for term in _INSURANCE_TERMS)
