import json
import re


_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_CODE_FENCE_RE = re.compile(r"^```[a-zA-Z]*\s*\n?([\s\S]*?)\n?```$")

# Opening -> closing quote characters models like to wrap plain-text answers in.
_QUOTE_PAIRS = {
    '"': '"',
    "'": "'",
    "“": "”",
    "‘": "’",
    "«": "»",
    "„": "“",
}


def strip_code_fence(text: str) -> str:
    raw = (text or "").strip()
    m = _CODE_FENCE_RE.match(raw)
    return m.group(1).strip() if m else raw


def extract_first_json_object(text: str) -> dict:
    """
    Best-effort extraction of the first JSON object from a model response.
    Handles cases where the model wraps JSON in prose or a code fence.
    """
    raw = strip_code_fence(text)
    if not raw:
        raise ValueError("Empty AI response")

    # Fast path: pure JSON
    try:
        obj = json.loads(raw)
        if isinstance(obj, dict):
            return obj
    except ValueError:
        pass

    # Heuristic: take first {...} block
    m = _JSON_OBJECT_RE.search(raw)
    if not m:
        raise ValueError("No JSON object found in AI response")
    obj = json.loads(m.group(0))
    if not isinstance(obj, dict):
        raise ValueError("AI response JSON is not an object")
    return obj


def strip_wrapping_quotes(text: str) -> str:
    """Remove matching quote characters around the whole answer, repeatedly."""
    s = (text or "").strip()
    while len(s) >= 2 and _QUOTE_PAIRS.get(s[0]) == s[-1]:
        s = s[1:-1].strip()
    return s
