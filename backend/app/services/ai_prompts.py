import json
from typing import Any

# Fixed wording the salary step must open with; no amounts are ever suggested.
SALARY_PREAMBLE_TR = (
    "Ben yapay zeka olduğum için bir gelirim yok. Ama senin maaşının senin için ne kadar önemli "
    "olduğunu biliyorum. Tutar hakkında yorum yapamam; maaş beklentini lütfen sadece rakamlarla "
    "ve mümkünse bir aralık olarak yaz."
)
SALARY_PREAMBLE_EN = (
    "Since I’m an AI, I don’t have an income. But I know your salary is very important for you. "
    "I can’t comment on the amount; please write your expected salary only as numbers and "
    "preferably as a range."
)

BIO_ALLOWED_FIELDS = (
    "p_start_day",
    "p_shift_prefs",
    "p_benefits",
    "p_attributes",
    "p_tip_preference",
    "p_experience",
    "p_interests",
)
BIO_PRIVATE_FIELDS = ("p_name", "p_birthday_year", "p_gender", "p_salary_min", "p_salary_max")

_JSON_REPLY_SHAPE = (
    "OUTPUT FORMAT (JSON ONLY, NO EXTRA TEXT):\n\n"
    "{\n"
    '  "updates": { ... },\n'
    '  "step_done": true or false,\n'
    '  "assistant_comment": "..."\n'
    "}"
)

_TR_STYLE_RULES = (
    "LANGUAGE STYLE (CRITICAL):\n"
    '- If language_code is "tr", you MUST always talk directly to the user in second person singular ("sen").\n'
    '- NEVER use first person plural in Turkish: do NOT say "biz", "bizim", "yapıyoruz", "yapalım", '
    '"ismimiz", "doğum yılımız".\n'
)


def _language_name(lang: str) -> str:
    return "English" if lang == "en" else "Turkish"


# -------------------- Bio rewriter --------------------

def bio_system_prompt(*, input_sentences: int, target_min: int, target_max: int, max_sentences: int, rush: bool) -> str:
    lines = [
        "Türkçe yazan bir editörsün.",
        "Girdi hangi dilde olursa olsun, çıktı dili daima Türkçe olacak.",
        "Görev: Ham biyoyu YALIN ve GERÇEKÇİ bir üslupla toparla; bilgileri koru.",
        f"Girdi yaklaşık {input_sentences} cümle; çıktıda {target_min}–{target_max} cümleyi hedefle.",
        f"Çıktı hiçbir durumda {max_sentences} cümleyi geçmeyecek.",
        "KURALLAR:",
        "- SADECE verilen bilgilere dayan; yeni unvan/eğitim/başarı uydurma.",
        "- Abartı ve öznel övgü YOK (örn: severim, seviyorum, tutkuluyum, mükemmel, süper, çok, lider, uzman).",
        "- Başlık/emoji/kod bloğu/tırnak YOK.",
        "- Yazım hatalarını düzelt; terimleri doğru yaz (örn. 'restoranda', 'ocakbaşı').",
        "- Bilgi kaybı olmasın; sadece gereksiz tekrarları ve dolgu sözcükleri temizle.",
        "- Cümleleri kısa tut; akıcı bir paragraf halinde döndür.",
    ]
    if rush:
        lines.append(
            "- Girişte ‘yoğun/kalabalık/pik/rush’ bilgisi var; çıktı bunu NET şekilde içermeli "
            "(örn. ‘Yoğun saatlerde çalışmaya alışığım.’)."
        )
    return "\n".join(lines)


def bio_user_prompt(*, bio_text: str) -> str:
    return f"Ham biyo:\n{bio_text or ''}\n\nLütfen yalnızca düz metin döndür."


# -------------------- Wizard --------------------

def wizard_system_prompt(*, lang: str, field: str | None, enums: dict[str, list[str]]) -> str:
    return (
        'You are the conversation brain for the "Bi İşim Var" job seeker wizard.\n\n'
        "TASKS FOR THIS REQUEST ONLY:\n"
        f"1) PARSE the user's free-text answer for the CURRENT STEP (field: {field or 'unknown'}).\n"
        f"2) TALK to the user with a SHORT, friendly message in {_language_name(lang)}.\n\n"
        "GENERAL RULES:\n"
        "- Only touch fields related to the current step.\n"
        "- Never invent values the user did not clearly choose.\n"
        '- If the answer is vague ("farketmez", "sen karar ver", "you decide", "whatever"), keep the related '
        'field(s) null/empty and set "step_done": false. Ask a follow-up question to clarify.\n'
        '- You may SUGGEST options (e.g. "more shifts = more jobs") but the final decision is always the '
        "user's, EXCEPT for salary step where you MUST NOT make suggestions about concrete amounts.\n"
        "- DO NOT mention any hidden database values, system ranges or internal logic.\n"
        "- Keep assistant_comment short, friendly and focused on this step (max 2 sentences, except salary "
        "which has its own rule).\n"
        '- If you set "step_done": false, you MUST return a helpful assistant_comment (never leave it empty).\n\n'
        f"{_TR_STYLE_RULES}"
        '- In Turkish you should prefer sentences like "Adın ne?", "Doğum yılın nedir?", '
        '"Maaş beklentini yazar mısın?".\n\n'
        f"{_JSON_REPLY_SHAPE}\n\n"
        "Internal field names (must stay in Turkish): p_name, p_birthday_year, p_gender,\n"
        "p_start_day, p_shift_prefs, p_benefits, p_attributes, p_salary_min, p_salary_max,\n"
        "p_tip_preference, p_experience, p_bio, p_interests.\n\n"
        f"Current step enums (if any): {json.dumps(enums, ensure_ascii=False)}"
    )


def wizard_bio_system_prompt(*, lang: str) -> str:
    return (
        'You are the professional biography generator for the "Bi İşim Var" job seeker wizard.\n\n'
        "TASKS FOR THIS REQUEST ONLY:\n"
        "1) GENERATE a single, professional, first-person biography text based on the provided "
        "'current_form_state'.\n"
        f"2) TALK to the user with a SHORT, friendly message in {_language_name(lang)}, acknowledging the "
        "creation and/or asking for final confirmation.\n\n"
        "GENERAL RULES:\n"
        f"- Use ONLY: {', '.join(BIO_ALLOWED_FIELDS)}.\n"
        f"- DO NOT use or mention: {', '.join(BIO_PRIVATE_FIELDS)}.\n"
        "- ABSOLUTELY DO NOT mention any salary figures or salary expectations.\n"
        "- DO NOT mention the user's name; always write in first person.\n"
        "- The biography must be between 3 and 7 sentences, maximum 7 sentences.\n"
        '- If the bio is successfully created, set updates.p_bio = "<GENERATED_BIOGRAPHY>" and set '
        '"step_done": true.\n'
        "- If critical fields are missing (especially p_experience), set step_done = false and ask the user "
        "to complete them first.\n\n"
        f"{_TR_STYLE_RULES}"
        '- In Turkish assistant_comment, use sentences like "Biyografini hazırladım, aşağıdan kontrol '
        'edebilirsin." and always keep it short.\n\n'
        f"{_JSON_REPLY_SHAPE}"
    )


def wizard_user_prompt(*, step_instruction: str, lang: str, step_index: int, answer: str, form_state: dict[str, Any]) -> str:
    payload = {
        "language_code": lang,
        "step_index": step_index,
        "answer": answer,
        "current_form_state": form_state,
    }
    return f"{step_instruction}\n\nUSER_ANSWER_PAYLOAD:\n{json.dumps(payload, ensure_ascii=False)}"


def enums_snippet(enums: dict[str, list[str]]) -> str:
    if not enums:
        return "This step does not use enums."
    return f"Relevant enums for this step: {json.dumps(enums, ensure_ascii=False)}."


def step_header(*, step_index: int, field: str, label: str) -> str:
    return f'Current STEP = {step_index} for field "{field}" ({label}).'


def name_rules() -> str:
    return (
        "- Extract the person's preferred name (can include surname) from the answer.\n"
        '- If clear, set updates.p_name = "<name>" and step_done = true.\n'
        "- If not clear, keep updates.p_name null/empty, set step_done = false.\n\n"
        "TURKISH ASSISTANT COMMENT RULES:\n"
        '- If language_code is "tr" AND step_done = true:\n'
        '  - assistant_comment SHOULD be something like: "Merhaba <isim>!".\n'
        '  - Always talk to the user with "sen / senin", NEVER use "biz / bizim / ismimiz".\n'
        '- If language_code is "tr" AND step_done = false:\n'
        '  - assistant_comment MUST be: "Adını tekrar, daha net yazar mısın?"\n\n'
        "ENGLISH ASSISTANT COMMENT RULES:\n"
        '- If language_code is "en" AND step_done = true:\n'
        '  - assistant_comment SHOULD be: "Nice to meet you."\n'
        '- If language_code is "en" AND step_done = false:\n'
        '  - assistant_comment MUST be: "Could you please write your name again more clearly?"'
    )


def birth_year_rules() -> str:
    return (
        '- Extract a 4-digit birth year if possible (e.g. "1986").\n'
        "- The year must be reasonable (not in the future, not before 1900), but be tolerant.\n"
        "- If clear, set updates.p_birthday_year and step_done = true.\n"
        "- If unclear, leave p_birthday_year null/empty and step_done = false.\n\n"
        "TURKISH ASSISTANT COMMENT RULE (CRITICAL):\n"
        '- If language_code is "tr" AND step_done = false, assistant_comment MUST be EXACTLY:\n'
        '  "Doğum yılını lütfen rakamla yazar mısın?"\n\n'
        "ENGLISH ASSISTANT COMMENT RULE:\n"
        '- If language_code is "en" AND step_done = false, assistant_comment MUST be EXACTLY:\n'
        '  "Could you write your year of birth in numbers?"'
    )


def single_choice_rules(*, allowed: list[str]) -> str:
    return (
        f"- Map answer to one of: {json.dumps(allowed, ensure_ascii=False)}.\n"
        '- If they say things like "doesn\'t matter / prefer not to say" map to the closest option only '
        "when one clearly fits.\n"
        "- If still vague, leave null, set step_done = false and ask them to pick one of these."
    )


def shift_rules(*, allowed: list[str]) -> str:
    return (
        f"- Allowed values: {json.dumps(allowed, ensure_ascii=False)} (array).\n"
        "- User may choose one or more.\n"
        "- If they clearly say they are fine with ALL shifts, you MAY set updates.p_shift_prefs to all "
        "values and step_done = true.\n"
        '- If they say things like "fark etmez / sen karar ver / you decide / whatever" without clearly '
        "indicating ALL shifts, set updates.p_shift_prefs = [] and step_done = false.\n"
        "- In that case assistant_comment should EXPLAIN that choosing more shifts can show more jobs, but "
        "the final decision is theirs, and ask for their final choice."
    )


def benefits_rules(*, allowed: list[str]) -> str:
    return (
        f"- Allowed values: {json.dumps(allowed, ensure_ascii=False)} (array).\n"
        "- Extract all benefits they clearly mention that match these options.\n"
        '- If they mention "sigorta", "SGK" or similar insurance words:\n'
        "  - DO NOT add it as a benefit value.\n"
        "  - In assistant_comment, remind them that insurance/social security is a legal requirement and "
        "should be discussed directly with the employer.\n"
        "- If answer is vague, set empty array, step_done = false and ask them which ones really matter."
    )


def attributes_rules(*, allowed: list[str]) -> str:
    return (
        f"- Allowed values: {json.dumps(allowed, ensure_ascii=False)} (array).\n"
        "- Extract 1..3 traits they clearly mention if possible.\n"
        "- If vague, set empty array, step_done = false and ask them to pick a few."
    )


def salary_rules(*, lang: str, min_salary: int, max_salary: int) -> str:
    preamble = SALARY_PREAMBLE_EN if lang == "en" else SALARY_PREAMBLE_TR
    return (
        "PARSING:\n"
        "- Extract net monthly salary in Turkish Lira.\n"
        "- If they give a single value, set BOTH p_salary_min and p_salary_max to that numeric value.\n"
        '- If they give a range (e.g. "20-25 bin", "30 ile 35 arası"), map that to numeric min and max.\n'
        f"- Server will later validate that both are between {min_salary} and {max_salary}.\n"
        '- If the answer is vague ("farketmez", "you decide", "whatever"), set BOTH p_salary_min and '
        "p_salary_max to null, step_done = false and ask them to choose at least an approximate range.\n\n"
        "ASSISTANT MESSAGE RULE (VERY IMPORTANT):\n"
        "- assistant_comment MUST be very short and friendly.\n"
        f"- In {_language_name(lang)}, it MUST start with this fixed text:\n\n"
        f"  {preamble}\n\n"
        "- After this text, you may add ONE short sentence asking them to write a numeric range (but DO NOT "
        "include any numbers).\n"
        "- NEVER suggest or recommend any specific amount.\n"
        "- NEVER include any digits or numbers in assistant_comment (no 0-9 anywhere), even if the user "
        "mentioned numbers."
    )


def experience_rules() -> str:
    return (
        "- Extract a SHORT description (max 2 sentences).\n"
        "- If clear, set p_experience and step_done = true.\n"
        "- If nothing relevant, leave null and step_done = false and ask them to briefly describe experience."
    )


def bio_generation_rules(*, bio_form_state: dict[str, Any]) -> str:
    return (
        "- Your task is to act as a professional career biography writer specializing in the service industry.\n"
        f"- You MUST use only the following fields from 'current_form_state': {', '.join(BIO_ALLOWED_FIELDS)}.\n"
        "- Write a single, cohesive, engaging, and professional first-person summary.\n"
        "- Tone: suitable for a job application in the service sector.\n"
        '- The user input for this step is just an "OK" signal (e.g., "Tamam", "Oluştur", "Yes"). '
        "Ignore its content for parsing.\n"
        "- If 'current_form_state' is complete enough, you must generate the bio.\n"
        '- Set updates.p_bio = "<GENERATED_BIOGRAPHY>" and set step_done = true.\n'
        "- If any critical fields (especially p_experience) are still empty, set step_done = false and ask "
        "the user to complete them first.\n\n"
        "IMPORTANT BIO RULES:\n"
        "1) DO NOT mention any salary figures or salary expectations.\n"
        "2) DO NOT include any placeholder for salary (e.g. [X TL]).\n"
        '3) Use first-person perspective ("Ben" in Turkish, "I" in English).\n'
        "4) Keep the biography between 3 and 7 sentences, maximum 7 sentences.\n\n"
        "Collected Data to use for biography:\n"
        f"{json.dumps(bio_form_state, ensure_ascii=False, indent=2)}"
    )
