import json

import pytest

from backend.app.services.ai_client import AIClientHTTPError
from backend.app.services.ai_wizard import (
    BIO_RETRY_MESSAGES,
    COMPLETED_MESSAGES,
    FALLBACK_MESSAGES,
    FINISHED_MESSAGES,
    INSURANCE_DISCLAIMERS,
    salary_retry_message,
)
from backend.app.services.wizard_steps import STEPS


def llm_json(updates=None, step_done=True, comment=""):
    return json.dumps(
        {"updates": updates or {}, "step_done": step_done, "assistant_comment": comment},
        ensure_ascii=False,
    )


@pytest.fixture()
def form_until_salary():
    return {
        "p_name": "Ayşe Yılmaz",
        "p_birthday_year": "1995",
        "p_gender": "kadın",
        "p_start_day": "yarın",
        "p_shift_prefs": ["sabah", "akşam"],
        "p_benefits": ["yemek"],
        "p_attributes": ["titiz", "konuşkan"],
    }


@pytest.fixture()
def form_until_bio(form_until_salary):
    return {
        **form_until_salary,
        "p_salary_min": 40000,
        "p_salary_max": 45000,
        "p_tip_preference": "ortak bahşiş",
        "p_experience": "İki yıl kafede garsonluk yaptım.",
    }


def post(client, **body):
    payload = {"user_id": "u-1", "language_code": "tr", **body}
    return client.post("/jobseeker-wizard", json=payload)


def test_options_returns_cors_headers(client):
    r = client.options("/jobseeker-wizard")
    assert r.status_code == 200
    assert r.headers["access-control-allow-origin"] == "*"


def test_name_step_moves_to_birth_year(client, fake_llm):
    fake_llm.reply(llm_json({"p_name": "Ayşe Yılmaz"}, comment="Merhaba Ayşe!"))

    r = post(client, step_index=0, user_input_text="Benim adım Ayşe Yılmaz", form_state={})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["form_state"] == {"p_name": "Ayşe Yılmaz"}
    assert body["step_index"] == 1
    assert body["is_finished"] is False
    assert body["assistant_reply"] == f"Merhaba Ayşe! {STEPS[1].question('tr')}"


def test_wizard_call_parameters(client, fake_llm):
    fake_llm.reply(llm_json({"p_name": "John"}, comment="Nice to meet you."))

    r = post(client, language_code="en", step_index=0, user_input_text="I'm John", form_state={})
    assert r.status_code == 200, r.text
    assert r.json()["assistant_reply"] == f"Nice to meet you. {STEPS[1].question('en')}"

    call = fake_llm.calls[0]
    assert call["provider"] == "openai"
    assert call["model"] == "gpt-test"
    assert call["temperature"] == 0.2
    assert call["max_tokens"] == 512
    assert call["response_format"] == {"type": "json_object"}
    assert '"p_name"' in fake_llm.last_user_message
    assert "in English" in fake_llm.last_system_message


def test_updates_for_other_steps_are_ignored(client, fake_llm):
    fake_llm.reply(llm_json({"p_name": "Ali", "p_gender": "erkek", "p_salary_min": 50000}))

    r = post(client, step_index=0, user_input_text="Ali, erkek", form_state={})
    assert r.status_code == 200, r.text
    assert r.json()["form_state"] == {"p_name": "Ali"}


def test_salary_range_is_accepted(client, fake_llm, form_until_salary):
    fake_llm.reply(llm_json({"p_salary_min": 40000, "p_salary_max": 45000}, comment="Tamam."))

    r = post(client, step_index=7, user_input_text="40000-45000 arası", form_state=form_until_salary)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["form_state"]["p_salary_min"] == 40000
    assert body["form_state"]["p_salary_max"] == 45000
    assert body["step_index"] == 8
    assert body["assistant_reply"].endswith(STEPS[8].question("tr"))


def test_salary_out_of_range_is_reset(client, fake_llm, form_until_salary):
    fake_llm.reply(llm_json({"p_salary_min": 5000000, "p_salary_max": 5000000}, comment="Harika!"))

    r = post(client, step_index=7, user_input_text="5 milyon", form_state=form_until_salary)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["form_state"]["p_salary_min"] is None
    assert body["form_state"]["p_salary_max"] is None
    assert body["step_index"] == 7
    assert body["is_finished"] is False
    assert body["assistant_reply"] == salary_retry_message("tr", min_salary=22104, max_salary=100000)


def test_inverted_salary_range_is_reset(client, fake_llm, form_until_salary):
    fake_llm.reply(llm_json({"p_salary_min": 50000, "p_salary_max": 30000}))

    r = post(client, step_index=7, user_input_text="50 ile 30 bin", form_state=form_until_salary)
    body = r.json()
    assert body["form_state"]["p_salary_min"] is None
    assert body["step_index"] == 7


def test_single_salary_figure_is_mirrored(client, fake_llm, form_until_salary):
    fake_llm.reply(llm_json({"p_salary_min": "35.000 TL"}))

    r = post(client, step_index=7, user_input_text="35 bin", form_state=form_until_salary)
    body = r.json()
    assert body["form_state"]["p_salary_min"] == 35000
    assert body["form_state"]["p_salary_max"] == 35000
    assert body["step_index"] == 8


def test_benefits_never_store_insurance(client, fake_llm, form_until_salary):
    form = {k: v for k, v in form_until_salary.items() if k not in ("p_benefits", "p_attributes")}
    fake_llm.reply(llm_json({"p_benefits": ["Yemek", "sigorta", "SGK"]}, comment="Not aldım."))

    r = post(client, step_index=5, user_input_text="yemek ve sigorta olsun", form_state=form)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["form_state"]["p_benefits"] == ["yemek"]
    assert body["step_index"] == 6
    assert body["assistant_reply"].endswith(INSURANCE_DISCLAIMERS["tr"].strip())


def test_insurance_disclaimer_even_when_step_not_done(client, fake_llm):
    fake_llm.reply(llm_json({}, step_done=False, comment=""))

    r = post(client, language_code="en", step_index=5, user_input_text="only SGK", form_state={})
    body = r.json()
    assert body["step_index"] == 5
    assert body["assistant_reply"] == STEPS[5].question("en") + INSURANCE_DISCLAIMERS["en"]


def test_empty_shift_choice_counts_as_answered(client, fake_llm, form_until_salary):
    form = {k: form_until_salary[k] for k in ("p_name", "p_birthday_year", "p_gender", "p_start_day")}
    fake_llm.reply(llm_json({"p_shift_prefs": []}, step_done=True))

    r = post(client, step_index=4, user_input_text="hiçbiri", form_state=form)
    body = r.json()
    assert body["form_state"]["p_shift_prefs"] == []
    assert body["step_index"] == 5


def test_unrecognized_shift_answer_stays_on_step(client, fake_llm, form_until_salary):
    form = {k: form_until_salary[k] for k in ("p_name", "p_birthday_year", "p_gender", "p_start_day")}
    fake_llm.reply(llm_json({"p_shift_prefs": ["gece"]}, step_done=True, comment="Tamam."))

    r = post(client, step_index=4, user_input_text="gece", form_state=form)
    body = r.json()
    assert body["step_index"] == 4
    assert body["is_finished"] is False
    assert "p_shift_prefs" not in body["form_state"]
    assert body["assistant_reply"] == "Tamam."


def test_experience_step_may_store_interests(client, fake_llm, form_until_bio):
    form = {k: v for k, v in form_until_bio.items() if k != "p_experience"}
    fake_llm.reply(
        llm_json({"p_experience": "Kafede çalıştım.", "p_interests": ["futbol"], "p_bio": "Bir. İki. Üç."})
    )

    r = post(client, step_index=9, user_input_text="Kafede çalıştım, futbolu severim.", form_state=form)
    body = r.json()
    assert body["form_state"]["p_experience"] == "Kafede çalıştım."
    assert body["form_state"]["p_interests"] == ["futbol"]
    assert "p_bio" not in body["form_state"]
    assert body["step_index"] == 10


def test_invalid_json_falls_back(client, fake_llm):
    fake_llm.reply("Sorry, I can't do that.")

    r = post(client, step_index=0, user_input_text="???", form_state={})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["assistant_reply"] == FALLBACK_MESSAGES["tr"]
    assert body["step_index"] == 0
    assert body["form_state"] == {}


def test_step_done_must_be_a_real_boolean(client, fake_llm):
    fake_llm.reply('{"updates": {}, "step_done": "true", "assistant_comment": "Adını tekrar, daha net yazar mısın?"}')

    r = post(client, step_index=0, user_input_text="hmm", form_state={})
    body = r.json()
    assert body["step_index"] == 0
    assert body["assistant_reply"] == "Adını tekrar, daha net yazar mısın?"


def test_done_without_value_stays_on_step(client, fake_llm):
    fake_llm.reply(llm_json({"p_gender": "uzaylı"}, comment="Tamam."))

    r = post(client, step_index=2, user_input_text="uzaylı", form_state={"p_name": "Ali", "p_birthday_year": "1990"})
    body = r.json()
    assert "p_gender" not in body["form_state"]
    assert body["step_index"] == 2


def test_bio_step_runs_without_input_and_finishes(client, fake_llm, form_until_bio):
    bio = (
        "İki yıl kafede garsonluk yaptım. Sabah ve akşam vardiyalarında çalışabilirim. "
        "Titiz ve konuşkan biriyim. Yarın işe başlayabilirim."
    )
    fake_llm.reply(llm_json({"p_bio": bio}, comment="Biyografini hazırladım."))

    r = post(client, step_index=10, user_input_text="", form_state=form_until_bio)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["form_state"]["p_bio"] == bio
    assert body["is_finished"] is True
    assert body["step_index"] == 11
    assert body["assistant_reply"] == f"Biyografini hazırladım. {FINISHED_MESSAGES['tr']}"

    sent = " ".join(m["content"] for m in fake_llm.calls[0]["messages"])
    assert "Ayşe" not in sent
    assert "40000" not in sent
    assert "biography generator" in fake_llm.last_system_message


def test_bio_leaking_private_data_is_rejected(client, fake_llm, form_until_bio):
    bio = "Ben Ayşe. Maaş beklentim 40000 TL. Garsonluk yaptım. Titizim."
    fake_llm.reply(llm_json({"p_bio": bio}, comment="Hazır."))

    r = post(client, step_index=10, user_input_text="Tamam, oluştur", form_state=form_until_bio)
    body = r.json()
    assert "p_bio" not in body["form_state"]
    assert body["step_index"] == 10
    assert body["assistant_reply"] == BIO_RETRY_MESSAGES["tr"]


def test_answer_is_sanitized_before_sending(client, fake_llm):
    fake_llm.reply(llm_json({}, step_done=False, comment="Adını tekrar, daha net yazar mısın?"))

    post(client, step_index=0, user_input_text="siktir git", form_state={})
    assert "siktir" not in fake_llm.last_user_message
    assert "*** git" in fake_llm.last_user_message


def test_out_of_range_step_points_at_missing_field(client, fake_llm):
    r = post(client, step_index=42, form_state={"p_name": "Ali"})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["step_index"] == 1
    assert body["is_finished"] is False
    assert body["assistant_reply"] == STEPS[1].question("tr")
    assert fake_llm.call_count == 0


def test_out_of_range_step_with_complete_form(client, fake_llm, form_until_bio):
    form = {**form_until_bio, "p_bio": "Bir. İki. Üç."}
    r = post(client, language_code="en", step_index=99, form_state=form)
    body = r.json()
    assert body["is_finished"] is True
    assert body["assistant_reply"] == COMPLETED_MESSAGES["en"]
    assert fake_llm.call_count == 0


def test_missing_user_id_is_rejected(client, fake_llm):
    r = client.post("/jobseeker-wizard", json={"step_index": 0, "user_input_text": "Ali"})
    assert r.status_code == 400
    assert r.json() == {"error": "bad_request", "detail": "user_id is required"}
    assert fake_llm.call_count == 0


def test_missing_answer_is_rejected(client, fake_llm):
    r = post(client, step_index=3, user_input_text="  ", form_state={})
    assert r.status_code == 400
    assert r.json()["detail"] == "user_input_text is required"
    assert fake_llm.call_count == 0


def test_missing_api_key_is_a_server_error(client, fake_llm, use_settings):
    use_settings(openai_api_key=None)
    r = post(client, step_index=0, user_input_text="Ali", form_state={})
    assert r.status_code == 500
    assert "OPENAI_API_KEY" in r.json()["detail"]
    assert fake_llm.call_count == 0


def test_upstream_failure_is_internal_error(client, fake_llm):
    fake_llm.reply(AIClientHTTPError(provider="OpenAI", status_code=502, body="bad gateway"))

    r = post(client, step_index=0, user_input_text="Ali", form_state={})
    assert r.status_code == 500
    assert r.json() == {"error": "internal_error", "detail": "OpenAI 502: bad gateway"}


def test_tolerant_field_parsing(client, fake_llm):
    fake_llm.reply(llm_json({"p_name": "Ali"}))

    r = client.post(
        "/jobseeker-wizard",
        json={"user_id": 7, "language_code": "DE", "step_index": "-3", "user_input_text": "Ali", "form_state": []},
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["form_state"] == {"p_name": "Ali"}
    assert body["assistant_reply"] == STEPS[1].question("tr")
