import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from ..config import Settings, get_settings
from ..schemas.wizard import WizardRequest
from ..services.ai_client import AIClientError
from ..services.ai_wizard import process_wizard_step
from ..utils.error_handlers import CORS_HEADERS, AppError, ConfigurationError
from ..utils.validation import (
    read_json_object,
    validate_form_state,
    validate_language_code,
    validate_step_index,
    validate_string_field,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Wizard"])


@router.options("/jobseeker-wizard")
async def jobseeker_wizard_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/jobseeker-wizard")
async def jobseeker_wizard(request: Request, settings: Settings = Depends(get_settings)):
    # The wizard always talks to the OpenAI-compatible endpoint.
    if not settings.openai_api_key:
        raise ConfigurationError("OPENAI_API_KEY is missing")

    payload = await read_json_object(request)
    wizard_request = WizardRequest(
        user_id=validate_string_field(payload.get("user_id"), "user_id"),
        language_code=validate_language_code(payload.get("language_code")),
        user_input_text=validate_string_field(payload.get("user_input_text"), "user_input_text", required=False),
        step_index=validate_step_index(payload.get("step_index")),
        form_state=validate_form_state(payload.get("form_state")),
    )

    try:
        result = await process_wizard_step(settings=settings, request=wizard_request)
    except AIClientError as e:
        logger.warning("Wizard LLM call failed user_id=%s: %s", wizard_request.user_id, e)
        raise AppError(str(e), status_code=500, code="internal_error") from e

    return JSONResponse(content=result.model_dump(), headers=CORS_HEADERS)
