import logging

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse

from ..config import Settings, get_settings
from ..schemas.bio import BioRequest, BioResponse
from ..services.ai_bio_rewrite import rewrite_bio
from ..utils.error_handlers import CORS_HEADERS
from ..utils.validation import read_json_object, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Bio"])


@router.options("/elaborate-bio")
async def elaborate_bio_preflight():
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/elaborate-bio")
async def elaborate_bio(request: Request, settings: Settings = Depends(get_settings)):
    """
    Rewrite a job seeker's raw biography into a short, plain Turkish paragraph.

    Body: {"rawBio": "..."} -> {"improvedBio": "..."}
    """
    payload = await read_json_object(request)
    bio_request = BioRequest(rawBio=validate_string_field(payload.get("rawBio"), "rawBio"))

    improved, meta = await rewrite_bio(settings=settings, raw_bio=bio_request.rawBio)
    logger.info(
        "elaborate-bio done provider=%s model=%s input_sentences=%s target=%s-%s rush=%s",
        meta.provider,
        meta.model,
        meta.input_sentences,
        meta.target_min,
        meta.target_max,
        meta.rush,
    )
    return JSONResponse(
        content=BioResponse(improvedBio=improved).model_dump(),
        headers=CORS_HEADERS,
    )
