"""Public action endpoints: translate, summarize, analyze-symptoms.

All three draw on one per-client quota window. Bodies are read
leniently: an empty or non-JSON body counts as ``{}`` and fails validation
with a 400.
"""

from typing import TypeVar

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ValidationError

from app.core.config import settings
from app.core.dependencies import get_gateway
from app.core.exceptions import ClientInputError
from app.core.rate_limit import limiter
from app.gateway.gateway import AssistGateway
from app.schemas.assist import (
    ErrorResponse,
    SummarizeRequest,
    SummarizeResponse,
    SymptomsRequest,
    SymptomsResponse,
    TranslateRequest,
    TranslateResponse,
)

router = APIRouter(tags=["assist"])

ModelT = TypeVar("ModelT", bound=BaseModel)

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    429: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


async def _read_body(request: Request, model: type[ModelT], invalid_message: str) -> ModelT:
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    try:
        return model.model_validate(payload)
    except ValidationError:
        raise ClientInputError(invalid_message)


@router.post("/translate", response_model=TranslateResponse, responses=_ERROR_RESPONSES)
@limiter.shared_limit(settings.rate_limit, scope="assist")
async def translate(request: Request, gateway: AssistGateway = Depends(get_gateway)):
    body = await _read_body(request, TranslateRequest, "Text and target language are required.")
    result = await gateway.translate(body.text, body.target_language)
    return TranslateResponse(
        detected_language=result.detected_language,
        translated_text=result.translated_text,
    )


@router.post("/summarize", response_model=SummarizeResponse, responses=_ERROR_RESPONSES)
@limiter.shared_limit(settings.rate_limit, scope="assist")
async def summarize(request: Request, gateway: AssistGateway = Depends(get_gateway)):
    body = await _read_body(request, SummarizeRequest, "Text is required.")
    summary = await gateway.summarize(body.text)
    return SummarizeResponse(summary=summary)


@router.post("/analyze-symptoms", response_model=SymptomsResponse, responses=_ERROR_RESPONSES)
@limiter.shared_limit(settings.rate_limit, scope="assist")
async def analyze_symptoms(request: Request, gateway: AssistGateway = Depends(get_gateway)):
    body = await _read_body(request, SymptomsRequest, "Symptoms are required.")
    analysis = await gateway.analyze_symptoms(body.symptoms)
    return SymptomsResponse(analysis=analysis)
