"""
CodeVault Backend — AI Assistant Route Handlers
================================================

What:  POST /api/ai/analyze (snippet metadata suggestions) and
       POST /api/ai/chat (tutor conversation).
How:   Validates the payload, then delegates to the LLMService dependency.

Validation order for /analyze (all before any external call):
    1. Body missing or `code` empty   → 400 "Code is required"
    2. `code` not a string            → 400 (request schema, StrictStr)
    3. len(code) > 200,000            → 413
    4. API key missing                → 500 with remediation hint

Response marker:
    The analyze response always carries `X-Analysis-Status`: `ok` for a real
    analysis, `failed` when the model reply could not be decoded and the
    ANALYSIS_FAILED placeholder is returned (still HTTP 200).
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response

from codevault.exceptions import PayloadTooLargeError, ValidationError
from codevault.schemas.ai import (
    MAX_CODE_LENGTH,
    AnalysisResult,
    AnalyzeRequest,
    ChatRequest,
    ChatResponse,
)
from codevault.schemas.common import ErrorResponse
from codevault.services.gemini_service import get_llm_service, is_placeholder
from codevault.services.llm_base import LLMService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/ai", tags=["AI"])

ANALYSIS_STATUS_HEADER = "X-Analysis-Status"


@router.post(
    "/analyze",
    response_model=AnalysisResult,
    responses={
        400: {"description": "Code missing or not a string", "model": ErrorResponse},
        413: {"description": "Code longer than 200,000 characters", "model": ErrorResponse},
        500: {"description": "Key missing or Gemini failed", "model": ErrorResponse},
    },
    summary="Suggest title, description, language and tags for code",
)
async def analyze_code(
    response: Response,
    payload: Optional[AnalyzeRequest] = None,
    llm: LLMService = Depends(get_llm_service),
) -> AnalysisResult:
    code = payload.code if payload is not None else None
    if not code:
        raise ValidationError(message="Code is required", field="code")
    if len(code) > MAX_CODE_LENGTH:
        raise PayloadTooLargeError(
            message=f"Code is too long (maximum {MAX_CODE_LENGTH:,} characters)",
            limit=MAX_CODE_LENGTH,
        )

    result = await llm.analyze_code(code)
    response.headers[ANALYSIS_STATUS_HEADER] = "failed" if is_placeholder(result) else "ok"
    return result


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        400: {"description": "Empty conversation or last message not from the user", "model": ErrorResponse},
        500: {"description": "Key missing or Gemini failed", "model": ErrorResponse},
    },
    summary="Continue a tutor conversation",
)
async def chat(
    payload: ChatRequest,
    llm: LLMService = Depends(get_llm_service),
) -> ChatResponse:
    reply = await llm.chat(payload.messages)
    return ChatResponse(reply=reply)
