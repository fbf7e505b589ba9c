"""
CodeVault Backend — Google Gemini Service Implementation
=========================================================

What:  Concrete LLM service using Google Gemini for code analysis and the
       tutor chat.
How:   Sends a fixed prompt plus the user's code to Gemini, pulls the JSON
       object out of the free-text reply, and validates it.
Who:   Instantiated once at import; used by the /api/ai route handlers.

Reply decoding:
    Models often wrap JSON in markdown fences or prose. The decoder takes the
    greedy span from the FIRST "{" to the LAST "}" and parses that. When the
    span is missing or is not a JSON object, analyze_code() returns the
    ANALYSIS_FAILED placeholder instead of raising, and the route marks the
    response with `X-Analysis-Status: failed`.

Failure policy:
    One attempt per request. Provider errors become UpstreamServiceError
    (HTTP 500) with the provider's message as `details`. There is no retry
    and no timeout beyond the SDK's own.
"""

import json
import logging
import re
import time
import uuid
from typing import Any, Dict, List, Optional, Sequence

import google.generativeai as genai
from pydantic import ValidationError as SchemaValidationError

from codevault.config import FEATURE_REQUIREMENTS, PLACEHOLDER_VALUES, settings
from codevault.exceptions import ConfigurationError, UpstreamServiceError
from codevault.schemas.ai import AnalysisResult, ChatMessage
from codevault.services.llm_base import LLMService

logger = logging.getLogger(__name__)

# Greedy: spans from the first "{" to the last "}"
_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")

ANALYSIS_FAILED = AnalysisResult(
    title="ANALYSIS_FAILED",
    description="THE_SYSTEM_COULD_NOT_DECODE_THE_DATA_STREAM.",
    language="UNKNOWN",
    tags=["SYSTEM_ERROR"],
)

TUTOR_PREAMBLE = (
    "You are an expert AI tutor inside a software engineering learning platform "
    "called CodeVault. Help the user learn coding concepts, explain snippets, and "
    "provide clear code examples in a friendly, concise manner."
)
TUTOR_ACKNOWLEDGEMENT = (
    "Understood! I'll act as an expert AI tutor for CodeVault. How can I help you today?"
)
CHAT_GENERATION_CONFIG = {"temperature": 0.7, "max_output_tokens": 2000}


def build_analysis_prompt(code: str) -> str:
    return (
        "Analyze this code and return a JSON object. Keep titles and descriptions "
        "simple and professional. Provide exactly 3 to 5 accurate tags.\n"
        "Respond with ONLY valid JSON (no markdown, no extra text).\n\n"
        "{\n"
        '  "title": "Short descriptive title",\n'
        '  "description": "One or two sentence description",\n'
        '  "language": "programming language",\n'
        '  "tags": ["tag1", "tag2", "tag3"]\n'
        "}\n\n"
        f"Code:\n{code}"
    )


def extract_json(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Pull the first-"{"-to-last-"}" span out of a model reply and parse it.

    Returns None when there is no span, the span is not valid JSON, or the
    JSON is not an object.
    """
    if not text:
        return None
    match = _JSON_BLOCK.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def placeholder_analysis() -> AnalysisResult:
    return ANALYSIS_FAILED.model_copy(deep=True)


def is_placeholder(result: AnalysisResult) -> bool:
    return result.title == ANALYSIS_FAILED.title and result.tags == ANALYSIS_FAILED.tags


def _reply_text(response: Any) -> str:
    # `.text` raises ValueError when the candidate was blocked or empty
    try:
        return response.text or ""
    except ValueError:
        return ""


class GeminiService(LLMService):
    """
    Google Gemini implementation of the AI assistant.

    The API key is read per call (not at construction) so a key added to the
    environment after import is honoured and a missing key only affects the
    /api/ai endpoints.
    """

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        self._api_key = api_key
        self._model_name = model_name
        self._model = None
        self._configured_key: Optional[str] = None

    @property
    def api_key(self) -> str:
        key = self._api_key if self._api_key is not None else settings.gemini_api_key
        return (key or "").strip()

    def _get_model(self):
        """Configure the SDK for the current key and return a (cached) model handle."""
        if self.api_key in PLACEHOLDER_VALUES:
            raise ConfigurationError(
                message="Gemini API key is not configured",
                remediation=FEATURE_REQUIREMENTS["gemini"]["gemini_api_key"],
            )

        if self._model is None or self._configured_key != self.api_key:
            genai.configure(api_key=self.api_key)
            self._model = genai.GenerativeModel(self._model_name or settings.gemini_model)
            self._configured_key = self.api_key
        return self._model

    async def analyze_code(self, code: str) -> AnalysisResult:
        """
        Ask Gemini for title/description/language/tags.

        Flow:
            1. Resolve the model (ConfigurationError when no key)
            2. One generate_content call with the fixed prompt
            3. Decode the JSON span; fall back to the placeholder
        """
        model = self._get_model()
        request_id = str(uuid.uuid4())[:8]
        start_time = time.perf_counter()

        try:
            response = await model.generate_content_async(build_analysis_prompt(code))
        except Exception as e:
            logger.error("[%s] Gemini analyze call failed: %s", request_id, e)
            raise UpstreamServiceError(
                message="Failed to analyze code with Gemini",
                details=str(e),
                context={"request_id": request_id, "error_type": type(e).__name__},
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        text = _reply_text(response)
        logger.info(
            "[%s] Gemini analyze completed in %.0fms (%d chars in, %d chars out)",
            request_id,
            duration_ms,
            len(code),
            len(text),
        )

        data = extract_json(text)
        if data is None:
            logger.warning("[%s] Gemini reply contained no decodable JSON object", request_id)
            return placeholder_analysis()
        try:
            return AnalysisResult.model_validate(data)
        except SchemaValidationError:
            logger.warning("[%s] Gemini JSON did not match the analysis shape", request_id)
            return placeholder_analysis()

    def _history(self, messages: Sequence[ChatMessage]) -> List[Dict[str, Any]]:
        history: List[Dict[str, Any]] = [
            {"role": "user", "parts": [TUTOR_PREAMBLE]},
            {"role": "model", "parts": [TUTOR_ACKNOWLEDGEMENT]},
        ]
        history.extend({"role": m.role, "parts": [m.content]} for m in messages)
        return history

    async def chat(self, messages: Sequence[ChatMessage]) -> str:
        """
        Continue a tutor conversation.

        The preamble pair is prepended to every conversation; the last
        message (always from the user) is sent, everything before it is
        history.
        """
        model = self._get_model()
        session = model.start_chat(history=self._history(messages[:-1]))
        try:
            response = await session.send_message_async(
                messages[-1].content,
                generation_config=CHAT_GENERATION_CONFIG,
            )
        except Exception as e:
            logger.error("Gemini chat call failed: %s", e)
            raise UpstreamServiceError(
                message="Failed to get a reply from Gemini",
                details=str(e),
            )
        return _reply_text(response)


# ── Singleton Instance ────────────────────────────────────────────────────
gemini_service = GeminiService()


def get_llm_service() -> LLMService:
    """FastAPI dependency returning the configured AI provider."""
    return gemini_service
