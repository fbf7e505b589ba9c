"""
CodeVault Backend — Abstract LLM Service Interface
===================================================

What:  Abstract base class defining the contract for the AI assistant.
How:   Concrete implementations inherit from LLMService and implement
       analyze_code() and chat().
Who:   Called by the /api/ai route handlers.

Design Decision:
    Routes depend on this interface rather than on GeminiService directly, so
    tests can substitute a fake provider through `app.dependency_overrides`
    without patching the Google SDK.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from codevault.schemas.ai import AnalysisResult, ChatMessage


class LLMService(ABC):
    """
    Abstract interface for AI-powered code assistance.

    Contract:
        - analyze_code() never fails on an unparseable model reply; it returns
          the ANALYSIS_FAILED placeholder instead
        - Provider errors are wrapped in UpstreamServiceError
        - A missing API key raises ConfigurationError before any network call
        - Nothing is retried
    """

    @abstractmethod
    async def analyze_code(self, code: str) -> AnalysisResult:
        """
        Suggest a title, description, language and 3–5 tags for a snippet.

        Args:
            code: Source text, already validated (string, at most 200,000 chars).

        Returns:
            AnalysisResult. `is_placeholder(result)` tells whether the model
            reply could be decoded.

        Raises:
            ConfigurationError:   No API key configured
            UpstreamServiceError: The provider call failed
        """
        ...

    @abstractmethod
    async def chat(self, messages: Sequence[ChatMessage]) -> str:
        """Continue a tutor conversation and return the model's reply text."""
        ...
