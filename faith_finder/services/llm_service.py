"""LLM Service - Abstraction layer for generation backend calls.

This module provides a unified interface for calling different LLM providers
(OpenAI, Gemini) with consistent error handling and response formatting.

Interface Contract:
- call(prompt, system=..., json_mode=..., temperature=...) -> str (raw text)
- All methods raise LLMServiceError on failure
- Callers should not depend on specific LLM provider details
"""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod

import google.generativeai as genai
from openai import OpenAI

from config import (
    DEFAULT_MODEL,
    LLM_PROVIDER,
    LLM_TIMEOUT_SECONDS,
    MATCH_MODEL,
)

logger = logging.getLogger(__name__)


class LLMServiceError(Exception):
    """Raised when LLM call fails."""
    pass


class BaseLLMService(ABC):
    """Abstract base class for LLM services."""

    @abstractmethod
    def call(
        self,
        prompt: str,
        *,
        system: str | None = None,
        json_mode: bool = False,
        temperature: float | None = None,
    ) -> str:
        """Call the LLM with a prompt.

        Args:
            prompt: The user message to send to the LLM
            system: Optional system instruction
            json_mode: If True, request a JSON object response
            temperature: Sampling temperature (provider default if None)

        Returns:
            str: The LLM response text

        Raises:
            LLMServiceError: If the call fails
        """
        pass


class GeminiService(BaseLLMService):
    """Google Gemini LLM service implementation."""

    def __init__(self, model: str = DEFAULT_MODEL):
        self.model = model
        self._configured = False

    def _configure(self) -> None:
        """Configure Gemini API (lazy initialization)."""
        if self._configured:
            return
        api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("GOOGLE_API_KEY")
        if not api_key:
            raise LLMServiceError("GEMINI_API_KEY or GOOGLE_API_KEY environment variable not set")
        genai.configure(api_key=api_key)
        self._configured = True

    def call(
        self,
        prompt: str,
        *,
        system: str | None = None,
        json_mode: bool = False,
        temperature: float | None = None,
    ) -> str:
        """Call Gemini model."""
        self._configure()
        try:
            gen_config = genai.GenerationConfig(
                temperature=temperature,
                response_mime_type="application/json" if json_mode else None,
            )
            model = genai.GenerativeModel(self.model, system_instruction=system)
            response = model.generate_content(
                prompt,
                generation_config=gen_config,
                request_options={"timeout": LLM_TIMEOUT_SECONDS},
            )
            return response.text
        except Exception as e:
            raise LLMServiceError(f"Gemini call failed: {e}") from e


class OpenAIService(BaseLLMService):
    """OpenAI LLM service implementation."""

    def __init__(self, model: str = MATCH_MODEL):
        self.model = model
        self._client: OpenAI | None = None

    def _get_client(self) -> OpenAI:
        """Get or create OpenAI client (lazy initialization)."""
        if self._client is None:
            api_key = os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise LLMServiceError("Missing OPENAI_API_KEY environment variable")
            # Retries are owned by the matching service
            self._client = OpenAI(api_key=api_key, timeout=LLM_TIMEOUT_SECONDS, max_retries=0)
        return self._client

    def call(
        self,
        prompt: str,
        *,
        system: str | None = None,
        json_mode: bool = False,
        temperature: float | None = None,
    ) -> str:
        """Call OpenAI model."""
        client = self._get_client()
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        kwargs = {"model": self.model, "messages": messages}
        if temperature is not None:
            kwargs["temperature"] = temperature
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = client.chat.completions.create(**kwargs)
        except Exception as e:
            raise LLMServiceError(f"OpenAI request failed: {e}") from e
        if not response.choices:
            raise LLMServiceError("OpenAI returned no choices")
        return response.choices[0].message.content or ""


# Default service instance (can be swapped for testing)
class LLMService:
    """Facade for LLM services with provider switching."""

    _instance: BaseLLMService | None = None

    @classmethod
    def get_instance(cls) -> BaseLLMService:
        """Get the configured LLM service instance."""
        if cls._instance is None:
            if LLM_PROVIDER == "gemini":
                cls._instance = GeminiService()
            else:
                cls._instance = OpenAIService()
            logger.info("LLM provider: %s", type(cls._instance).__name__)
        return cls._instance

    @classmethod
    def set_instance(cls, service: BaseLLMService) -> None:
        """Set a custom LLM service (useful for testing)."""
        cls._instance = service

    @classmethod
    def reset(cls) -> None:
        """Reset to default service."""
        cls._instance = None
