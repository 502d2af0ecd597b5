"""
AI compliance assistant backed by Google Gemini.

The assistant never raises: without an API key it answers with a static
"unavailable" message, and any failure of the completion call is turned into
a static "error" message.
"""

import asyncio
from typing import Any, Dict, Optional

from google import genai
from google.genai import types

from supabase_compliance.core.config import AIConfig
from supabase_compliance.core.logger import get_logger
from supabase_compliance.integrations.ai_knowledge import build_prompt
from supabase_compliance.reporting.models import AIResponse, AIResponseMetadata

UNAVAILABLE_MESSAGE = (
    "AI assistance is currently unavailable. "
    "Please configure the Google API key to enable AI features."
)
ERROR_MESSAGE = (
    "An error occurred while generating AI assistance. Please try again later."
)


class AIAssistant:
    """Answers free-text compliance questions with the current report as context."""

    def __init__(self, config: Optional[AIConfig] = None, client: Optional[Any] = None):
        self.config = config or AIConfig()
        self.logger = get_logger("ai")
        self.client = client

        if self.client is None:
            api_key = self.config.api_key.get_secret_value() if self.config.api_key else ""
            if not api_key:
                self.logger.info(
                    "AI service initialized without API key - running in limited mode"
                )
                return
            try:
                self.client = genai.Client(api_key=api_key)
            except Exception as e:
                self.logger.error("Failed to initialize AI service: %s", e)
                self.client = None
                return

        self.logger.info("AI service initialized model=%s", self.config.model)

    @property
    def enabled(self) -> bool:
        return self.client is not None

    def _generate(self, prompt: str) -> str:
        response = self.client.models.generate_content(
            model=self.config.model,
            contents=prompt,
            config=types.GenerateContentConfig(
                temperature=self.config.temperature,
                max_output_tokens=self.config.max_output_tokens,
            ),
        )
        return response.text or ""

    async def get_compliance_assistance(
        self, query: str, context: Optional[Dict[str, Any]] = None
    ) -> AIResponse:
        """
        Answer a query about the project's compliance.

        Args:
            query: Free-text question
            context: Current compliance report as a dict

        Returns:
            AIResponse whose metadata.model is the model name, "unavailable"
            or "error"
        """
        if not self.enabled:
            return AIResponse(
                content=UNAVAILABLE_MESSAGE,
                metadata=AIResponseMetadata(model="unavailable"),
            )

        try:
            content = await asyncio.to_thread(self._generate, build_prompt(query, context))
        except Exception as e:
            self.logger.error("Error generating AI assistance: %s", e)
            return AIResponse(
                content=ERROR_MESSAGE,
                metadata=AIResponseMetadata(model="error"),
            )

        self.logger.info("AI assistance generated successfully")
        return AIResponse(
            content=content,
            metadata=AIResponseMetadata(model=self.config.model),
        )

    async def get_suggestions(
        self, query: str, current_config: Optional[Dict[str, Any]] = None
    ) -> AIResponse:
        """Suggest configuration changes; same contract as get_compliance_assistance."""
        return await self.get_compliance_assistance(query, current_config)


__all__ = ["AIAssistant", "UNAVAILABLE_MESSAGE", "ERROR_MESSAGE"]
