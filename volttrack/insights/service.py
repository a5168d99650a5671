"""
Insights Service

Calls the hosted text-generation model for two features:
1. A structured narrative summary of the record set (JSON response)
2. Free-form questions answered from the full record set (text response)

Failures never touch record data; they surface as CollaboratorError so the
caller can show a retryable error.
"""

import json
import logging
from typing import Any, Iterable, List, Optional

from openai import AsyncAzureOpenAI
from pydantic import ValidationError as PydanticValidationError

from volttrack.config import MISConfig, config as default_config
from volttrack.models import MisInsights, TransformerRecord
from volttrack.prompts import get_assistant_prompt, get_insights_prompt


logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are an analyst for a transformer manufacturing MIS. Base every statement on the supplied data."


class CollaboratorError(Exception):
    """Raised when the text-generation call fails or returns unusable output."""
    pass


def create_openai_client(cfg: Optional[MISConfig] = None) -> Optional[AsyncAzureOpenAI]:
    """
    Build the Azure OpenAI client from configuration.

    Returns None when no endpoint is configured; the service then reports
    itself as not configured instead of failing at startup.
    """
    cfg = cfg or default_config
    if not cfg.insights.endpoint:
        logger.warning("No Azure OpenAI endpoint configured - insights disabled")
        return None

    if cfg.auth.use_managed_identity or not cfg.auth.api_key:
        from azure.identity import DefaultAzureCredential, get_bearer_token_provider

        token_provider = get_bearer_token_provider(
            DefaultAzureCredential(),
            cfg.auth.token_scope
        )
        client = AsyncAzureOpenAI(
            azure_endpoint=cfg.insights.endpoint,
            azure_deployment=cfg.insights.deployment,
            api_version=cfg.insights.api_version,
            azure_ad_token_provider=token_provider,
        )
        logger.info("Azure OpenAI client initialized with managed identity")
        return client

    client = AsyncAzureOpenAI(
        azure_endpoint=cfg.insights.endpoint,
        azure_deployment=cfg.insights.deployment,
        api_version=cfg.insights.api_version,
        api_key=cfg.auth.api_key,
    )
    logger.info("Azure OpenAI client initialized with API key")
    return client


class InsightsService:
    """Thin wrapper over chat completions for the insights and ask features."""

    def __init__(self, client: Any = None, deployment: str = "gpt-4.1", temperature: float = 0.2):
        """
        Initialize the service.

        Args:
            client: AsyncAzureOpenAI-compatible client (None disables the service)
            deployment: Model deployment name
            temperature: Sampling temperature
        """
        self.client = client
        self.deployment = deployment
        self.temperature = temperature

    @classmethod
    def from_config(cls, cfg: Optional[MISConfig] = None) -> "InsightsService":
        cfg = cfg or default_config
        return cls(
            client=create_openai_client(cfg),
            deployment=cfg.insights.deployment,
            temperature=cfg.insights.temperature
        )

    @property
    def configured(self) -> bool:
        return self.client is not None

    async def generate_insights(self, records: Iterable[TransformerRecord]) -> MisInsights:
        """
        Ask the model for a structured summary of the record set.

        Raises:
            CollaboratorError: On transport failure or a reply that is not
                the expected JSON object
        """
        simplified = [r.insight_projection() for r in records]
        prompt = get_insights_prompt(json.dumps(simplified))

        text = await self._complete(prompt, json_response=True)

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            logger.error(f"Insights response was not JSON - error={e}")
            raise CollaboratorError("Insights response was not valid JSON") from e

        try:
            insights = MisInsights.model_validate(data)
        except PydanticValidationError as e:
            logger.error(f"Insights response had unexpected shape - error={e}")
            raise CollaboratorError("Insights response did not match the expected structure") from e

        logger.info(f"Generated insights - records={len(simplified)}, risks={len(insights.risks)}")
        return insights

    async def ask(self, question: str, records: Iterable[TransformerRecord]) -> str:
        """
        Answer a free-form question from the full record set.

        Raises:
            ValueError: If the question is empty
            CollaboratorError: On transport failure or an empty reply
        """
        if not question or not question.strip():
            raise ValueError("Question must not be empty")

        full: List[dict] = [r.to_storage() for r in records]
        prompt = get_assistant_prompt(question.strip(), json.dumps(full))

        answer = await self._complete(prompt)
        logger.info(f"Answered question - question={question[:100]}")
        return answer

    async def _complete(self, prompt: str, json_response: bool = False) -> str:
        if self.client is None:
            raise CollaboratorError("Insights service is not configured")

        kwargs = {}
        if json_response:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await self.client.chat.completions.create(
                model=self.deployment,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": prompt}
                ],
                temperature=self.temperature,
                **kwargs
            )
        except Exception as e:
            logger.error(f"Insights request failed - error={e}")
            raise CollaboratorError(f"Insights request failed: {e}") from e

        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise CollaboratorError("Insights service returned an empty response")
        return content.strip()
