# llm.py
# Generative text service: an OpenAI-backed client and an explicit "unconfigured"
# stand-in. Both are constructed once and passed to callers.

import logging

from openai import OpenAI, OpenAIError

from .config import Settings

log = logging.getLogger(__name__)


class GenerativeServiceError(RuntimeError):
    """The service could not produce a completion (unconfigured, transport, empty reply)."""


class GenerativeService:
    configured = False
    model = None

    def complete(self, system_instructions: str, user_text: str, *,
                 temperature: float, json_only: bool = True) -> str:
        raise NotImplementedError


class UnconfiguredService(GenerativeService):
    """No credentials: every caller goes straight to its fallback."""

    def complete(self, system_instructions, user_text, *, temperature, json_only=True):
        raise GenerativeServiceError("Generative service not configured")


class OpenAIService(GenerativeService):
    configured = True

    def __init__(self, api_key: str, model: str = "gpt-4o-mini", timeout: float = 10.0, client=None):
        self.model = model
        # single attempt; the caller's fallback is the recovery path
        self.client = client or OpenAI(api_key=api_key, timeout=timeout, max_retries=0)

    def complete(self, system_instructions, user_text, *, temperature, json_only=True):
        kwargs = {}
        if json_only:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_instructions},
                    {"role": "user", "content": user_text},
                ],
                temperature=temperature,
                **kwargs,
            )
        except OpenAIError as e:
            raise GenerativeServiceError(str(e)) from e

        content = resp.choices[0].message.content if resp.choices else None
        if not content:
            raise GenerativeServiceError("Empty completion")
        return content


def build_service(settings: Settings) -> GenerativeService:
    if settings.openai_configured:
        log.info("OpenAI client initialized (model=%s)", settings.openai_model)
        return OpenAIService(settings.openai_api_key, settings.openai_model, settings.llm_timeout)
    log.info("OpenAI API key not configured - using fallback parsers")
    return UnconfiguredService()
