"""
Rule rewriter - the external collaborator that rewrites implicated rules.

RuleRewriter is the seam; OpenAIRuleRewriter talks to an OpenAI-compatible
chat completions endpoint. The engine awaits one rewrite per repair cycle
and treats malformed output as "no repair produced".
"""

from __future__ import annotations
from abc import ABC, abstractmethod
import json
import logging
import re
from typing import Any

import openai

from .. import config
from .prompts import RepairPrompts

logger = logging.getLogger(__name__)

_FENCED_JSON = re.compile(r"```json\s*([\s\S]*?)\s*```")


class RuleRewriter(ABC):
    """Rewrites rules from a prompt; returns the raw response text."""

    @abstractmethod
    async def rewrite(self, prompt: str) -> str:
        """Return the collaborator's answer to a partial-repair prompt."""
        pass


class OpenAIRuleRewriter(RuleRewriter):
    """
    RuleRewriter over the openai async client.

    Reads OPENAI_API_KEY / OPENAI_API_BASE_URL / RULEGUARD_REWRITE_MODEL
    unless given explicitly.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        temperature: float = 0.2,
    ):
        self.api_key = api_key or config.OPENAI_API_KEY
        self.base_url = base_url or config.OPENAI_API_BASE_URL
        self.model = model or config.RULEGUARD_REWRITE_MODEL
        self.temperature = temperature
        if not self.api_key:
            logger.error("OPENAI_API_KEY environment variable not set.")
            raise ValueError("OPENAI_API_KEY environment variable not set.")
        self.client = openai.AsyncOpenAI(api_key=self.api_key, base_url=self.base_url)

    async def rewrite(self, prompt: str) -> str:
        response = await self.client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": RepairPrompts.system()},
                {"role": "user", "content": prompt},
            ],
            temperature=self.temperature,
        )
        return response.choices[0].message.content or ""


def parse_rewritten_rules(text: str) -> list[dict[str, Any]]:
    """
    Extract replacement rules from a collaborator response.

    Accepts a fenced ```json block or a bare JSON array. Anything else
    yields an empty list.
    """
    if not text:
        return []
    match = _FENCED_JSON.search(text)
    payload = match.group(1) if match else text.strip()
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        logger.warning(f"Rewrite response is not valid JSON: {e}")
        return []
    if not isinstance(data, list):
        logger.warning("Rewrite response is not a JSON array")
        return []
    return [item for item in data if isinstance(item, dict)]
