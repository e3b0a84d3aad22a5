"""OpenAI chat-completions integration for rewriting template texts."""

import logging
import time

from openai import OpenAI
from tenacity import Retrying, stop_after_attempt, wait_exponential

logger = logging.getLogger(__name__)

# Token budget per extracted text, on top of a fixed allowance for numbering
_BASE_TOKENS = 256
_TOKENS_PER_TEXT = 120


def token_budget(text_count: int, max_tokens: int) -> int:
    """Size the response budget to the number of texts, capped at *max_tokens*."""
    return min(max_tokens, _BASE_TOKENS + _TOKENS_PER_TEXT * text_count)


class TextPersonalizer:
    """Send numbered text lists to the OpenAI chat-completions API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        max_tokens: int = 4000,
        temperature: float = 0.3,
        timeout: float = 120.0,
        max_attempts: int = 1,
    ):
        """
        Initialize the completion client.

        Args:
            api_key: OpenAI API key
            model: OpenAI model to use
            max_tokens: Upper bound for the response budget
            temperature: Temperature setting for generation
            timeout: Per-request timeout in seconds
            max_attempts: Total attempts per completion (1 disables retries)
        """
        self.client = OpenAI(api_key=api_key, timeout=timeout)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_attempts = max_attempts

    def _call_openai(self, system_prompt: str, user_prompt: str, budget: int) -> str:
        api_start = time.time()
        logger.info(f"Calling OpenAI with model: {self.model}, max_tokens: {budget}")

        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                max_tokens=budget,
                temperature=self.temperature,
            )
        except Exception as e:
            logger.error(f"OpenAI API error after {time.time() - api_start:.3f}s: {e}")
            raise

        content = response.choices[0].message.content or ""
        logger.info(
            f"OpenAI response received in {time.time() - api_start:.3f}s "
            f"({len(content)} chars)"
        )
        if getattr(response, "usage", None):
            logger.info(
                f"Token usage - Input: {response.usage.prompt_tokens}, "
                f"Output: {response.usage.completion_tokens}, "
                f"Total: {response.usage.total_tokens}"
            )
        return content

    def complete(self, system_prompt: str, user_prompt: str, text_count: int) -> str:
        """
        Run one completion for a prompt listing *text_count* texts.

        Raises:
            Exception: If the API call fails on every attempt
        """
        budget = token_budget(text_count, self.max_tokens)
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=1, min=2, max=10),
            reraise=True,
        )
        return retrying(self._call_openai, system_prompt, user_prompt, budget)
