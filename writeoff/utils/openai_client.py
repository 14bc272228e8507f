"""OpenAI client wrapper for consistent API access."""

import os
import logging
from typing import Optional

from openai import OpenAI

from .config import OPENAI_MODEL

logger = logging.getLogger(__name__)


class OpenAIClient:
    """Wrapper for OpenAI chat completions."""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        """Initialize OpenAI client.

        Args:
            api_key: Overrides the OPENAI_API_KEY environment variable
            model: Overrides the OPENAI_MODEL setting
        """
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise ValueError("OPENAI_API_KEY environment variable not set")

        self.client = OpenAI(api_key=api_key)
        self.model = model or OPENAI_MODEL

    def complete(
        self,
        prompt: str,
        system: str,
        max_tokens: Optional[int] = None,
        temperature: float = 0.7,
    ) -> str:
        """Get a chat completion from OpenAI API.

        Args:
            prompt: The user message
            system: The system message
            max_tokens: Optional maximum number of tokens to generate
            temperature: Sampling temperature

        Returns:
            The generated text response, empty string when the model returns no content
        """
        try:
            response = self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=max_tokens,
                temperature=temperature,
            )
            return response.choices[0].message.content or ""

        except Exception as e:
            logger.error(f"Error calling OpenAI API: {str(e)}")
            raise
