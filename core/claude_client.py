"""
Claude client wrapper.

Thin async layer over the Anthropic SDK for text and multi-image vision
queries, plus a helper for pulling JSON out of model answers.
"""

import base64
import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import anthropic

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-20250514"

MEDIA_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}


def image_block(image_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Build a base64 image content block.

    Raises:
        FileNotFoundError: If the image doesn't exist
        ValueError: If the image format is not supported
    """
    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"Image not found: {image_path}")

    media_type = MEDIA_TYPES.get(image_path.suffix.lower())
    if not media_type:
        raise ValueError(f"Unsupported image format: {image_path.suffix}")

    data = base64.standard_b64encode(image_path.read_bytes()).decode("utf-8")
    return {
        "type": "image",
        "source": {"type": "base64", "media_type": media_type, "data": data},
    }


class ClaudeClient:
    """
    Async wrapper around the Anthropic Messages API.

    Returns plain text; callers parse structure with JSONExtractor.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        max_tokens: int = 4096,
        client: Optional[anthropic.AsyncAnthropic] = None,
    ):
        """
        Args:
            api_key: Anthropic API key (falls back to ANTHROPIC_API_KEY)
            model: Model name
            max_tokens: Response token limit
            client: Pre-built SDK client, mainly for tests
        """
        self.model = model
        self.max_tokens = max_tokens
        self._client = client or anthropic.AsyncAnthropic(api_key=api_key or None)

    async def query(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        images: Optional[Sequence[Union[str, Path]]] = None,
    ) -> str:
        """
        Send a query to Claude and get back the text answer.

        Args:
            prompt: The user prompt
            system_prompt: Optional system prompt
            images: Image files sent ahead of the prompt, in order

        Returns:
            Response text, stripped
        """
        content: List[Dict[str, Any]] = [image_block(p) for p in images or []]
        content.append({"type": "text", "text": prompt})

        kwargs: Dict[str, Any] = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [{"role": "user", "content": content}],
        }
        if system_prompt:
            kwargs["system"] = system_prompt

        logger.debug(f"Sending prompt ({len(prompt)} chars, {len(content) - 1} images)")
        response = await self._client.messages.create(**kwargs)

        text = "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )
        logger.debug(f"Received response ({len(text)} chars)")
        return text.strip()

    async def close(self):
        await self._client.close()


class JSONExtractor:
    """Utility to extract JSON from Claude responses"""

    @staticmethod
    def extract(response: str) -> Dict[str, Any]:
        """
        Extract JSON from a Claude response, handling fenced and bare objects.

        Raises:
            ValueError: If no valid JSON found
        """
        if not response or not response.strip():
            raise ValueError("Empty response")

        response = response.strip()

        # Markdown code blocks first (most common)
        fenced = re.search(r"```(?:json)?\s*\n(.*?)\n```", response, re.DOTALL | re.IGNORECASE)
        if fenced:
            json_str = fenced.group(1).strip()
            try:
                return json.loads(json_str)
            except json.JSONDecodeError as e:
                logger.debug(f"Code block parse failed: {e}")
                # Escape stray backslashes that aren't valid JSON escapes
                fixed = re.sub(r'\\(?!["\\/bfnrtu])', r"\\\\", json_str)
                try:
                    return json.loads(fixed)
                except json.JSONDecodeError:
                    pass

        # Outermost object anywhere in the text
        braces = re.search(r"\{.*\}", response, re.DOTALL)
        if braces:
            try:
                return json.loads(braces.group(0))
            except json.JSONDecodeError:
                pass

        try:
            return json.loads(response)
        except json.JSONDecodeError as e:
            raise ValueError(
                f"No valid JSON found in response.\n"
                f"Error: {e}\n"
                f"Response preview: {response[:300]}"
            )
