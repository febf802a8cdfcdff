"""Claude as the alternative summarization provider (``SUMMARY_PROVIDER=anthropic``).

Claude has no JSON response mode, so the reply is requested as a bare JSON
object through the system prompt and any markdown code fence around it is
removed before it is handed back for parsing.
"""

from __future__ import annotations

import logging
import os
import re

import anthropic

CLAUDE_MODEL = os.getenv("CLAUDE_MODEL", "claude-sonnet-4-5")
CLAUDE_TEMPERATURE = float(os.getenv("CLAUDE_TEMPERATURE", "0.2"))

_CODE_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)

LOGGER = logging.getLogger(__name__)


def claude_json_reply(system_prompt: str, user_prompt: str, max_tokens: int = 4096) -> str:
    """Send one strategist prompt to Claude and return the JSON reply text."""
    api_key = os.getenv("ANTHROPIC_API_KEY")
    if not api_key:
        raise RuntimeError("ANTHROPIC_API_KEY environment variable is required")

    client = anthropic.Anthropic(api_key=api_key)
    response = client.messages.create(
        model=CLAUDE_MODEL,
        max_tokens=max_tokens,
        temperature=CLAUDE_TEMPERATURE,
        system=system_prompt,
        messages=[{"role": "user", "content": user_prompt}],
    )

    usage = getattr(response, "usage", None)
    if usage is not None:
        LOGGER.info(
            "Claude %s: %s input / %s output tokens",
            CLAUDE_MODEL,
            getattr(usage, "input_tokens", "?"),
            getattr(usage, "output_tokens", "?"),
        )
    if getattr(response, "stop_reason", None) == "max_tokens":
        LOGGER.warning("Claude reply hit max_tokens=%s; the analysis JSON may be cut off", max_tokens)

    text = "".join(block.text for block in response.content if getattr(block, "type", "") == "text").strip()
    if not text:
        raise RuntimeError("Claude returned an empty response")
    return strip_code_fence(text)


def strip_code_fence(text: str) -> str:
    """Return the body of a ```json fenced block, or ``text`` unchanged."""
    match = _CODE_FENCE_RE.match(text.strip())
    return match.group(1) if match else text
