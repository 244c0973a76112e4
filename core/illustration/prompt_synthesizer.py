"""
Prompt Synthesizer

Turns an article into a short English image-generation prompt with one call to
the text-generation provider, then strips the markdown and labels that models
tend to add despite being told not to.
"""
import logging
import re
from typing import Optional

from shared.errors import PromptSynthesisError
from ..llm.openrouter import OpenRouterClient
from .prompts import PromptManager

MAX_ARTICLE_CHARS = 30000

_LEADING_LABELS = (
    re.compile(r"^\*\*Prompt:\*\*", re.IGNORECASE),
    re.compile(r"^\*\*prompt\*\*:?\s*", re.IGNORECASE),
    re.compile(r"^prompt:?\s*", re.IGNORECASE),
)
_HEADING_MARKS = re.compile(r"#{1,6}\s*")
_LIST_BULLETS = re.compile(r"^[-•]\s*", re.MULTILINE)
_LIST_NUMBERING = re.compile(r"^\d+\.\s*", re.MULTILINE)
_NOTE_LINE = re.compile(r"^(важно|примечание|važno|napomena|important|note)\b:?", re.IGNORECASE)


def truncate_article(text: str, max_chars: int = MAX_ARTICLE_CHARS) -> str:
    """Cut the article to ``max_chars`` characters and append the truncation marker."""
    if len(text) <= max_chars:
        return text
    logging.warning(f"[PROMPT] Content truncated from {len(text)} to {max_chars} characters")
    return text[:max_chars] + PromptManager.TRUNCATION_MARKER


def clean_prompt(raw: str) -> str:
    """
    Normalize a model reply into a single-line image prompt.

    Removes a leading ``Prompt:`` label (with or without bold markers), every
    ``**``/``*``, heading marks, list bullets and numbering, drops blank lines
    and lines that open with a note/important label, and joins the rest with
    single spaces.
    """
    text = raw.strip()
    for pattern in _LEADING_LABELS:
        text = pattern.sub("", text, count=1)
    text = text.replace("**", "").replace("*", "")
    text = _HEADING_MARKS.sub("", text)
    text = _LIST_BULLETS.sub("", text)
    text = _LIST_NUMBERING.sub("", text)

    lines = [line.strip() for line in text.split("\n")]
    kept = [line for line in lines if line and not _NOTE_LINE.match(line)]
    return " ".join(kept).strip()


class PromptSynthesizer:
    """Produces an image prompt for an article in the requested language."""

    def __init__(self, client: OpenRouterClient, max_article_chars: int = MAX_ARTICLE_CHARS):
        self.client = client
        self.max_article_chars = max_article_chars

    def synthesize(self, article_text: str, language: Optional[str] = "ru") -> str:
        """
        Create a cleaned image prompt for ``article_text``.

        Args:
            article_text: Plain article body
            language: ``ru`` (default), ``me`` or ``en``; other codes use ``ru``

        Returns:
            Single-line English prompt

        Raises:
            PromptSynthesisError: If the provider fails or the cleaned prompt is empty
        """
        article = truncate_article(article_text, self.max_article_chars)
        system_message, user_message = PromptManager.image_prompt_messages(language or "ru", article)

        logging.info("[PROMPT] Creating image prompt via OpenRouter")
        raw = self.client.generate(system_message, user_message)
        if not raw:
            raise PromptSynthesisError(
                "Failed to create image prompt",
                detail="OpenRouter API returned empty prompt",
                provider="openrouter",
            )

        prompt = clean_prompt(raw)
        if not prompt:
            raise PromptSynthesisError(
                "Failed to create image prompt",
                detail="Prompt was empty after cleanup",
                provider="openrouter",
            )

        logging.info(f"[PROMPT] Prompt created: {prompt[:100]}...")
        return prompt
