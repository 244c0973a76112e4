"""
Illustration pipeline: prompt synthesis followed by the image provider
fallback chain, composed by the orchestrator.
"""

from .prompt_synthesizer import PromptSynthesizer, clean_prompt, truncate_article
from .fallback_chain import ImageFallbackChain
from .orchestrator import IllustrationOrchestrator, build_image_chain, build_orchestrator

__all__ = [
    "PromptSynthesizer",
    "clean_prompt",
    "truncate_article",
    "ImageFallbackChain",
    "IllustrationOrchestrator",
    "build_image_chain",
    "build_orchestrator",
]
