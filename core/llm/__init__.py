"""Text-generation clients."""

from .openrouter import OpenRouterClient

__all__ = ["OpenRouterClient"]
