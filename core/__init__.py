"""
Core module for the Article Illustrator system.
This module provides the illustration pipeline and the client-profile
persistence layer it relies on.
"""

# Pipeline components
from .illustration.orchestrator import IllustrationOrchestrator, build_orchestrator
from .illustration.prompt_synthesizer import PromptSynthesizer
from .illustration.fallback_chain import ImageFallbackChain

# Persistence components
from .persistence import (
    TTLCache,
    HistoryLog,
    DailyQuotaCounter,
    AnalyticsTracker,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
)

# Configuration
from .config.settings import Settings, get_settings

__all__ = [
    # Pipeline
    'IllustrationOrchestrator',
    'build_orchestrator',
    'PromptSynthesizer',
    'ImageFallbackChain',

    # Persistence
    'TTLCache',
    'HistoryLog',
    'DailyQuotaCounter',
    'AnalyticsTracker',
    'InMemoryKeyValueStore',
    'JsonFileKeyValueStore',

    # Configuration
    'Settings',
    'get_settings',
]
