import os

import yaml


class PromptManager:
    """
    Holds the prompt templates used for image-prompt synthesis.
    Templates live in prompts.yaml next to this module.
    """

    DEFAULT_LANGUAGE = "ru"

    _prompts_path = os.path.join(os.path.dirname(__file__), "prompts.yaml")
    with open(_prompts_path, "r", encoding="utf-8") as f:
        _prompts = yaml.safe_load(f)

    TRUNCATION_MARKER = _prompts["truncation_marker"]
    IMAGE_PROMPTS = _prompts["image_prompt"]

    @classmethod
    def supported_languages(cls):
        return tuple(cls.IMAGE_PROMPTS.keys())

    @classmethod
    def image_prompt_messages(cls, language: str, article: str):
        """
        Return the (system, user) message pair for a language.
        Unknown language codes fall back to Russian.
        """
        templates = cls.IMAGE_PROMPTS.get(language) or cls.IMAGE_PROMPTS[cls.DEFAULT_LANGUAGE]
        # str.replace keeps braces inside the article text intact
        return templates["system"], templates["user"].replace("{article}", article)
