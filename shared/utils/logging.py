"""
Centralized Logging Utilities

This module provides the logging setup shared by the API and command-line
entry points, and a file-based logger that records the prompts and errors of
individual illustration requests for debugging.
"""

import os
import time
import logging
import traceback
from typing import Optional
from datetime import datetime


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging once for the process.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...); unknown names fall back to INFO
    """
    numeric_level = getattr(logging, str(level).upper(), logging.INFO)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT)
    logging.getLogger().setLevel(numeric_level)


class PipelineLogger:
    """
    File logger for a single illustration request.

    This class manages:
    - Prompt logging (article excerpt, synthesized prompt, provider used)
    - Error logging (one file per failure, with traceback)
    - Completion summary
    """

    def __init__(self, log_dir: Optional[str], request_id: Optional[str] = None, task_type: str = "illustration"):
        """
        Initialize the pipeline logger.

        Args:
            log_dir: Root directory for log files; None disables file logging
            request_id: Identifier used in file names (defaults to a timestamp)
            task_type: Type of task, used as the prompt log file prefix
        """
        self.log_dir = log_dir
        self.request_id = request_id or datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        self.task_type = task_type
        self.start_time = time.time()

        if self.log_dir:
            os.makedirs(os.path.join(self.log_dir, "prompts"), exist_ok=True)
            os.makedirs(os.path.join(self.log_dir, "errors"), exist_ok=True)
            self.prompt_log_path = os.path.join(
                self.log_dir, "prompts", f"{self.task_type}_{self.request_id}.txt"
            )
        else:
            self.prompt_log_path = None

    @property
    def enabled(self) -> bool:
        return self.prompt_log_path is not None

    def initialize_session(self, language: str, article_length: int):
        """Write the prompt log header."""
        if not self.enabled:
            return
        with open(self.prompt_log_path, 'w', encoding='utf-8') as f:
            f.write(f"# PROMPT LOG FOR REQUEST: {self.request_id}\n")
            f.write(f"# Language: {language}\n")
            f.write(f"# Article length: {article_length} chars\n")
            f.write(f"# Started: {datetime.now().isoformat()}\n\n")

    def log_prompt(self, stage: str, prompt: str):
        """
        Append a prompt to the prompt log.

        Args:
            stage: Pipeline stage that produced or consumed the prompt
            prompt: Prompt text
        """
        if not self.enabled:
            return
        with open(self.prompt_log_path, 'a', encoding='utf-8') as f:
            f.write(f"--- {stage.upper()} ---\n\n")
            f.write(prompt)
            f.write("\n\n" + "=" * 50 + "\n\n")

    def log_error(self, error: Exception, context: Optional[str] = None):
        """
        Write an error to its own file under ``errors/``.

        Args:
            error: The exception that occurred
            context: Optional context description (pipeline stage)
        """
        if not self.log_dir:
            return
        error_log_path = os.path.join(
            self.log_dir, "errors", f"error_{self.request_id}_{datetime.now().strftime('%H%M%S_%f')}.txt"
        )
        with open(error_log_path, 'w', encoding='utf-8') as f:
            f.write("# ERROR LOG\n")
            f.write(f"# Request: {self.request_id}\n")
            f.write(f"# Timestamp: {datetime.now().isoformat()}\n")
            f.write(f"# Context: {context}\n\n")
            f.write(f"Error Type: {type(error).__name__}\n")
            f.write(f"Error Message: {str(error)}\n")
            if error.__traceback__ is not None:
                f.write("\nTraceback:\n")
                f.write("".join(traceback.format_exception(type(error), error, error.__traceback__)))

    def log_completion(self, provider_label: str):
        """Append the completion summary to the prompt log."""
        if not self.enabled:
            return
        total_time = time.time() - self.start_time
        with open(self.prompt_log_path, 'a', encoding='utf-8') as f:
            f.write("\n--- ILLUSTRATION COMPLETED ---\n")
            f.write(f"Provider: {provider_label}\n")
            f.write(f"Total time: {total_time:.1f}s\n")
            f.write(f"Completed at: {datetime.now().isoformat()}\n")
            f.write("=" * 50 + "\n")
