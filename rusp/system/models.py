"""
System-wide Pydantic models: interpreter configuration.
"""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator

logger = logging.getLogger(__name__)

LOG_LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class InterpreterSettings(BaseModel):
    """
    Runtime configuration for the evaluator and the command-line driver.
    Built from CLI flags; the core never reads files or environment variables.
    """
    model_config = ConfigDict(frozen=True)

    max_call_depth: PositiveInt = Field(2000, description="Nested closure calls allowed before StackOverflow is raised.")
    recursion_limit: PositiveInt = Field(20000, description="Python recursion limit the driver installs before running a script.")
    log_level: str = Field("WARNING", description=f"Logging level, one of {list(LOG_LEVEL_NAMES)}.")
    log_file: Optional[str] = Field(None, description="Optional log file; logs go to stderr when omitted.")

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        level = str(value).upper()
        if level not in LOG_LEVEL_NAMES:
            raise ValueError(f"log_level must be one of {list(LOG_LEVEL_NAMES)}, got '{value}'")
        return level
