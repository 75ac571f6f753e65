# Copyright (c) 2026 TableFSM Contributors. All Rights Reserved.

"""
TableFSM Configuration — Environment-driven settings.

All configuration is loaded from environment variables (or .env file).
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class FSMSettings(BaseSettings):
    """Library-wide configuration loaded from environment."""

    FSM_LOG_LEVEL: str = Field(
        default="INFO",
        description="Level installed by setup_logging()",
    )
    FSM_DEFAULT_LOG_MAX: int = Field(
        default=20,
        ge=0,
        description="Transition log bound for descriptors that omit log_max",
    )
    FSM_LOG_TIME_FORMAT: str = Field(
        default="%Y-%m-%d %H:%M:%S %Z",
        description="strftime format of transition log timestamps",
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": True,
        "extra": "ignore",
    }


# Global singleton
settings = FSMSettings()
