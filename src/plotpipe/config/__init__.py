"""Configuration — Pydantic model for plotpipe settings."""

from __future__ import annotations

import json
import os
from typing import Any

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field

DEFAULT_COMMAND = "gnuplot"


class PlotpipeConfig(BaseModel):
    """Process-wide settings read by the session registry.

    ``command`` starts each new session, ``startup`` is sent through the
    command path to every new (or reset) session, and ``verbosity`` is the
    highest echo tier forwarded to the log:

        0  silent
        1  lifecycle events (session start/exit, pipe closed)
        2  commands sent and uncaptured output
        3  captured output
        4  capture protocol markers
    """

    model_config = ConfigDict(validate_assignment=True)

    command: str = Field(
        default=DEFAULT_COMMAND, description="Command line used to start a session"
    )
    startup: str = Field(
        default="", description="Commands sent to every new or reset session"
    )
    verbosity: int = Field(default=3, ge=0, le=4, description="Echo threshold (0-4)")

    @classmethod
    def load(cls, config_path: str | None = None) -> PlotpipeConfig:
        """Load config from file, env vars, or defaults.

        Priority: env vars > config file > defaults.

        Env vars:
            PLOTPIPE_COMMAND    - Command line used to start the plotting process
            PLOTPIPE_STARTUP    - Startup script sent to each new session
            PLOTPIPE_VERBOSITY  - Echo threshold, 0 to 4
        """
        # .env next to where the command runs, not next to this module
        load_dotenv(find_dotenv(usecwd=True))

        config_data: dict[str, Any] = {}

        if config_path and os.path.exists(config_path):
            with open(config_path) as f:
                config_data = json.load(f)

        env_command = os.environ.get("PLOTPIPE_COMMAND")
        if env_command:
            config_data["command"] = env_command

        env_startup = os.environ.get("PLOTPIPE_STARTUP")
        if env_startup:
            config_data["startup"] = env_startup

        env_verbosity = os.environ.get("PLOTPIPE_VERBOSITY")
        if env_verbosity:
            config_data["verbosity"] = int(env_verbosity)

        return cls.model_validate(config_data)
