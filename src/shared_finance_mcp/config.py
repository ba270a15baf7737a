"""
Runtime configuration for the shared finance MCP server.
"""

import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

DEFAULT_BASE_URL = "http://localhost:8080/api/v1"


class Settings(BaseModel):
    """Connection settings for the REST backend."""

    base_url: str = DEFAULT_BASE_URL
    access_token: Optional[str] = None
    timeout: float = Field(default=30.0, gt=0)

    # Signed-in user the tools act for
    user_id: Optional[str] = None

    # Seconds between a bill settling and the settle notice
    settle_notice_delay: float = Field(default=1.0, ge=0)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """
        Build settings from environment variables.

        Reads FINANCE_API_BASE_URL, FINANCE_API_TOKEN, FINANCE_API_TIMEOUT
        and FINANCE_USER_ID. Unset variables keep their defaults.
        """
        env = os.environ if environ is None else environ
        values = {}
        if env.get("FINANCE_API_BASE_URL"):
            values["base_url"] = env["FINANCE_API_BASE_URL"]
        if env.get("FINANCE_API_TOKEN"):
            values["access_token"] = env["FINANCE_API_TOKEN"]
        if env.get("FINANCE_API_TIMEOUT"):
            values["timeout"] = float(env["FINANCE_API_TIMEOUT"])
        if env.get("FINANCE_USER_ID"):
            values["user_id"] = env["FINANCE_USER_ID"]
        return cls(**values)
