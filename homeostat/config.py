"""
Application Configuration

Single place environment variables are read. Everything else receives
an AppConfig.

- HOMEOSTAT_ENV         'dev' selects state-dev.json; anything else is prod
- HOMEOSTAT_STATE_PATH  full path override for the state document
- HOST / PORT           API server bind address
"""

from __future__ import annotations
from dataclasses import dataclass
import os
from typing import Mapping, Optional


ENV_DEV = "dev"
ENV_PROD = "prod"


@dataclass(frozen=True)
class AppConfig:
    env: str = ENV_PROD
    data_dir: str = "data"
    state_file: str = "state.json"
    state_path_override: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 8000

    @property
    def state_path(self) -> str:
        if self.state_path_override:
            return self.state_path_override
        return os.path.join(self.data_dir, self.state_file)


def get_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Read configuration from the process environment (or a supplied mapping)."""
    environ = os.environ if environ is None else environ
    env = ENV_DEV if environ.get("HOMEOSTAT_ENV") == ENV_DEV else ENV_PROD
    return AppConfig(
        env=env,
        data_dir="data",
        state_file="state-dev.json" if env == ENV_DEV else "state.json",
        state_path_override=environ.get("HOMEOSTAT_STATE_PATH") or None,
        host=environ.get("HOST", "0.0.0.0"),
        port=int(environ.get("PORT", "8000")),
    )


# Production defaults; get_config() respects the environment
DEFAULT_CONFIG = AppConfig()
