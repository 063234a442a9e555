"""
Client configuration via pydantic-settings.

Settings are read from ``VORTEX_*`` environment variables (and a ``.env``
file when present). Only the composition root reads them; ``Vortex`` and
``TokenMinter`` take every value explicitly.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://api.vortexsoftware.com/api/v1"
DEFAULT_TIMEOUT = 10.0


class VortexSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="VORTEX_", env_file=".env", extra="ignore"
    )

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
