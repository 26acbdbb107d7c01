"""
Planner profiles and API keys.

A profile is one YAML file in ``configs/`` with ``routing``, ``search``,
``storage`` and ``logging`` sections. ``TRAVELOGIC_PROFILE`` picks the
profile; the Google key is only read when a Google provider makes a call.
"""

import os
from pathlib import Path
from typing import Dict, Any, List, Optional
import yaml

DEFAULT_PROFILE = "default"
PROFILE_ENV_VAR = "TRAVELOGIC_PROFILE"
API_KEY_ENV_VAR = "GOOGLE_MAPS_API_KEY"


class ConfigLoader:
    """Resolve a planner profile name to its settings dictionary."""

    CONFIG_DIR = Path(__file__).parent.parent.parent / "configs"

    @classmethod
    def profile_names(cls) -> List[str]:
        """Names of the bundled profiles, sorted."""
        return sorted(f.stem for f in cls.CONFIG_DIR.glob("*.yaml"))

    @classmethod
    def load_profile(cls, profile_name: str = DEFAULT_PROFILE) -> Dict[str, Any]:
        """
        Read one planner profile.

        Args:
            profile_name: File stem under ``configs/`` (default, walking-tour, offline)

        Returns:
            Section name -> settings; an empty file gives ``{}``

        Raises:
            FileNotFoundError: If no such profile exists; the message lists
                the ones that do
        """
        profile_path = cls.CONFIG_DIR / f"{profile_name}.yaml"

        if not profile_path.exists():
            raise FileNotFoundError(
                f"Profile '{profile_name}' not found. Available profiles: {', '.join(cls.profile_names())}"
            )

        with open(profile_path, "r") as f:
            return yaml.safe_load(f) or {}

    @classmethod
    def get_profile_from_env(cls) -> Optional[str]:
        return os.getenv(PROFILE_ENV_VAR)

    @classmethod
    def load_default_or_env_profile(cls) -> Dict[str, Any]:
        """Profile named by ``TRAVELOGIC_PROFILE``, else ``default``."""
        profile = cls.get_profile_from_env() or DEFAULT_PROFILE
        return cls.load_profile(profile)


def get_config() -> Dict[str, Any]:
    """Settings for the active planner profile."""
    return ConfigLoader.load_default_or_env_profile()


def require_google_api_key() -> str:
    """
    Google Maps key from the environment.

    Raises:
        RuntimeError: If ``GOOGLE_MAPS_API_KEY`` is unset or empty
    """
    google_key = os.getenv(API_KEY_ENV_VAR, "")
    if not google_key:
        raise RuntimeError(
            "Missing GOOGLE_MAPS_API_KEY. Copy .env.sample to .env and set your key before using Google providers."
        )
    return google_key
