import json
import logging
import os
from pathlib import Path
from typing import Any

import commentjson  # type: ignore

logger = logging.getLogger(__name__)

MATCH_MODES = ("prefix", "contains")


class ConfigurationManager:
    """
    Builds the effective surface configuration.

    Layers, lowest first: packaged defaults.json, a user JSONC file, CLI
    overrides. Classification profiles merge by name so a user file can
    retune one profile without restating the others.
    """

    def __init__(self, *, base_path: Path | None = None) -> None:
        self._base_path = base_path or Path(__file__).parent

    def load_config(
        self, user_config_path: str | None, cli_overrides: dict[str, Any]
    ) -> dict[str, Any]:
        config = self._load_defaults()

        if user_config_path:
            self._merge_user_file(config, Path(user_config_path))

        overrides = {k: v for k, v in cli_overrides.items() if v is not None}
        prefixes = overrides.pop("exclude_prefixes", None)
        config.update(overrides)
        if prefixes:
            self._override_profile_prefixes(config, prefixes)

        mode = config.get("match_mode", "prefix")
        if mode not in MATCH_MODES:
            raise ValueError(
                f"Unknown match_mode '{mode}'; expected one of {', '.join(MATCH_MODES)}"
            )

        if not config.get("concurrency"):
            config["concurrency"] = os.cpu_count() or 1

        return config

    def _load_defaults(self) -> dict[str, Any]:
        defaults_path = self._base_path / "defaults.json"
        if not defaults_path.exists():
            return {}

        try:
            with open(defaults_path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable defaults {defaults_path}: {e}")
            return {}

    def _merge_user_file(self, config: dict[str, Any], path: Path) -> None:
        if not path.is_file():
            raise FileNotFoundError(f"Config file not found: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                user_conf = commentjson.load(f)
        except Exception as e:
            raise IOError(f"Failed to parse config file {path}: {e}")

        user_profiles = user_conf.pop("profiles", None) or {}
        config.update(user_conf)

        profiles = config.setdefault("profiles", {})
        for name, profile in user_profiles.items():
            profiles[name] = {**profiles.get(name, {}), **profile}

    @staticmethod
    def _override_profile_prefixes(config: dict[str, Any], prefixes: list[str]) -> None:
        """A prefix list given on the command line replaces every profile's list."""
        for name, profile in config.get("profiles", {}).items():
            logger.debug(f"Profile '{name}' excludes overridden: {prefixes}")
            profile["exclude"] = list(prefixes)
