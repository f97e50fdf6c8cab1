"""
Display name provider backed by a YAML file.

Example file:

    priority_names:
      1: "1 urgent"
      2: "2 normal"
    state_names:
      3: "waiting for customer"
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from deskpulse.core import ConfigurationException
from deskpulse.dashboard.domain import DisplayNames
from deskpulse.dashboard.domain.value_objects import DEFAULT_PRIORITY_NAMES, DEFAULT_STATE_NAMES
from deskpulse.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class YAMLDisplayNamesProvider:
    """
    Loads priority and state display names from YAML.

    Tables missing from the file keep their defaults; entries present in the
    file override the default entry with the same id.
    """

    def __init__(self, config_path: Path):
        self._config_path = Path(config_path)
        self._names: Optional[DisplayNames] = None

    def load(self) -> DisplayNames:
        if not self._config_path.exists():
            logger.warning(
                "Display names file not found, using defaults",
                extra={"path": str(self._config_path)}
            )
            self._names = DisplayNames()
            return self._names

        with open(self._config_path, "r") as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigurationException(
                f"Display names file must hold a mapping: {self._config_path}"
            )

        self._names = DisplayNames(
            priority_names=self._merge(DEFAULT_PRIORITY_NAMES, data.get("priority_names")),
            state_names=self._merge(DEFAULT_STATE_NAMES, data.get("state_names")),
        )
        logger.info("Display names loaded", extra={"path": str(self._config_path)})
        return self._names

    def get_names(self) -> DisplayNames:
        if self._names is None:
            return self.load()
        return self._names

    @staticmethod
    def _merge(defaults: Dict[int, str], overrides: Any) -> Dict[int, str]:
        merged = dict(defaults)
        if not overrides:
            return merged
        if not isinstance(overrides, dict):
            raise ConfigurationException("Display name tables must map ids to names")
        try:
            merged.update({int(key): str(value) for key, value in overrides.items()})
        except (TypeError, ValueError) as e:
            raise ConfigurationException(f"Invalid display name id: {e}")
        return merged
