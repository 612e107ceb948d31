"""
Application configuration.

Settings are read from ``~/.config/render_canvas/settings.json``. The
``GEMINI_API_KEY`` (or ``API_KEY``) environment variable overrides the
stored key. The graph itself is never written to disk.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Mapping

from render_canvas.core.graph import Point2D
from render_canvas.providers.base import ProviderConfig


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".config" / "render_canvas" / "settings.json"
API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")

# JSON types accepted for each stored setting
FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "api_key": (str,),
    "base_url": (str, type(None)),
    "model": (str,),
    "new_node_offset_x": (int, float),
    "new_node_offset_y": (int, float),
    "frame_interval_ms": (int,),
}


@dataclass
class AppConfig:
    """User-adjustable settings for the editor."""
    api_key: str = ""
    base_url: str | None = None
    model: str = "gemini-2.5-flash-image"

    # Screen offset whose world point receives nodes added from the toolbar
    new_node_offset_x: float = 400.0
    new_node_offset_y: float = 300.0

    # Interval of the gesture frame tick
    frame_interval_ms: int = 16

    @property
    def new_node_offset(self) -> Point2D:
        return Point2D(self.new_node_offset_x, self.new_node_offset_y)

    def provider_config(self) -> ProviderConfig:
        return ProviderConfig(api_key=self.api_key, base_url=self.base_url, model=self.model)

    @classmethod
    def load(
        cls,
        path: Path | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> AppConfig:
        """Load settings, falling back to defaults on any problem."""
        if path is None:
            path = DEFAULT_CONFIG_PATH
        if environ is None:
            environ = os.environ

        config = cls()
        if path.exists():
            try:
                with open(path) as f:
                    data = json.load(f)
                config = cls(**cls._valid_values(data, path))
            except (OSError, ValueError, TypeError, AttributeError) as e:
                logger.warning("Failed to load settings from %s: %s", path, e)
                config = cls()

        for var in API_KEY_ENV_VARS:
            if environ.get(var):
                config.api_key = environ[var]
                break
        return config

    @staticmethod
    def _valid_values(data: dict[str, Any], path: Path) -> dict[str, Any]:
        """Stored values of the right type; anything else keeps its default."""
        values = {}
        for f in fields(AppConfig):
            if f.name not in data:
                continue
            value = data[f.name]
            # bool is an int subclass but never a valid setting here
            if isinstance(value, bool) or not isinstance(value, FIELD_TYPES[f.name]):
                logger.warning("Ignoring %s=%r in %s: wrong type", f.name, value, path)
                continue
            values[f.name] = value
        return values

    def save(self, path: Path | None = None) -> Path:
        """Save settings to file."""
        if path is None:
            path = DEFAULT_CONFIG_PATH

        # Ensure directory exists
        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(asdict(self), f, indent=2)
        return path
