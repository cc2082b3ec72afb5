"""Configuration management for Ripple."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Dict, Any
import yaml

DEFAULT_WIDTH = 80


@dataclass(frozen=True)
class RenderConfig:
    """Rendering settings shared by every TextBuffer."""

    default_width: int = DEFAULT_WIDTH
    code_theme: str = "monokai"
    bullet: str = "•"
    quote_glyph: str = "│"
    rule_glyph: str = "─"


class ConfigManager:
    """Manage Ripple configuration from YAML."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = Path(config_path or "~/.config/ripple/config.yaml").expanduser()
        self.data = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            self._create_default_config()

        return self._read_yaml()

    def _read_yaml(self) -> Dict[str, Any]:
        """Read and parse YAML file."""
        try:
            with open(self.config_path, "r") as f:
                content = yaml.safe_load(f)
                return content or {}
        except Exception as e:
            print(f"Error reading config: {e}")
            return {}

    def _create_default_config(self) -> None:
        """Create default configuration file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        default_config = {
            "render": {
                "default_width": DEFAULT_WIDTH,
                "code_theme": "monokai",
                "bullet": "•",
                "quote_glyph": "│",
                "rule_glyph": "─",
            },
        }

        with open(self.config_path, "w") as f:
            yaml.dump(default_config, f, default_flow_style=False, allow_unicode=True)

    def _resolve_env_var(self, value: Any) -> Any:
        """Resolve environment variable references like ${VAR_NAME}."""
        if not isinstance(value, str):
            return value
        if not value.startswith("${") or not value.endswith("}"):
            return value

        var_name = value[2:-1]
        return os.getenv(var_name, "")

    def get_render_config(self) -> RenderConfig:
        """Get the typed render settings, falling back to defaults per key."""
        defaults = RenderConfig()
        section = self.data.get("render") or {}
        resolved = {k: self._resolve_env_var(v) for k, v in section.items()}

        try:
            width = int(resolved.get("default_width", defaults.default_width))
        except (TypeError, ValueError):
            width = defaults.default_width
        if width <= 0:
            width = defaults.default_width

        return RenderConfig(
            default_width=width,
            code_theme=str(resolved.get("code_theme") or defaults.code_theme),
            bullet=str(resolved.get("bullet") or defaults.bullet),
            quote_glyph=str(resolved.get("quote_glyph") or defaults.quote_glyph),
            rule_glyph=str(resolved.get("rule_glyph") or defaults.rule_glyph),
        )

    def save(self) -> None:
        """Save configuration to file."""
        with open(self.config_path, "w") as f:
            yaml.dump(self.data, f, default_flow_style=False, allow_unicode=True)
