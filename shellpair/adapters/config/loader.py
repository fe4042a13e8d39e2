"""
Configuration loader with priority: CLI > env > TOML > defaults
"""
import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Any, Optional

from ...core.constants import (
    DEFAULT_CONFIG_PATH,
    DEFAULT_PROFILES_DIR,
    DEFAULT_SSH_TIMEOUT,
    ENV_PREFIX,
    KEYRING_SERVICE,
)
from ...core.exceptions import ConfigError
from ...domain.session.models import OrchestratorConfig


@dataclass
class Settings:
    """Resolved application settings"""
    orchestrator: OrchestratorConfig = field(default_factory=OrchestratorConfig)
    profiles_dir: Path = field(default_factory=lambda: Path(DEFAULT_PROFILES_DIR).expanduser())
    keyring_service: str = KEYRING_SERVICE
    connect_timeout: float = DEFAULT_SSH_TIMEOUT
    log_level: str = "WARNING"
    log_file: Optional[Path] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Create from a merged configuration dictionary"""
        try:
            orchestrator = OrchestratorConfig.from_dict(data.get("session", {}))
            orchestrator.validate()
            log_file = data.get("log_file")
            return cls(
                orchestrator=orchestrator,
                profiles_dir=Path(data.get("profiles_dir", DEFAULT_PROFILES_DIR)).expanduser(),
                keyring_service=str(data.get("keyring_service", KEYRING_SERVICE)),
                connect_timeout=float(data.get("connect_timeout", DEFAULT_SSH_TIMEOUT)),
                log_level=str(data.get("log_level", "WARNING")).upper(),
                log_file=Path(log_file).expanduser() if log_file else None,
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid configuration value: {e}") from e


class ConfigLoader:
    """Configuration loader with priority support"""

    # Environment variable -> config key (dots address nested tables)
    ENV_MAPPINGS = {
        "PROFILES_DIR": "profiles_dir",
        "KEYRING_SERVICE": "keyring_service",
        "CONNECT_TIMEOUT": "connect_timeout",
        "LOG_LEVEL": "log_level",
        "LOG_FILE": "log_file",
        "SETTLE_DELAY": "session.settle_delay",
        "COLS": "session.default_cols",
        "ROWS": "session.default_rows",
        "PAIRING_WAIT_TIMEOUT": "session.pairing_wait_timeout",
    }

    def __init__(self, env_prefix: str = ENV_PREFIX):
        self._env_prefix = env_prefix

    def load_toml(self, path: Path) -> Dict[str, Any]:
        """Load TOML configuration file"""
        if not path.exists():
            raise ConfigError(f"Configuration file not found: {path}")

        try:
            return tomllib.loads(path.read_text(encoding='utf-8'))
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Failed to parse TOML configuration {path}: {e}") from e

    def load_env(self) -> Dict[str, Any]:
        """Load configuration from environment variables"""
        config: Dict[str, Any] = {}

        for suffix, config_key in self.ENV_MAPPINGS.items():
            value = os.getenv(self._env_prefix + suffix)
            if not value:
                continue
            if "." in config_key:
                section, key = config_key.split(".", 1)
                config.setdefault(section, {})[key] = self._convert_value(value)
            else:
                config[config_key] = self._convert_value(value)

        return config

    def _convert_value(self, value: str) -> Any:
        """Convert string value to appropriate type"""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
            return False

        for convert in (int, float):
            try:
                return convert(value)
            except ValueError:
                pass

        return value

    def merge_configs(self, *configs: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge multiple configurations with priority.
        Later configs override earlier ones.
        """
        result: Dict[str, Any] = {}

        for config in configs:
            result = self._deep_merge(result, config)

        return result

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Deep merge two dictionaries, skipping None overrides"""
        result = base.copy()

        for key, value in override.items():
            if value is None:
                continue
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def load(
        self,
        toml_path: Optional[Path] = None,
        cli_overrides: Optional[Dict[str, Any]] = None,
        use_env: bool = True,
    ) -> Settings:
        """
        Load settings with priority: CLI > env > TOML > defaults

        Args:
            toml_path: Path to TOML configuration file; the default path is
                used only when it exists
            cli_overrides: CLI parameter overrides
            use_env: Whether to load from environment variables

        Returns:
            Resolved settings
        """
        configs = []

        if toml_path is not None:
            configs.append(self.load_toml(Path(toml_path).expanduser()))
        else:
            default_path = Path(DEFAULT_CONFIG_PATH).expanduser()
            if default_path.exists():
                configs.append(self.load_toml(default_path))

        if use_env:
            env_config = self.load_env()
            if env_config:
                configs.append(env_config)

        if cli_overrides:
            configs.append(cli_overrides)

        return Settings.from_dict(self.merge_configs(*configs))
