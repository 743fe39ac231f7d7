"""Configuration loading and management.

This module provides unified configuration management with:
- Type-safe configuration classes using dataclasses
- Environment variable substitution
- Single source of truth for all components
"""

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_WELCOME_MESSAGE = "AR同期サーバーへようこそ！"


# ============================================================
# Configuration Data Classes
# ============================================================

@dataclass
class CorsConfig:
    """CORS configuration."""
    allow_origins: List[str] = field(default_factory=lambda: ["*"])
    allow_credentials: bool = True
    allow_methods: List[str] = field(default_factory=lambda: ["*"])
    allow_headers: List[str] = field(default_factory=lambda: ["*"])


@dataclass
class ServerConfig:
    """Cue server (WebSocket + liveness) listener configuration."""
    host: str = "0.0.0.0"
    port: int = 8080
    cors: CorsConfig = field(default_factory=CorsConfig)

    @classmethod
    def from_dict(cls, data: dict) -> "ServerConfig":
        """Create ServerConfig from dictionary."""
        cors_data = data.get("cors", {})
        return cls(
            host=data.get("host", "0.0.0.0"),
            port=data.get("port", 8080),
            cors=CorsConfig(**cors_data) if cors_data else CorsConfig(),
        )


@dataclass
class BroadcastConfig:
    """Periodic cue broadcast configuration."""
    enabled: bool = True
    interval_ms: int = 5000
    target_offset_ms: int = 1000   # targetTimestamp = currentTimestamp + offset
    duration_ms: int = 1000        # Effect display duration sent to clients
    # Per-client send deadline; a stalled client is skipped for that cue
    send_timeout_ms: Optional[int] = 10000
    # Indexed by counter % len(palette)
    palette: List[str] = field(
        default_factory=lambda: ["#FF0000", "#00FF00", "#0000FF"]
    )
    default_effect_id: Any = 0
    welcome_message: str = DEFAULT_WELCOME_MESSAGE


@dataclass
class StaticConfig:
    """Static front-end listener configuration."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 3000
    directory: str = "public"


@dataclass
class AppSettings:
    """Application-level settings."""
    name: str = "cuesync"
    version: str = "0.1.0"
    log_level: str = "INFO"


@dataclass
class AppConfig:
    """Main application configuration container.

    This is the single source of truth for all configuration.
    Create once at startup and inject into all components.

    Example:
        >>> config = AppConfig.from_yaml("config/settings.yaml")
        >>> app = create_app(config)
    """
    app: AppSettings = field(default_factory=AppSettings)
    server: ServerConfig = field(default_factory=ServerConfig)
    broadcast: BroadcastConfig = field(default_factory=BroadcastConfig)
    static: StaticConfig = field(default_factory=StaticConfig)

    # Path to the config file (for reference/logging)
    _config_path: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, data: dict, config_path: Optional[str] = None) -> "AppConfig":
        """Create AppConfig from dictionary.

        Args:
            data: Configuration dictionary.
            config_path: Optional path for logging purposes.

        Returns:
            Populated AppConfig instance.
        """
        app_data = data.get("app", {})
        server_data = data.get("server", {})
        broadcast_data = data.get("broadcast", {})
        static_data = data.get("static", {})

        return cls(
            app=AppSettings(**app_data),
            server=ServerConfig.from_dict(server_data),
            broadcast=BroadcastConfig(**broadcast_data),
            static=StaticConfig(**static_data),
            _config_path=config_path,
        )

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """Load configuration from YAML file.

        Args:
            config_path: Path to YAML configuration file.

        Returns:
            Populated AppConfig instance.

        Raises:
            FileNotFoundError: If config file not found.
            yaml.YAMLError: If YAML parsing fails.
        """
        path = Path(config_path)

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(path, encoding="utf-8") as f:
            content = f.read()

        # Substitute environment variables
        content = _substitute_env_vars(content)

        data = yaml.safe_load(content) or {}

        logger.info(f"Loaded configuration from {config_path}")
        return cls.from_dict(data, config_path=str(path.absolute()))


# ============================================================
# Helper Functions
# ============================================================

def _substitute_env_vars(content: str) -> str:
    """Substitute ${VAR_NAME} patterns with environment variable values.

    Args:
        content: String content with potential ${VAR} patterns.

    Returns:
        String with environment variables substituted.
    """
    pattern = r'\$\{([^}]+)\}'

    def replacer(match):
        var_name = match.group(1)
        value = os.environ.get(var_name, "")
        if not value:
            logger.warning(f"Environment variable not set: {var_name}")
        return value

    return re.sub(pattern, replacer, content)
