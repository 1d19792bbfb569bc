"""
Registry configuration

The deployment mode is handed in by the caller; nothing here reads the
process environment.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Union

from scribe_module.sinks.rotating_file_sink import RotationPolicy


class Mode(str, Enum):
    """Deployment mode selecting the default sink set."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def from_string(cls, value: str) -> "Mode":
        """
        Convert string to Mode.

        Args:
            value: Mode name (case-insensitive)

        Raises:
            ValueError: If value is not a known mode
        """
        normalized = str(value).strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        raise ValueError(f"Invalid mode: {value}")


@dataclass
class RegistryConfig:
    """
    Configuration shared by every logger a registry builds.
    """

    # Sink selection
    mode: Union[Mode, str] = Mode.DEVELOPMENT

    # File settings (production)
    log_directory: Path = Path("logs")
    rotation: RotationPolicy = field(default_factory=RotationPolicy)

    # Dispatch settings
    async_mode: bool = True
    queue_size: int = 10000

    # Console settings (development)
    colored_output: bool = True

    # Seconds between two reports of the same degraded sink
    degraded_report_interval: float = 60.0

    # Merged into every record's mapping metadata
    default_metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not isinstance(self.mode, Mode):
            self.mode = Mode.from_string(self.mode)
        if self.queue_size <= 0:
            raise ValueError("queue_size must be positive")
        if self.degraded_report_interval <= 0:
            raise ValueError("degraded_report_interval must be positive")

        # Convert log_directory to Path if it's a string
        if isinstance(self.log_directory, str):
            self.log_directory = Path(self.log_directory)

    @property
    def is_production(self) -> bool:
        return self.mode is Mode.PRODUCTION

    @classmethod
    def default(cls) -> "RegistryConfig":
        """Create default configuration."""
        return cls()

    @classmethod
    def development_config(cls) -> "RegistryConfig":
        """Console and broadcast sinks, colored output."""
        return cls(mode=Mode.DEVELOPMENT, colored_output=True)

    @classmethod
    def production_config(cls, log_directory: Union[str, Path] = "logs") -> "RegistryConfig":
        """Rotating JSON file streams per service."""
        return cls(
            mode=Mode.PRODUCTION,
            log_directory=Path(log_directory),
            colored_output=False,
        )

    @classmethod
    def test_config(cls) -> "RegistryConfig":
        """Synchronous dispatch for deterministic tests."""
        return cls(async_mode=False, colored_output=False)
