"""
Log record data structure

Records are immutable. Pipeline stages that need to change a field build a
new record with dataclasses.replace() so one sink never observes another
sink's edits.
"""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Mapping, Optional, Union

Metadata = Union[None, str, Mapping[str, Any]]


def coerce_metadata(value: Any) -> Metadata:
    """
    Normalize an arbitrary metadata value.

    None, strings and mappings pass through; anything else becomes its
    string form.
    """
    if value is None or isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return dict(value)
    return str(value)


@dataclass(frozen=True)
class Record:
    """
    A single log record.

    ``timestamp`` stays None until the timestamp stage of a pipeline fills
    it in.
    """

    level: str
    message: str
    metadata: Metadata = None
    timestamp: Optional[datetime] = None
    service: str = ""
    prefix: Optional[str] = None

    def __post_init__(self):
        """Normalize fields after initialization."""
        if not isinstance(self.level, str):
            raise TypeError("level must be a level name string")
        object.__setattr__(self, "level", self.level.lower())
        if not isinstance(self.message, str):
            object.__setattr__(self, "message", str(self.message))
        object.__setattr__(self, "metadata", coerce_metadata(self.metadata))

    @property
    def metadata_kind(self) -> str:
        """Tag of the metadata variant: 'none', 'text' or 'mapping'."""
        if self.metadata is None:
            return "none"
        if isinstance(self.metadata, str):
            return "text"
        return "mapping"

    def with_timestamp(self, timestamp: datetime) -> "Record":
        """Return a copy carrying the given timestamp."""
        return replace(self, timestamp=timestamp)

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert record to dictionary.

        Returns:
            Dictionary representation
        """
        data: Dict[str, Any] = {
            "level": self.level,
            "message": self.message,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }
        if self.service:
            data["service"] = self.service
        if self.prefix:
            data["prefix"] = self.prefix
        if self.metadata is not None:
            data["meta"] = self.metadata
        return data

    def __str__(self) -> str:
        stamp = (
            self.timestamp.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
            if self.timestamp else "-"
        )
        return f"[{stamp}] [{self.level.upper():8}] {self.message}"
