"""Process-wide server settings."""

from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field


DEFAULT_STANDIN_NAMES = (
    "Bot Alice", "Bot Bob", "Bot Charlie", "Bot Diana", "Bot Eve",
    "Bot Frank", "Bot Grace", "Bot Henry", "Bot Iris", "Bot Jack",
    "Bot Kate", "Bot Leo", "Bot Mia", "Bot Noah", "Bot Olivia",
)


class PacingConfig(BaseModel):
    """Narration pacing delays, in seconds."""

    model_config = ConfigDict(extra="forbid")

    announce_delay: float = Field(default=3.0, ge=0)  # "close your eyes" -> first role
    inter_phase_delay: float = Field(default=2.0, ge=0)  # role closes -> next step
    synthetic_delay: float = Field(default=3.0, ge=0)  # stand-in-only role auto-completes
    reveal_delay: float = Field(default=3.0, ge=0)  # lovers reveal -> cupid closes


class ServerSettings(BaseModel):
    """Settings shared by every room in the process."""

    model_config = ConfigDict(extra="forbid")

    pacing: PacingConfig = Field(default_factory=PacingConfig)
    room_id_length: int = Field(default=6, ge=4, le=16)
    standin_names: tuple[str, ...] = DEFAULT_STANDIN_NAMES
    default_language: str = "en"
    log_level: str = "INFO"


def load_settings(path: Optional[Union[str, Path]] = None) -> ServerSettings:
    """Load settings from a YAML file, falling back to defaults.

    Args:
        path: YAML file to read. None or a missing file yields defaults.

    Returns:
        Validated ServerSettings. Unknown keys raise a pydantic
        ValidationError.
    """
    if path is None:
        return ServerSettings()
    path = Path(path)
    if not path.exists():
        return ServerSettings()
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    return ServerSettings.model_validate(data)
