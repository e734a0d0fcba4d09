"""Configuration loading utilities."""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

from omegaconf import OmegaConf


@dataclass
class EngineConfig:
    """Settings for launching and talking to an engine.

    A YAML file may hold these keys at the top level or under an ``engine:``
    section.
    """

    path: str | None = None
    args: list[str] = field(default_factory=list)
    handshake_timeout: float = 1.0  # Seconds to wait for uciok
    poll_interval: float = 0.01  # Backoff after end-of-stream reads
    read_chunk_size: int = 1024
    max_buffer_size: int | None = 1 << 20  # Longest unterminated line accepted
    kill_grace: float = 1.0  # Seconds to reap the process after SIGKILL
    quit_grace: float = 1.0  # Seconds to let the engine exit after "quit"

    def __post_init__(self) -> None:
        """Validate."""
        for name in ("handshake_timeout", "poll_interval", "kill_grace", "quit_grace"):
            if getattr(self, name) < 0:
                msg = f"{name} must be non-negative, got {getattr(self, name)}"
                raise ValueError(msg)
        if self.read_chunk_size <= 0:
            msg = f"read_chunk_size must be positive, got {self.read_chunk_size}"
            raise ValueError(msg)
        if self.max_buffer_size is not None and self.max_buffer_size <= 0:
            msg = f"max_buffer_size must be positive, got {self.max_buffer_size}"
            raise ValueError(msg)
        self.args = [str(arg) for arg in self.args]


def save_config(config: EngineConfig, path: str | Path) -> None:
    """Write an EngineConfig to YAML under an ``engine:`` section.

    The file can be read back with :func:`load_engine_config`.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    OmegaConf.save(OmegaConf.create({"engine": asdict(config)}), path)


def engine_config_from_dict(data: dict[str, Any]) -> EngineConfig:
    """Create an EngineConfig from a dictionary, rejecting unknown keys."""
    known = {f.name for f in fields(EngineConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        msg = f"Unknown engine config keys: {', '.join(unknown)}"
        raise ValueError(msg)
    return EngineConfig(**data)


def load_engine_config(config_path: str | Path, overrides: list[str] | None = None) -> EngineConfig:
    """Load an EngineConfig from a YAML file.

    Args:
        config_path: Path to the YAML configuration file.
        overrides: Optional dotlist overrides merged over the file
            (e.g., ["engine.handshake_timeout=5"]).

    Returns:
        The validated engine configuration.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        ValueError: If the file holds unknown keys or invalid values.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        msg = f"Config file not found: {config_path}"
        raise FileNotFoundError(msg)

    config = OmegaConf.load(config_path)
    if overrides:
        config = OmegaConf.merge(config, OmegaConf.from_dotlist(overrides))

    section = config.engine if "engine" in config else config
    data = OmegaConf.to_container(section, resolve=True)
    return engine_config_from_dict(data or {})
