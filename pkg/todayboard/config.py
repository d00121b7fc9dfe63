# todayboard: configuration
# Override defaults via a YAML file and TODAYBOARD_* environment variables.

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

import yaml

from .errors import ValidationError
from .schema import DEFAULT_COLUMNS, TERMINAL_COLUMN, Workflow

logger = logging.getLogger(__name__)

CONFIG_PATH = Path.home() / ".config" / "todayboard" / "config.yaml"


@dataclass
class BoardConfig:
    """Runtime configuration for the board and its HTTP server."""

    # Storage
    db_path: str = "~/.local/share/todayboard/board.db"

    # Workflow
    columns: List[str] = field(default_factory=lambda: list(DEFAULT_COLUMNS))
    terminal_column: str = TERMINAL_COLUMN

    # Server
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"

    # Insert sample cards when the board is empty
    seed_sample_data: bool = False

    def workflow(self) -> Workflow:
        return Workflow(columns=tuple(self.columns), terminal=self.terminal_column)

    def resolve_paths(self) -> None:
        """Expand ~ in the database path."""
        self.db_path = str(Path(self.db_path).expanduser())

    def apply_env(self) -> None:
        """Environment variables win over file values."""
        if os.environ.get("TODAYBOARD_DB"):
            self.db_path = os.environ["TODAYBOARD_DB"]
        if os.environ.get("TODAYBOARD_LOG_LEVEL"):
            self.log_level = os.environ["TODAYBOARD_LOG_LEVEL"]

    @classmethod
    def load(cls, path: Optional[str] = None) -> "BoardConfig":
        """Load config from YAML file, falling back to defaults."""
        if path is None:
            path = os.environ.get("TODAYBOARD_CONFIG")
        cfg_path = Path(path).expanduser() if path else CONFIG_PATH
        if cfg_path.exists():
            with open(cfg_path, "r") as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ValidationError(f"Invalid config file {cfg_path}: {e}") from e
            if not isinstance(data, dict):
                raise ValidationError(f"Config file {cfg_path} must contain a mapping")
            unknown = sorted(k for k in data if k not in cls.__dataclass_fields__)
            if unknown:
                logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")
            cfg = cls(**{k: v for k, v in data.items() if k in cls.__dataclass_fields__})
        else:
            cfg = cls()

        cfg.apply_env()
        cfg.resolve_paths()
        # Fail early on a broken workflow definition
        cfg.workflow()
        return cfg
