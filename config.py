"""
Padel Ladder Configuration

Centralized settings, paths, and constants for the application.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional
from dataclasses import dataclass
import appdirs


# Application info
APP_NAME = "PadelLadder"
APP_AUTHOR = "PadelLadder"
APP_VERSION = "1.0.0"


@dataclass(frozen=True)
class Paths:
    """Application paths."""
    # Data directory (stores database)
    data_dir: Path = Path(appdirs.user_data_dir(APP_NAME, APP_AUTHOR))

    # Config directory (stores user preferences)
    config_dir: Path = Path(appdirs.user_config_dir(APP_NAME, APP_AUTHOR))

    # Log directory
    log_dir: Path = Path(appdirs.user_log_dir(APP_NAME, APP_AUTHOR))

    @property
    def database(self) -> Path:
        return self.data_dir / "padel.db"

    @property
    def log_file(self) -> Path:
        return self.log_dir / "padel.log"

    @property
    def exports(self) -> Path:
        return self.data_dir / "exports"

    def ensure_directories(self) -> None:
        """Create all required directories."""
        for dir_path in [self.data_dir, self.config_dir, self.log_dir, self.exports]:
            dir_path.mkdir(parents=True, exist_ok=True)


@dataclass(frozen=True)
class TournamentSettings:
    """Fixed tournament shape shared by both formats."""
    # Rounds per tournament
    round_count: int = 4

    # Players per match (two teams of two)
    players_per_match: int = 4

    # Valid score range once both sides are known
    min_score: int = 0
    max_score: int = 10

    # Court ladder, top to bottom
    court_names: tuple[str, ...] = ("Padel Arenas", "Coolbet", "Lux Express", "3p Logistics")

    # Americano groups, mapped 1:1 onto court_names
    group_colors: tuple[str, ...] = ("green", "blue", "yellow", "pink")

    # Court label and color tag of the Americano cross-group round
    mix_round: int = 3
    mix_court: str = "Mix Round"
    mix_color: str = "mix"

    # GameScore multiplier: score dominates, rating breaks ties
    game_score_weight: int = 100


@dataclass(frozen=True)
class LogSettings:
    """Logging settings."""
    level: int = logging.INFO
    fmt: str = "%(asctime)s | %(levelname)s | %(name)s | %(funcName)s | %(message)s"
    max_bytes: int = 1_000_000
    backup_count: int = 3


# Singleton instances
PATHS = Paths()
TOURNAMENT_SETTINGS = TournamentSettings()
LOG_SETTINGS = LogSettings()


def setup_logging(log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure the root logger with a rotating file handler and a console handler.

    Args:
        log_file: Override for the log file location

    Returns:
        The configured root logger
    """
    root = logging.getLogger()
    root.setLevel(LOG_SETTINGS.level)
    # Remove existing handlers to avoid duplicates on re-init
    for handler in list(root.handlers):
        root.removeHandler(handler)

    formatter = logging.Formatter(LOG_SETTINGS.fmt)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root.addHandler(console_handler)

    log_file = log_file or PATHS.log_file
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=LOG_SETTINGS.max_bytes,
            backupCount=LOG_SETTINGS.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        root.warning("File logging disabled: %s", e)
    else:
        file_handler.setFormatter(formatter)
        root.addHandler(file_handler)

    return root


def init_config() -> None:
    """Initialize configuration, create required directories and set up logging."""
    PATHS.ensure_directories()
    setup_logging()
