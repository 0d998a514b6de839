"""Settings loaded from ``dbschema.toml`` or ``[tool.dbschema]`` in pyproject."""

from pathlib import Path
from tomllib import load
from typing import TypedDict

from dbschema.conversion import DEFAULT_ORIGIN

CONFIG_FILE = "dbschema.toml"
PYPROJECT_FILE = "pyproject.toml"


class Settings(TypedDict):
    """Defaults for the command line interface."""

    database: str | None
    schema: str | None
    origin: str
    journal: str | None


def default_settings() -> Settings:
    """Return settings with every key at its default."""
    return {
        "database": None,
        "schema": None,
        "origin": DEFAULT_ORIGIN,
        "journal": None,
    }


def _read_table(path: Path) -> dict[str, object]:
    with path.open("rb") as f:
        document = load(f)
    if path.name == PYPROJECT_FILE:
        return document.get("tool", {}).get("dbschema", {})
    return document


def find_config(directory: Path) -> Path | None:
    """Return the settings file in ``directory``, preferring ``dbschema.toml``."""
    for name in (CONFIG_FILE, PYPROJECT_FILE):
        if (candidate := directory / name).is_file():
            return candidate
    return None


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from ``path``, or from the current directory.

    Unknown keys are ignored and missing keys keep their defaults.
    """
    settings = default_settings()
    path = path or find_config(Path.cwd())
    if path is None:
        return settings

    table = _read_table(path)
    for key in settings:
        if (value := table.get(key)) is not None:
            settings[key] = str(value)  # type: ignore[literal-required]
    return settings
