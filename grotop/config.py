"""Runtime settings, read from the environment (and a ``.env`` file if present)."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

DEFAULT_MAX_ENUMERATION = 200_000
DEFAULT_MAX_SECTION_SIZE = 2


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value < 0:
        raise ValueError(f"{name} must be non-negative, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    """Budgets for the finite evaluation of universally quantified statements.

    max_enumeration: upper bound on candidates any single enumeration may visit
        (subsets, matching families, presheaves, fixed points).
    max_section_size: default bound on |P(X)| for ``enumerate_presheaves``.
    """

    max_enumeration: int = DEFAULT_MAX_ENUMERATION
    max_section_size: int = DEFAULT_MAX_SECTION_SIZE

    @classmethod
    def from_env(cls) -> Settings:
        load_dotenv()
        return cls(
            max_enumeration=_int_env("GROTOP_MAX_ENUMERATION", DEFAULT_MAX_ENUMERATION),
            max_section_size=_int_env("GROTOP_MAX_SECTION_SIZE", DEFAULT_MAX_SECTION_SIZE),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, loaded from the environment on first use."""
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def set_settings(settings: Settings | None) -> None:
    """Override (or with ``None``, reset) the process-wide settings."""
    global _settings
    _settings = settings
