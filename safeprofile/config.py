from __future__ import annotations

"""
Analysis configuration: which profile and rules are enabled, and how files are parsed.

The profile supplies the rules (currently a built-in table). Parse settings
come from defaults plus two environment variables:

- SAFEPROFILE_CLANG_ARGS: extra arguments appended to every parse
- SAFEPROFILE_LIBCLANG: path to the libclang shared library (read by parser.py)
"""

import os
import shlex
from dataclasses import dataclass, field
from typing import Sequence

from safeprofile.compile_commands import DEFAULT_STD_VERSION
from safeprofile.profile import DEFAULT_PROFILE, Rule, load_profile

CLANG_ARGS_ENV = "SAFEPROFILE_CLANG_ARGS"


def _env_clang_args() -> list[str]:
    extra = os.environ.get(CLANG_ARGS_ENV)
    return shlex.split(extra) if extra else []


@dataclass
class Config:
    """
    Analysis configuration.

    ``default_std`` applies to files without a compilation database entry;
    ``extra_args`` are appended after the resolved flags for every file.
    """

    profile: str = DEFAULT_PROFILE
    rules: Sequence[Rule] = field(default_factory=list)
    default_std: str = DEFAULT_STD_VERSION
    extra_args: Sequence[str] = field(default_factory=list)


def get_default_config(profile: str = DEFAULT_PROFILE) -> Config:
    """
    Return the configuration for a built-in profile.

    Raises:
        UnknownProfileError: if the profile is not built in.
    """
    return Config(
        profile=profile,
        rules=load_profile(profile),
        extra_args=_env_clang_args(),
    )


def get_enabled_rules(config: Config | None = None) -> Sequence[Rule]:
    """Return the rules of the given config (or the default config)."""
    if config is None:
        config = get_default_config()
    return config.rules
