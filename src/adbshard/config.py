"""Configuration parsing from ``.adbshard.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".adbshard.yml"

DEFAULT_RUNNER = "androidx.test.runner.AndroidJUnitRunner"
DEFAULT_TEST_PACKAGE_SUFFIX = ".test"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_TRUTHY = {True, "true", "1", "yes"}


def _expand_placeholders(value: Any) -> Any:
    """Substitute ``${NAME}`` with the environment variable ``NAME``.

    Strings are expanded, mappings and lists are walked, and anything else is
    returned as is. Unset variables expand to an empty string with a warning.
    """
    if isinstance(value, str):

        def _lookup(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in os.environ:
                logger.warning("%s is referenced in %s but not set", name, CONFIG_FILE_NAME)
                return ""
            return os.environ[name]

        return _ENV_VAR_RE.sub(_lookup, value)
    if isinstance(value, dict):
        return {key: _expand_placeholders(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_expand_placeholders(item) for item in value]
    return value


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    """Return the mapping under *name*, or an empty dict if missing or malformed."""
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


@dataclass
class AdbConfig:
    """adb invocation settings."""

    path: str = "adb"
    """adb executable (name on PATH or absolute path)."""

    timeout: float = 60.0
    """Wall-clock timeout in seconds for each adb invocation."""


@dataclass
class InstrumentationConfig:
    """Instrumentation runner settings."""

    runner: str = DEFAULT_RUNNER
    """Instrumentation runner class."""

    test_package_suffix: str = DEFAULT_TEST_PACKAGE_SUFFIX
    """Suffix appended to the app package to get the test package."""

    def runner_for(self, app_package: str) -> str:
        """Return the ``package/runner`` component passed to ``am instrument``."""
        return f"{app_package}{self.test_package_suffix}/{self.runner}"


@dataclass
class ShardingConfig:
    """Defaults for the sharding pipeline."""

    filter: str = ""
    """Default substring filter (empty = keep every test)."""


@dataclass
class InstallConfig:
    """APK installation settings."""

    enabled: bool = True
    """Install the app and test APKs before listing tests."""

    reinstall: bool = True
    """Replace an already installed app (``adb install -r``)."""


@dataclass
class SentryConfig:
    """Opt-in crash and trace reporting."""

    enabled: bool = False
    """Nothing is reported unless this is true."""

    dsn: str = ""
    """Project DSN events are sent to."""

    traces_sample_rate: float = 0.0
    """Share of runs traced, from 0.0 (none) to 1.0 (all)."""

    environment: str = ""
    """Environment tag; ``ci`` or ``local`` is picked when empty."""


@dataclass
class ShardConfig:
    """Everything ``.adbshard.yml`` can set."""

    adb: AdbConfig = field(default_factory=AdbConfig)
    instrumentation: InstrumentationConfig = field(default_factory=InstrumentationConfig)
    sharding: ShardingConfig = field(default_factory=ShardingConfig)
    install: InstallConfig = field(default_factory=InstallConfig)
    sentry: SentryConfig = field(default_factory=SentryConfig)

    source: str = ""
    """File the values were read from; empty when only defaults apply."""

    raw: dict[str, Any] = field(default_factory=dict)
    """The parsed YAML after placeholder expansion."""


def _flag(value: Any) -> bool:
    """Interpret a YAML boolean or an environment string such as ``"yes"``."""
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY
    return value in _TRUTHY


def _number(value: Any, key: str) -> float:
    """Convert *value* to float, naming *key* in the error when it is not a number."""
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"{key} must be a number (got: {value!r})") from exc


def _parse_adb_config(raw: dict[str, Any]) -> AdbConfig:
    section = _section(raw, "adb")
    return AdbConfig(
        path=str(section.get("path", os.environ.get("ADBSHARD_ADB_PATH", "adb"))),
        timeout=_number(
            section.get("timeout", os.environ.get("ADBSHARD_ADB_TIMEOUT", 60.0)), "adb.timeout"
        ),
    )


def _parse_instrumentation_config(raw: dict[str, Any]) -> InstrumentationConfig:
    section = _section(raw, "instrumentation")
    return InstrumentationConfig(
        runner=str(section.get("runner", DEFAULT_RUNNER)),
        test_package_suffix=str(section.get("test_package_suffix", DEFAULT_TEST_PACKAGE_SUFFIX)),
    )


def _parse_sentry_config(raw: dict[str, Any]) -> SentryConfig:
    """Read the ``sentry`` section, falling back to ``ADBSHARD_SENTRY_*`` variables."""
    section = _section(raw, "sentry")
    env = os.environ
    return SentryConfig(
        enabled=_flag(section.get("enabled", env.get("ADBSHARD_SENTRY_ENABLED", False))),
        dsn=str(section.get("dsn", env.get("ADBSHARD_SENTRY_DSN", ""))),
        traces_sample_rate=_number(
            section.get("traces_sample_rate", env.get("ADBSHARD_SENTRY_TRACES_SAMPLE_RATE", 0.0)),
            "sentry.traces_sample_rate",
        ),
        environment=str(section.get("environment", "")),
    )


def _read_yaml(config_file: Path) -> dict[str, Any]:
    """Parse *config_file*; an empty or non-mapping document counts as no settings."""
    document = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    if not isinstance(document, dict):
        return {}
    return _expand_placeholders(document)


def load_config(path: str | Path | None = None) -> ShardConfig:
    """Load ``.adbshard.yml``.

    *path* may be the YAML file itself or the directory holding it; ``None``
    means the current directory. A missing file is not an error: defaults
    and ``ADBSHARD_*`` environment variables apply instead.

    Raises:
        yaml.YAMLError: If the file exists but is not valid YAML.
        ValueError: If a numeric setting is not a number.
    """
    target = Path(path) if path is not None else Path.cwd()
    config_file = target / CONFIG_FILE_NAME if target.is_dir() else target

    raw: dict[str, Any] = {}
    source = ""
    if config_file.is_file():
        raw = _read_yaml(config_file)
        source = str(config_file)
        logger.debug("Read settings from %s", config_file)

    sharding = _section(raw, "sharding")
    install = _section(raw, "install")

    return ShardConfig(
        adb=_parse_adb_config(raw),
        instrumentation=_parse_instrumentation_config(raw),
        sharding=ShardingConfig(filter=str(sharding.get("filter") or "")),
        install=InstallConfig(
            enabled=_flag(install.get("enabled", True)),
            reinstall=_flag(install.get("reinstall", True)),
        ),
        sentry=_parse_sentry_config(raw),
        source=source,
        raw=raw,
    )


def _validate_adb_config(adb: AdbConfig) -> list[str]:
    errors: list[str] = []
    if not adb.path:
        errors.append("adb.path must not be empty")
    if adb.timeout <= 0:
        errors.append(f"adb.timeout must be positive (got: {adb.timeout})")
    return errors


def _validate_instrumentation_config(instrumentation: InstrumentationConfig) -> list[str]:
    errors: list[str] = []
    if not instrumentation.runner:
        errors.append("instrumentation.runner must not be empty")
    elif "/" in instrumentation.runner:
        errors.append(
            "instrumentation.runner must be a class name without the package "
            f"(got: {instrumentation.runner})"
        )
    return errors


def _validate_sentry_config(sentry: SentryConfig) -> list[str]:
    errors: list[str] = []
    if sentry.enabled and not sentry.dsn:
        errors.append("sentry.dsn must be set when sentry.enabled is true")
    if not 0.0 <= sentry.traces_sample_rate <= 1.0:
        errors.append(
            f"sentry.traces_sample_rate must be within [0.0, 1.0] (got: {sentry.traces_sample_rate})"
        )
    return errors


def validate_config(config: ShardConfig) -> list[str]:
    """Check *config* for values that would break a run.

    Returns:
        One message per problem; an empty list means the configuration is usable.
    """
    return [
        *_validate_adb_config(config.adb),
        *_validate_instrumentation_config(config.instrumentation),
        *_validate_sentry_config(config.sentry),
    ]
