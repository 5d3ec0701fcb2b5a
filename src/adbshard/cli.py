"""adbshard CLI: top-level command group."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

import click
import yaml

from adbshard import __version__
from adbshard.bridge.adb import AdbBridge
from adbshard.config import load_config, validate_config
from adbshard.errors import (
    ERROR_CODE_NO_PARAMETERS,
    AdbShardError,
    NoDevicesError,
    NoTestsError,
    ShardConfigurationError,
)
from adbshard.parsing.instrumentation import parse_instrumentation_output
from adbshard.pipeline import ShardRequest, build_shards
from adbshard.reporters.terminal import console, reporter
from adbshard.sharding.filter import filter_tests
from adbshard.sharding.serializer import serialize_shard
from adbshard.sharding.splitter import select_shard
from adbshard.telemetry.sentry_integration import init_sentry, start_span
from adbshard.utils.log import configure_logging
from adbshard.utils.process import ProcessError

if TYPE_CHECKING:
    from collections.abc import Callable

    from adbshard.bridge.base import DeviceBridge
    from adbshard.config import ShardConfig
    from adbshard.models.instrumentation import Device

logger = logging.getLogger(__name__)

# Masking thresholds
_MIN_MASKED_VALUE_LENGTH = 8


class _ParameterCheckedCommand(click.Command):
    """Command whose usage errors exit with ``ERROR_CODE_NO_PARAMETERS``.

    Click exits with 2 on usage errors, which would collide with
    ``ERROR_CODE_NO_TESTS``.
    """

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        try:
            return super().parse_args(ctx, args)
        except click.UsageError as exc:
            exc.exit_code = ERROR_CODE_NO_PARAMETERS
            raise


def _common_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach ``--config``, ``--timeout`` and ``--debug`` to a command."""
    func = click.option(
        "--debug",
        is_flag=True,
        help="Log every step of the run to stderr.",
    )(func)
    func = click.option(
        "--timeout",
        type=click.FloatRange(min=0, min_open=True),
        default=None,
        help="Timeout in seconds for each adb invocation (overrides adb.timeout).",
    )(func)
    return click.option(
        "--config",
        "config_path",
        type=click.Path(exists=True, resolve_path=True),
        default=None,
        help="Path to .adbshard.yml or the directory holding it.",
    )(func)


def _load_runtime_config(
    config_path: str | None, *, debug: bool, runner: str | None = None
) -> ShardConfig:
    """Configure logging, load and validate configuration, start telemetry.

    A *runner* given on the command line replaces ``instrumentation.runner``
    before validation, so it is checked like the file value.
    """
    configure_logging(debug=debug, console=console)
    try:
        config = load_config(config_path)
    except (yaml.YAMLError, ValueError) as exc:
        raise ShardConfigurationError(f"Failed to load configuration: {exc}") from exc

    if runner is not None:
        config.instrumentation.runner = runner
    errors = validate_config(config)
    if errors:
        raise ShardConfigurationError("Invalid configuration: " + "; ".join(errors))

    init_sentry(config.sentry)
    return config


def _resolve_filter(filter_text: str | None, config: ShardConfig) -> str:
    """Return the command-line filter, or the configured one when none was given.

    An explicit empty filter keeps every test even if the file sets one.
    """
    return config.sharding.filter if filter_text is None else filter_text


def _create_bridge(config: ShardConfig, timeout: float | None = None) -> DeviceBridge:
    """Build the device bridge for this run."""
    return AdbBridge(
        config.adb.path,
        timeout=timeout or config.adb.timeout,
        reinstall=config.install.reinstall,
    )


def _fail(ctx: click.Context, error: AdbShardError) -> None:
    """Report *error* on stderr and exit with its code."""
    reporter.print_error(error.message)
    if isinstance(error, ShardConfigurationError):
        click.echo(ctx.get_usage(), err=True)
    ctx.exit(error.exit_code)


async def _online_devices(bridge: DeviceBridge) -> list[Device]:
    """Return the online devices, or raise ``NoDevicesError`` if there are none."""
    try:
        devices = await bridge.list_devices()
    except ProcessError as exc:
        raise NoDevicesError(f"Could not list devices: {exc}") from exc
    if not devices:
        raise NoDevicesError("The list of devices is empty")
    return devices


async def _first_device(bridge: DeviceBridge) -> Device:
    devices = await _online_devices(bridge)
    logger.debug("Using device %s via %s", devices[0].serial, bridge.name)
    return devices[0]


async def _collect_instrumentation_output(
    bridge: DeviceBridge,
    *,
    runner: str,
    apks: tuple[str, ...] = (),
) -> str:
    """Install *apks* on the first device and return its dry-run output."""
    device = await _first_device(bridge)
    for apk in apks:
        with start_span("adbshard.install", apk):
            await bridge.install(device, apk)
    with start_span("adbshard.instrument", runner):
        return await bridge.run_instrumentation(device, runner)


def _config_to_dict(config: ShardConfig) -> dict[str, Any]:
    """Convert ShardConfig to dictionary for display."""
    result = asdict(config)
    result.pop("raw", None)
    return result


def _mask_sensitive_values(config_dict: dict[str, Any]) -> dict[str, Any]:
    """Mask the Sentry DSN in a configuration dict."""
    sentry = dict(config_dict.get("sentry", {}))
    dsn = sentry.get("dsn")
    if isinstance(dsn, str) and dsn:
        if len(dsn) > _MIN_MASKED_VALUE_LENGTH:
            sentry["dsn"] = f"{dsn[:4]}...{dsn[-4:]}"
        else:
            sentry["dsn"] = "***"
    return {**config_dict, "sentry": sentry}


@click.group()
@click.version_option(version=__version__, prog_name="adbshard")
def cli() -> None:
    """adbshard: split Android UI tests into reproducible shards."""


@cli.command("shard", cls=_ParameterCheckedCommand)
@click.argument("app_package")
@click.argument("apk_path")
@click.argument("test_apk_path")
@click.argument("shards_number", type=click.IntRange(min=1))
@click.argument("shard_index", type=int)
@click.option(
    "--filter",
    "filter_text",
    default=None,
    help="Keep only tests whose class#method contains this text (case-insensitive).",
)
@click.option(
    "--runner",
    default=None,
    help="Instrumentation runner class (overrides instrumentation.runner).",
)
@click.option(
    "--skip-install",
    is_flag=True,
    help="Do not install the APKs before listing tests.",
)
@_common_options
@click.pass_context
def shard(ctx: click.Context, **kwargs: Any) -> None:
    """Print the tests of one shard as a comma-separated list.

    Installs APK_PATH and TEST_APK_PATH on the first connected device, lists
    the UI tests of APP_PACKAGE with an instrumentation dry run, splits them
    into SHARDS_NUMBER shards and prints shard SHARD_INDEX (zero-based).

    Standard output carries only the shard; diagnostics go to stderr.

    Example:
      adbshard shard com.example.app app.apk app-androidTest.apk 4 0
    """
    app_package: str = kwargs["app_package"]
    debug: bool = kwargs["debug"]

    try:
        config = _load_runtime_config(
            kwargs.get("config_path"), debug=debug, runner=kwargs.get("runner")
        )
        filter_text: str = _resolve_filter(kwargs.get("filter_text"), config)
        request = ShardRequest(
            shard_count=kwargs["shards_number"],
            shard_index=kwargs["shard_index"],
            filter_text=filter_text,
        )
        request.validate()

        runner = config.instrumentation.runner_for(app_package)

        install = config.install.enabled and not kwargs["skip_install"]
        apks = (kwargs["apk_path"], kwargs["test_apk_path"]) if install else ()

        bridge = _create_bridge(config, kwargs.get("timeout"))
        with reporter.status(f"Listing UI tests of {app_package}..."):
            raw_output = asyncio.run(
                _collect_instrumentation_output(bridge, runner=runner, apks=apks)
            )

        with start_span("adbshard.shard", f"{request.shard_index}/{request.shard_count}"):
            tests = parse_instrumentation_output(raw_output)
            shards = build_shards(tests, request, logger=logger)
            selected = select_shard(shards, request.shard_index)
            output = serialize_shard(selected)
    except AdbShardError as exc:
        _fail(ctx, exc)
        return

    if debug:
        reporter.print_shards(shards, selected=selected.index)
    if not selected.tests:
        reporter.print_warning(f"Shard {selected.index} is empty")

    click.echo(output)


@cli.command("devices", cls=_ParameterCheckedCommand)
@_common_options
@click.pass_context
def devices(ctx: click.Context, **kwargs: Any) -> None:
    """List the online devices adb can reach."""
    try:
        config = _load_runtime_config(kwargs.get("config_path"), debug=kwargs["debug"])
        bridge = _create_bridge(config, kwargs.get("timeout"))
        found = asyncio.run(_online_devices(bridge))
    except AdbShardError as exc:
        _fail(ctx, exc)
        return

    reporter.print_devices(found)
    for device in found:
        click.echo(f"{device.serial}\t{device.status}")


@cli.command("tests", cls=_ParameterCheckedCommand)
@click.argument("app_package")
@click.option(
    "--filter",
    "filter_text",
    default=None,
    help="Keep only tests whose class#method contains this text (case-insensitive).",
)
@click.option(
    "--runner",
    default=None,
    help="Instrumentation runner class (overrides instrumentation.runner).",
)
@_common_options
@click.pass_context
def tests(ctx: click.Context, **kwargs: Any) -> None:
    """List the UI tests of APP_PACKAGE, one per line, without installing."""
    app_package: str = kwargs["app_package"]

    try:
        config = _load_runtime_config(
            kwargs.get("config_path"), debug=kwargs["debug"], runner=kwargs.get("runner")
        )
        bridge = _create_bridge(config, kwargs.get("timeout"))
        with reporter.status(f"Listing UI tests of {app_package}..."):
            raw_output = asyncio.run(
                _collect_instrumentation_output(
                    bridge, runner=config.instrumentation.runner_for(app_package)
                )
            )
        found = filter_tests(
            parse_instrumentation_output(raw_output),
            _resolve_filter(kwargs.get("filter_text"), config),
        )
        if not found:
            raise NoTestsError("The list of tests is empty")
    except AdbShardError as exc:
        _fail(ctx, exc)
        return

    reporter.print_info(f"{len(found)} tests")
    for test in found:
        click.echo(test.full_name)


@cli.group("config")
def config_group() -> None:
    """Inspect `.adbshard.yml` configuration."""


@config_group.command("show")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, resolve_path=True),
    default=None,
    help="Path to .adbshard.yml or the directory holding it.",
)
@click.option(
    "--json-output",
    "as_json",
    is_flag=True,
    help="Output as JSON instead of YAML.",
)
@click.option(
    "--no-mask",
    is_flag=True,
    help="Show the Sentry DSN unmasked.",
)
def config_show(config_path: str | None, *, as_json: bool, no_mask: bool) -> None:
    """Display the resolved configuration.

    Example:
      adbshard config show --json-output
    """
    try:
        config = load_config(config_path)
    except (yaml.YAMLError, ValueError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    config_dict = _config_to_dict(config)
    if not no_mask:
        config_dict = _mask_sensitive_values(config_dict)

    if as_json:
        click.echo(json.dumps(config_dict, indent=2))
    else:
        click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, resolve_path=True),
    default=None,
    help="Path to .adbshard.yml or the directory holding it.",
)
def config_validate(config_path: str | None) -> None:
    """Validate `.adbshard.yml` configuration.

    Example:
      adbshard config validate
    """
    try:
        config = load_config(config_path)
    except (yaml.YAMLError, ValueError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e

    errors = validate_config(config)
    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    raise click.Abort
