"""
CLI for hostgate-core.

Provides `hostgate config`, `hostgate permission` and `hostgate update` so the
permission engine and the update coordinator can be exercised from a terminal.
"""

import asyncio
import logging
import sys

import click

from . import __version__
from . import events
from .clock import LoopTickSource
from .clock import VirtualClock
from .config import HostConfig
from .config import dump_settings
from .config import load_settings
from .coordinator import CONSENT_PROMPT_TITLE
from .coordinator import INSTALL_PROMPT_TITLE
from .errors import ConfigurationError
from .host import HostContext
from .host import create_host
from .interfaces import ConfirmationChannel
from .interfaces import ConfirmationPrompt
from .models import CapabilityKind
from .models import MediaAccessStatus
from .models import PermissionRequest
from .models import UpdateState
from .permissions import PERMISSION_PROMPT_TITLE
from .permissions import PLATFORM_NOTICE_TITLE
from .probe import StaticCapabilityProbe
from .probe import select_capability_probe
from .ui import CLIConfirmationChannel
from .ui import ConsoleNotificationSink
from .ui import console

logger = logging.getLogger(__name__)

KIND_CHOICES = [kind.value for kind in CapabilityKind if kind is not CapabilityKind.OTHER]


class PresetConfirmationChannel:
    """Answers prompts whose title has a preset choice; asks the terminal otherwise."""

    def __init__(self, presets: dict[str, int], fallback: ConfirmationChannel):
        self.presets = presets
        self.fallback = fallback

    async def confirm(self, prompt: ConfirmationPrompt) -> int | None:
        if prompt.title in self.presets:
            choice = self.presets[prompt.title]
            console.print(f"[dim]{prompt.title}: {prompt.message} -> {prompt.buttons[choice]}[/dim]")
            return choice
        return await self.fallback.confirm(prompt)


class ReportingRelauncher:
    """Reports the relaunch instead of replacing the CLI process."""

    def __init__(self):
        self.requested = False

    def relaunch(self) -> None:
        self.requested = True
        console.print("[bold green]Relaunch requested[/bold green]")


def configure_logging(config: HostConfig, verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


@click.group()
@click.version_option(version=__version__, prog_name="hostgate")
@click.option("--verbose", "-v", is_flag=True, help="Log everything at DEBUG level")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """Hostgate - permission mediation and update lifecycle tools."""
    try:
        config = load_settings()
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    configure_logging(config, verbose)
    ctx.obj = config


@cli.command()
@click.pass_obj
def config(config: HostConfig) -> None:
    """Print the effective configuration as YAML."""
    click.echo(dump_settings(config), nl=False)


@cli.command()
@click.argument("kind", type=click.Choice(KIND_CHOICES))
@click.argument("origin")
@click.option("--deny-platform", is_flag=True, help="Pretend the OS blocks camera and microphone")
@click.option(
    "--answer",
    type=click.Choice(["allow", "deny"]),
    help="Answer the permission prompt without asking",
)
@click.pass_obj
def permission(config: HostConfig, kind: str, origin: str, deny_platform: bool, answer: str | None) -> None:
    """Evaluate one capability request.

    KIND is the capability being requested (media, notifications, ...)

    ORIGIN is the requesting origin, e.g. https://app.example.com

    Exits 0 when the request is allowed, 1 when it is denied.

    Examples:

        hostgate permission notifications https://app.example.com

        hostgate permission media https://app.example.com --deny-platform --answer allow
    """
    presets: dict[str, int] = {}
    if answer is not None:
        presets[PERMISSION_PROMPT_TITLE] = 0 if answer == "allow" else 1
        presets[PLATFORM_NOTICE_TITLE] = 0

    if deny_platform:
        probe = StaticCapabilityProbe({"camera": MediaAccessStatus.DENIED, "microphone": MediaAccessStatus.DENIED})
    else:
        probe = select_capability_probe()

    context = HostContext(
        notifications=ConsoleNotificationSink(),
        confirmation=PresetConfirmationChannel(presets, CLIConfirmationChannel()),
        probe=probe,
        relauncher=ReportingRelauncher(),
        config=config,
    )

    async def _run():
        host = create_host(context, packaged=False)
        try:
            decision = await host.evaluate(PermissionRequest.from_host(kind, origin))
            await host.drain()
            return decision
        finally:
            await host.close()

    try:
        decision = asyncio.run(_run())
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    if decision.allow:
        click.secho(f"allowed ({decision.reason.value})", fg="green", bold=True)
    else:
        click.secho(f"denied ({decision.reason.value})", fg="red", bold=True)
    sys.exit(0 if decision.allow else 1)


@cli.command()
@click.option("--yes/--no", "accept", default=None, help="Answer the download prompt without asking")
@click.option("--install/--no-install", "install", default=None, help="Answer the restart prompt without asking")
@click.option("--fast", is_flag=True, help="Run the simulated timeline on a virtual clock")
@click.pass_obj
def update(config: HostConfig, accept: bool | None, install: bool | None, fast: bool) -> None:
    """Run one update check through to its end.

    Development runs use the simulated driver, which offers the configured
    version and reports download progress in steps.

    Examples:

        hostgate update --fast --yes --install

        hostgate update --no
    """
    presets: dict[str, int] = {}
    if accept is not None:
        presets[CONSENT_PROMPT_TITLE] = 0 if accept else 1
    if install is not None:
        presets[INSTALL_PROMPT_TITLE] = 0 if install else 1

    clock = VirtualClock() if fast else LoopTickSource()
    context = HostContext(
        notifications=ConsoleNotificationSink(),
        confirmation=PresetConfirmationChannel(presets, CLIConfirmationChannel()),
        clock=clock,
        relauncher=ReportingRelauncher(),
        config=config,
    )

    try:
        session = asyncio.run(_run_update(context, clock if fast else None))
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e

    sys.exit(1 if session.last_error else 0)


async def _run_update(context: HostContext, virtual_clock: VirtualClock | None):
    host = create_host(context, packaged=False)
    finished = asyncio.Event()

    async def on_state(event: str, data: dict) -> None:
        if data["to"] in (UpdateState.IDLE.value, UpdateState.INSTALLING.value):
            finished.set()

    unregister = context.hooks.register(events.UPDATE_STATE, on_state, name="cli-finish")
    try:
        host.check_for_update()
        while not finished.is_set():
            if virtual_clock is None:
                await finished.wait()
                break
            await host.drain()
            await asyncio.sleep(0)
            if finished.is_set() or virtual_clock.next_deadline() is None:
                break
            virtual_clock.advance_to_next()
        await host.drain()
        return host.updates.session
    finally:
        unregister()
        await host.close()


def main() -> None:
    """Entry point for the hostgate command."""
    cli()


if __name__ == "__main__":
    main()
