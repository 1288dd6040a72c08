#!/usr/bin/env python3
"""
Diversion Commit Notifier - Main Entry Point
Watches a Diversion repository and announces new commits on Discord
"""

import sys
import asyncio
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from diversion_notifier import __version__
from diversion_notifier.config.settings import DiversionSettings, Settings, load_settings
from diversion_notifier.connectors.diversion import DiversionConnector
from diversion_notifier.core.errors import ConfigurationError, NotifierError
from diversion_notifier.core.formatter import format_commit_status
from diversion_notifier.core.logging import setup_logging


console = Console()


def _settings_or_exit(ctx: click.Context, settings_cls=Settings, **overrides):
    """Load settings, exiting with status 1 when configuration is incomplete"""
    try:
        settings = load_settings(settings_cls, **overrides)
    except ConfigurationError as e:
        for field in e.missing:
            console.print(f"[red]Missing required environment variable: {field}[/red]")
        for field in e.invalid:
            console.print(f"[red]Invalid value for environment variable: {field}[/red]")
        console.print(f"[red]{escape(str(e))}[/red]")
        sys.exit(1)

    if ctx.obj.get('debug'):
        settings.DEBUG_MODE = True
        settings.LOG_LEVEL = 'DEBUG'

    setup_logging(settings.LOG_LEVEL, settings.LOG_FILE)
    return settings


@click.group()
@click.version_option(__version__)
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx: click.Context, debug: bool):
    """Diversion Commit Notifier - commit announcements for Discord"""
    ctx.ensure_object(dict)
    ctx.obj['debug'] = debug
    if debug:
        console.print("[yellow]Debug mode enabled[/yellow]")


@cli.command()
@click.option('--port', type=int, help='Port for the health server')
@click.option('--interval', type=int, help='Poll interval in minutes')
@click.pass_context
def run(ctx: click.Context, port: Optional[int], interval: Optional[int]):
    """Start the bot, the poll schedule and the health server"""
    from diversion_notifier.service import log_configuration, run_service

    overrides = {}
    if port is not None:
        overrides['PORT'] = port
    if interval is not None:
        overrides['POLL_INTERVAL_MINUTES'] = interval

    settings = _settings_or_exit(ctx, **overrides)
    log_configuration(settings)

    try:
        exit_code = asyncio.run(run_service(settings))
    except KeyboardInterrupt:
        console.print("\n[yellow]Shutting down[/yellow]")
        exit_code = 0

    sys.exit(exit_code)


@cli.command('check-api')
@click.pass_context
def check_api(ctx: click.Context):
    """Probe the Diversion API with the configured bearer token"""
    settings = _settings_or_exit(ctx, DiversionSettings)
    connector = DiversionConnector(settings.get_service_config('diversion'))

    with console.status("Checking Diversion API..."):
        result = asyncio.run(connector.check_health())

    table = Table(title="Diversion API Health")
    table.add_column("Endpoint", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Response Time", style="yellow")
    table.add_column("Details", style="white")

    status = "✅ UP" if result['healthy'] else "❌ DOWN"
    response_time = f"{result.get('response_time', 0):.0f}ms"
    table.add_row(settings.diversion_api_url, status, response_time, result.get('message', ''))
    console.print(table)

    if not result['healthy']:
        body = result.get('details', {}).get('body')
        if body:
            console.print(f"[dim]Response: {escape(body)}[/dim]")
        sys.exit(1)


@cli.command()
@click.pass_context
def latest(ctx: click.Context):
    """Print the latest commit without posting it"""
    settings = _settings_or_exit(ctx, DiversionSettings)
    connector = DiversionConnector(settings.get_service_config('diversion'))

    try:
        with console.status("Fetching latest commit..."):
            commit = asyncio.run(connector.get_latest_commit())
    except NotifierError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        sys.exit(1)

    if commit is None:
        console.print("[yellow]No commits found in the repository.[/yellow]")
        return

    console.print(format_commit_status(commit), highlight=False, markup=False)


@cli.command()
@click.pass_context
def info(ctx: click.Context):
    """Display bot configuration"""
    settings = _settings_or_exit(ctx)

    table = Table(title="Diversion Commit Notifier Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="white")

    table.add_row("Version", __version__)
    for name, value in settings.mask_secrets().items():
        table.add_row(name, value)

    console.print(table)


if __name__ == '__main__':
    cli()
