"""Command-line interface for backup mirror."""

import logging
import signal
import sys
from typing import Optional

import click

from .config.config_manager import ConfigManager, ServiceConfig
from .core.service import MirrorService, SERVICE_DESCRIPTION, SERVICE_DISPLAY_NAME
from .utils.formatters import format_duration, format_file_size
from .utils.log_sink import ArchivingFileHandler


def setup_logging(level: str, config: Optional[ServiceConfig] = None, console: bool = True):
    """Set up logging configuration."""
    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        raise ValueError(f'Invalid log level: {level}')

    # Create formatter
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    # Set up root logger
    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if console:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    # Activity log under logFilePath
    if config:
        try:
            file_handler = ArchivingFileHandler(
                config.log_dir,
                max_bytes=config.log_max_bytes,
                backup_count=config.log_backup_count
            )
            root_logger.addHandler(file_handler)
        except (OSError, ValueError) as e:
            click.echo(f"Warning: Could not set up file logging: {e}", err=True)


def _load_config(ctx) -> ServiceConfig:
    """Load configuration or exit with an error message."""
    try:
        return ConfigManager(ctx.obj.get('config_path')).load_config()
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"❌ Configuration error: {e}", err=True)
        sys.exit(1)


def _log_level(ctx, config: ServiceConfig) -> str:
    return ctx.obj.get('log_level') or config.log_level


@click.group()
@click.option('--config', '-c', 'config_path',
              help='Path to configuration file')
@click.option('--log-level', default=None,
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Logging level (overrides the configuration file)')
@click.pass_context
def cli(ctx, config_path: Optional[str], log_level: Optional[str]):
    """Backup Mirror - Periodically copy new backup files into a mirror location."""

    # Ensure context exists
    ctx.ensure_object(dict)

    ctx.obj['config_path'] = config_path
    ctx.obj['log_level'] = log_level


@cli.command()
@click.option('--quiet', '-q', is_flag=True, help='Log to the activity log file only')
@click.pass_context
def run(ctx, quiet: bool):
    """Run the mirror service in the foreground until stopped."""
    config = _load_config(ctx)
    setup_logging(_log_level(ctx, config), config, console=not quiet)
    logger = logging.getLogger(__name__)

    service = MirrorService(config)

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signum}, shutting down")
        service.stop()

    signal.signal(signal.SIGTERM, handle_signal)
    signal.signal(signal.SIGINT, handle_signal)

    service.start()
    try:
        while not service.wait(1.0):
            pass
    finally:
        service.stop()


@cli.command()
@click.pass_context
def mirror(ctx):
    """Copy new backup files once and exit."""
    config = _load_config(ctx)
    setup_logging(_log_level(ctx, config), config, console=False)

    service = MirrorService(config)
    result = service.run_once()

    if result is None:
        click.echo("❌ Source and destination folders must both be configured", err=True)
        sys.exit(1)

    if result.source_missing:
        click.echo(f"❌ Source folder does not exist: {result.source_root}", err=True)
        sys.exit(1)

    click.echo(f"📂 {result.source_root} -> {result.dest_root}")
    click.echo(f"  Copied: {len(result.copied)} ({format_file_size(result.bytes_copied)})")
    click.echo(f"  Already present: {len(result.skipped)}")
    click.echo(f"  Failed: {len(result.errors)}")

    for outcome in result.errors:
        click.echo(f"   • {outcome.source}: {outcome.error_message}")

    if result.errors:
        sys.exit(1)


@cli.command()
@click.pass_context
def validate_config(ctx):
    """Validate configuration file."""
    config = _load_config(ctx)

    click.echo("✅ Configuration loaded successfully")

    click.echo(f"\n📊 {SERVICE_DISPLAY_NAME}: {SERVICE_DESCRIPTION}")
    click.echo(f"   Config file: {config.config_path}")
    click.echo(f"   Source folder: {config.source_folder or 'Not configured'}")
    click.echo(f"   Destination folder: {config.destination_folder or 'Not configured'}")
    click.echo(f"   Log file: {config.log_file}")
    click.echo(f"   Interval: {format_duration(config.interval_seconds)} ({config.interval_ms} ms)")
    click.echo(f"   Log rotation: {format_file_size(config.log_max_bytes)}, "
               f"keeping {config.log_backup_count} archives")

    if config.config_errors:
        click.echo("\n⚠️  Configuration issues:")
        for error in config.config_errors:
            click.echo(f"     • {error}")


def main():
    """Main CLI entry point."""
    cli()


if __name__ == '__main__':
    main()
