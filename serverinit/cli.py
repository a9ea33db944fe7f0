"""
CLI module

Command line interface.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional

import click
import toml
import yaml
from loguru import logger

from serverinit import __version__
from serverinit.exceptions import (
    ConfigParseError,
    ServerInitError,
    VerificationError,
)
from serverinit.logger import setup_logger
from serverinit.models import ServerInitConfig
from serverinit.orchestrator import ServerInitOrchestrator
from serverinit.steps import build_steps


EXIT_FAILURE = 1
EXIT_VERIFICATION_FAILED = 3


class ProvisionFailed(click.ClickException):
    exit_code = EXIT_FAILURE


class VerificationFailed(click.ClickException):
    exit_code = EXIT_VERIFICATION_FAILED


def load_config(config_path: str) -> dict:
    """Load a config file"""
    path = Path(config_path)

    if not path.exists():
        raise click.ClickException(f"Config file not found: {config_path}")

    suffix = path.suffix.lower()

    try:
        if suffix == ".toml":
            return toml.load(config_path)
        elif suffix == ".json":
            return json.loads(path.read_text())
        elif suffix in (".yaml", ".yml"):
            return yaml.safe_load(path.read_text()) or {}
    except (toml.TomlDecodeError, json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigParseError(
            f"Cannot parse {config_path}: {e}", context={"path": config_path}
        ) from e

    raise click.ClickException(f"Unsupported config format: {suffix}")


def build_config(
    config_path: Optional[str],
    php: Optional[str] = None,
    workdir: Optional[str] = None,
    composer_digest: Optional[str] = None,
    sudo: Optional[bool] = None,
    dry_run: bool = False,
) -> ServerInitConfig:
    """Config file values overridden by command line options"""
    config = ServerInitConfig.from_dict(load_config(config_path) if config_path else {})
    if php is not None:
        config.php.version = php
    if workdir is not None:
        config.workdir.path = workdir
    if composer_digest is not None:
        config.composer.expected_digest = composer_digest
    if sudo is not None:
        config.sudo = sudo
    if dry_run:
        config.dry_run = True
    return config


async def run_async(
    config: ServerInitConfig,
    start_at: Optional[str],
    stop_after: Optional[str],
) -> dict:
    orchestrator = ServerInitOrchestrator(config)
    await orchestrator.run(start_at=start_at, stop_after=stop_after)
    return orchestrator.get_stats()


@click.command()
@click.argument("config", type=click.Path(exists=True, dir_okay=False), required=False)
@click.option("--php", default=None, help="PHP version to install (default 8.3)")
@click.option("--workdir", default=None, help="Base working directory")
@click.option("--composer-digest", default=None, help="Pinned Composer installer digest")
@click.option("--sudo/--no-sudo", default=None, help="Prefix privileged commands with sudo")
@click.option("--start-at", default=None, help="Start at step id (e.g. 50_install_packages)")
@click.option("--stop-after", default=None, help="Stop after step id")
@click.option("--list-steps", is_flag=True, help="List the provisioning steps and exit")
@click.option("--dry-run", is_flag=True, help="Log commands without running them")
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.version_option(version=__version__)
def main(
    config: Optional[str],
    php: Optional[str],
    workdir: Optional[str],
    composer_digest: Optional[str],
    sudo: Optional[bool],
    start_at: Optional[str],
    stop_after: Optional[str],
    list_steps: bool,
    dry_run: bool,
    debug: bool,
):
    """serverinit - provision nginx, PHP and Composer on a fresh host"""
    setup_logger(level="DEBUG" if debug else None)

    if list_steps:
        for step in build_steps():
            click.echo(f"{step.step_id}  {step.description}")
        return

    try:
        cfg = build_config(config, php, workdir, composer_digest, sudo, dry_run)
        stats = asyncio.run(run_async(cfg, start_at, stop_after))
    except VerificationError as e:
        logger.error(f"Verification error: {e}")
        raise VerificationFailed("Composer installer verification failed!")
    except ServerInitError as e:
        raise ProvisionFailed(str(e))
    except click.ClickException:
        raise
    except Exception as e:
        logger.exception(f"Runtime error: {e}")
        raise ProvisionFailed(f"Runtime error: {e}")

    click.echo(f"Ran {len(stats['ran_steps'])} step(s)")


if __name__ == "__main__":
    main()
