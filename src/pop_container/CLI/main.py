"""
Command Line Interface for the Pop!_OS container builder.
"""
import logging
import click
from .. import __version__
from ..BUILDERS.pipeline import PipelineDriver
from ..MODELS.profile import ContainerProfile
from ..UTILS.config_loader import load_config
from ..UTILS.errors import ConfigError, PipelineError
from ..UTILS.identity import resolve_invoking_user
from ..UTILS.logging_config import setup_logging
from ..UTILS.privilege import escalate_if_needed

logger = logging.getLogger(__name__)


@click.command()
@click.argument('container',
                type=click.Choice([p.value for p in ContainerProfile], case_sensitive=False),
                default=ContainerProfile.RUNTIME.value)
@click.option('--add', '-a', 'add', multiple=True, metavar='BRANCH',
              help='Additional staging branch to add during the build. Repeatable.')
@click.option('--package', '-p', 'package', multiple=True, metavar='NAME',
              help='Additional package to install into the container. Repeatable.')
@click.option('--config', '-c', 'config_path', type=click.Path(dir_okay=False),
              help='YAML build configuration file.')
@click.option('--log-level', default='INFO',
              type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
              help='Minimum level of log messages.')
@click.option('--no-escalate', is_flag=True, help='Do not re-run through sudo when not root.')
@click.version_option(__version__)
def cli(container, add, package, config_path, log_level, no_escalate):
    """
    Build a Pop!_OS container image.

    CONTAINER is the type of image to build:

    runtime      A small container, useful in a cloud cluster.

    interactive  A CLI environment similar to the Pop!_OS desktop,
                 useful for containerized development.

    Example: pop-container-builder interactive --package firefox
    """
    setup_logging(log_level)

    try:
        config = load_config(config_path)
    except ConfigError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(2)

    user = resolve_invoking_user(cache_path=config.identity_cache)
    if config.escalate and not no_escalate:
        try:
            escalate_if_needed(user)
        except OSError as e:
            logger.error("Could not re-run with root privileges: %s", e)
            raise SystemExit(1)

    profile = ContainerProfile(container.lower())
    driver = PipelineDriver(config, user)
    try:
        archive = driver.run(profile, extra_repos=add, extra_packages=package)
    except PipelineError as e:
        logger.error("Build failed at stage '%s'.", e.stage.value)
        raise SystemExit(1)

    click.echo(archive)


def main():
    """
    Main entry point for the CLI.
    """
    cli()


if __name__ == '__main__':
    main()
