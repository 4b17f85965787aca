"""scrapingbee-mcp CLI.

Runs the stdio MCP server (default), the HTTP/SSE server, or lists the
available tools.
"""

from pathlib import Path

import click
import yaml
from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.table import Table

from scrapingbee_mcp._version import __version__
from scrapingbee_mcp.config import ApiKeyMode, GatewayConfig, load_config
from scrapingbee_mcp.logging import setup_logging

_GROUP_ONLY_FLAGS = {"--version", "--help", "-h"}


class DefaultGroup(click.Group):
    """A Click group that defaults to 'stdio' when no subcommand is given."""

    def parse_args(self, ctx, args):
        if not args or (args[0].startswith("-") and args[0] not in _GROUP_ONLY_FLAGS):
            args = ["stdio"] + args
        return super().parse_args(ctx, args)


def _build_config(config_file: Path | None, **cli_values) -> GatewayConfig:
    """Merge the config file, environment and CLI options."""
    timeout = cli_values.get("timeout")
    if timeout is not None and timeout <= 0:
        raise click.ClickException("--timeout must be a positive number")

    try:
        file_config = load_config(config_file)
    except yaml.YAMLError as e:
        raise click.ClickException(f"Failed to load config file: {e}") from e

    try:
        return GatewayConfig.from_sources(file_config, **cli_values)
    except (TypeError, ValueError) as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e


_config_option = click.option(
    "--config", "-C", "config_file",
    type=click.Path(exists=True, path_type=Path),
    help="Config file path (default: ~/.scrapingbee-mcp.yaml or ./scrapingbee-mcp.yaml).",
)
_timeout_option = click.option(
    "--timeout", "-t", default=None, type=float,
    help="ScrapingBee request timeout in seconds (default: 120).",
)
_log_level_option = click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Logging level (default: INFO).",
)
_log_file_option = click.option(
    "--log-file", default=None,
    help="Also write logs to this file.",
)


@click.group(cls=DefaultGroup)
@click.version_option(version=__version__, prog_name="scrapingbee-mcp")
def cli():
    """ScrapingBee MCP server - test extract_rules against live pages."""
    load_dotenv(find_dotenv(usecwd=True))


@cli.command()
@click.option(
    "--api-key", default=None,
    help="ScrapingBee API key (default: $SCRAPINGBEE_API_KEY).",
)
@_timeout_option
@_log_level_option
@_log_file_option
@_config_option
def stdio(api_key, timeout, log_level, log_file, config_file):
    """Start the MCP server on stdio (API key from configuration)."""
    config = _build_config(
        config_file,
        api_key=api_key,
        timeout=timeout,
        log_level=log_level,
        log_file=log_file,
    )
    setup_logging(config.log_level, config.log_file)

    from scrapingbee_mcp.mcp import run

    run(config)


@cli.command()
@click.option("--host", default=None, help="Interface to bind (default: 0.0.0.0).")
@click.option(
    "--port", "-p", default=None, type=int,
    help="Port to listen on (default: $PORT or 3000).",
)
@_timeout_option
@_log_level_option
@_log_file_option
@_config_option
def serve(host, port, timeout, log_level, log_file, config_file):
    """Start the HTTP server (/mcp and /sse; API key passed per call)."""
    config = _build_config(
        config_file,
        host=host,
        port=port,
        timeout=timeout,
        log_level=log_level,
        log_file=log_file,
    )
    logger = setup_logging(config.log_level, config.log_file)

    import uvicorn

    from scrapingbee_mcp.mcp.http import create_app

    app = create_app(config)
    base = f"http://{config.host}:{config.port}"
    logger.info("ScrapingBee MCP server (HTTP/SSE) running on port %d", config.port)
    logger.info("Health check: %s/health", base)
    logger.info("Streamable HTTP: %s/mcp (POST)", base)
    logger.info("SSE: %s/sse (GET), messages: %s/messages?sessionId=<id> (POST)", base, base)
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


@cli.command()
@click.option(
    "--key-mode",
    type=click.Choice([m.value for m in ApiKeyMode]),
    default=ApiKeyMode.CONFIG.value,
    show_default=True,
    help="Show the tool schemas as served over stdio (config) or HTTP (argument).",
)
def tools(key_mode):
    """List the available tools and their parameters."""
    from scrapingbee_mcp.gateway import TOOLS

    mode = ApiKeyMode(key_mode)
    table = Table(title="ScrapingBee MCP tools", header_style="bold")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Title")
    table.add_column("Parameters (* = required)")

    for spec in TOOLS.values():
        required = set(spec.required_fields(mode))
        params = [
            f"{name}*" if name in required else name
            for name in spec.argument_model(mode).model_fields
        ]
        table.add_row(spec.name, spec.title, ", ".join(params))

    Console().print(table)


if __name__ == "__main__":
    cli()
