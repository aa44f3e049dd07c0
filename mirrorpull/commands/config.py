import json

import click

from ..config import generate_config_example, get_config_path, load_config
from ..cli_utils import standard_command


@click.group("config")
def config_cmd():
    """Configuration management commands."""
    pass


@config_cmd.command("generate")
@click.option("--output", "-o", type=click.Path(dir_okay=False), help="Write to this file instead of stdout")
@standard_command
def generate_config(output):
    """Generate an example configuration file."""
    example = generate_config_example()
    if not output:
        click.echo(example, nl=False)
        return
    with open(output, "x") as f:
        f.write(example)
    click.echo(f"Example configuration written to {output}", err=True)


@config_cmd.command("show")
@click.option("-c", "--config", "config_path", type=click.Path(dir_okay=False), help="Config file to show")
@click.option("--pretty", is_flag=True, help="Display as formatted JSON instead of single-line JSONL")
@click.option("--path", is_flag=True, help="Show the config file path being used")
@standard_command
def show_config(config_path, pretty, path):
    """Show the current configuration with all merges applied.

    By default, outputs single-line JSON (JSONL format).
    Use --pretty for human-readable formatted output.
    Use --path to see which config file is being used.
    """
    if path:
        click.echo(json.dumps({"config_path": str(config_path or get_config_path())}))
        return

    config = load_config(config_path)

    if pretty:
        click.echo(json.dumps(config, indent=2, ensure_ascii=False))
    else:
        click.echo(json.dumps(config, ensure_ascii=False))
