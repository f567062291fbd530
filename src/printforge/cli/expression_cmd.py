"""Expression CLI commands: eval, check, filters."""

import dataclasses
import json
from pathlib import Path
from typing import Any

import click
import yaml

from printforge.config import EngineConfig
from printforge.templating.engine import TemplateEngine
from printforge.templating.errors import TemplateError
from printforge.templating.values import (
    ArrayValue,
    BoolValue,
    NullValue,
    NumberValue,
    ObjectValue,
    StringValue,
    TemplateValue,
    format_number,
    to_python,
)


def _load_data(data_path: Path | None) -> Any:
    """Load render data from a YAML (or JSON) file."""
    if data_path is None:
        return {}
    try:
        with open(data_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        click.echo(f"Error: Cannot read data file {data_path}: {e}", err=True)
        raise SystemExit(1)
    return {} if data is None else data


def _display(value: TemplateValue) -> str:
    """Render a value for the terminal; unlike property text, null is visible."""
    if isinstance(value, NullValue):
        return "null"
    if isinstance(value, BoolValue):
        return "true" if value.value else "false"
    if isinstance(value, NumberValue):
        return format_number(value.value)
    if isinstance(value, StringValue):
        return value.value
    if isinstance(value, (ArrayValue, ObjectValue)):
        return json.dumps(to_python(value), default=str, ensure_ascii=False)
    raise TypeError(f"Unknown template value: {type(value).__name__}")


@click.command("eval")
@click.argument("expression")
@click.option(
    "--data",
    "data_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML or JSON file with the render data.",
)
@click.option(
    "--locale",
    default=None,
    help="Locale for filters, e.g. de_DE (overrides PRINTFORGE_LOCALE).",
)
@click.option(
    "--text",
    "as_text",
    is_flag=True,
    default=False,
    help="Treat EXPRESSION as property text containing {{ }} segments.",
)
def eval_cmd(expression: str, data_path: Path | None, locale: str | None, as_text: bool):
    """Evaluate EXPRESSION against the render data."""
    config = EngineConfig.from_env()
    if locale:
        config = dataclasses.replace(config, locale=locale)
    data = _load_data(data_path)

    try:
        engine = TemplateEngine(config)
        if as_text:
            click.echo(engine.render_text(expression, data))
        else:
            click.echo(_display(engine.evaluate(expression, data)))
    except ValueError as e:
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)
    except TemplateError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)


@click.command()
@click.argument("expression")
def check(expression: str):
    """Parse EXPRESSION and print its syntax tree."""
    engine = TemplateEngine(EngineConfig.from_env())
    try:
        ast = engine.parse(expression)
    except TemplateError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    click.echo(repr(ast))
    click.echo(click.style("Expression is valid.", fg="green"))


@click.command()
@click.option("--json", "as_json", is_flag=True, default=False, help="Print documentation as JSON.")
def filters(as_json: bool):
    """List the registered filters."""
    engine = TemplateEngine(EngineConfig.from_env())
    docs = engine.filters.export_documentation()

    if as_json:
        click.echo(json.dumps(docs, indent=2, ensure_ascii=False))
        return

    click.echo(f"{len(docs['filters'])} filter(s):\n")
    for name in sorted(docs["filters"], key=str.casefold):
        doc = docs["filters"][name]
        category = f" [{doc['category']}]" if doc["category"] else ""
        click.echo(f"  {name}{category}")
        if doc["description"]:
            click.echo(f"      {doc['description']}")
        for example in doc["examples"]:
            click.echo(f"      e.g. {example}")
