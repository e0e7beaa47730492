"""Check CLI command — validate an input file against a form."""

import json
from pathlib import Path

import click

from formgate.cli.definition_cmd import _create_form, definitions_option
from formgate.exceptions import FormgateError


@click.command()
@click.argument("name")
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--locale", default=None, help="Locale of the error messages.")
@click.option("--json", "as_json", is_flag=True, default=False, help="Print errors as JSON.")
@definitions_option
def check(
    name: str,
    input_file: Path,
    locale: str | None,
    as_json: bool,
    definitions_path: Path | None,
):
    """Validate the JSON object in INPUT_FILE with form NAME."""
    try:
        values = json.loads(input_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        click.echo(click.style(f"Error: invalid JSON in {input_file}: {e}", fg="red"), err=True)
        raise SystemExit(1)

    if not isinstance(values, dict):
        click.echo(click.style(f"Error: {input_file} must contain a JSON object", fg="red"), err=True)
        raise SystemExit(1)

    form = _create_form(name, definitions_path, locale)

    try:
        form.set_defined_writable_values(values)
        form.validate()
    except FormgateError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(json.dumps([e.to_dict() for e in form.get_error_details()], indent=2, ensure_ascii=False))
    elif form.has_errors():
        click.echo(form.get_errors_as_text(), nl=False)

    if form.has_errors():
        if not as_json:
            click.echo(click.style(f"\n{len(form.get_errors())} field(s) with errors", fg="red", bold=True))
        raise SystemExit(1)

    if not as_json:
        click.echo(click.style("Input is valid.", fg="green", bold=True))
