"""Definition CLI commands — validate, hash and export."""

import json
from pathlib import Path

import click

from formgate.config import FormgateConfig
from formgate.definition.validator import validate_definitions_dir, validate_form_file
from formgate.exceptions import FormgateError
from formgate.factory import FormFactory


def _load_config() -> FormgateConfig:
    try:
        return FormgateConfig.from_env()
    except FormgateError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)


def _load_factory(definitions_path: Path | None = None) -> FormFactory:
    """Build a form factory from the environment (and an optional path override)."""
    config = _load_config()
    if definitions_path is not None:
        config.definitions_path = definitions_path
    try:
        return config.create_factory()
    except FormgateError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)


def _create_form(name: str, definitions_path: Path | None, locale: str | None = None):
    factory = _load_factory(definitions_path)
    try:
        return factory.create(name, locale=locale)
    except FormgateError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)


definitions_option = click.option(
    "--definitions",
    "definitions_path",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory of form definition files (default: $FORMGATE_DEFINITIONS_PATH or ./forms).",
)


@click.group()
def definition():
    """Form definition commands."""
    pass


@definition.command()
@click.option(
    "--strict",
    is_flag=True,
    default=False,
    help="Treat warnings as errors.",
)
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Validate a single YAML file instead of the whole definitions directory.",
)
@definitions_option
def validate(strict: bool, target_path: Path | None, definitions_path: Path | None):
    """Validate form definition files against the JSON Schema."""
    if definitions_path is None:
        definitions_path = _load_config().definitions_path

    # ── Schema validation ───────────────────────────────────────────────────
    if target_path is not None:
        issues = validate_form_file(target_path)
        if strict:
            for issue in issues:
                issue.severity = "error"
    else:
        if not definitions_path.exists():
            click.echo(f"Error: Definitions directory not found at {definitions_path}", err=True)
            raise SystemExit(1)
        issues = validate_definitions_dir(definitions_path, strict=strict)

    errors = [i for i in issues if i.severity == "error"]
    warnings = [i for i in issues if i.severity == "warning"]

    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    if errors:
        click.echo(
            click.style(
                f"\n{len(errors)} schema error(s) found"
                + (f", {len(warnings)} warning(s)" if warnings else ""),
                fg="red",
                bold=True,
            )
        )
        raise SystemExit(1)

    if warnings:
        click.echo(click.style(f"{len(warnings)} warning(s) found.", fg="yellow"))

    # ── Semantic validation: build every form ───────────────────────────────
    if target_path is None:
        factory = _load_factory(definitions_path)
        names = factory.list_registered()
        click.echo(f"\nLoaded {len(names)} form(s):")
        for name in sorted(names):
            try:
                form = factory.create(name)
            except FormgateError as e:
                click.echo(click.style(f"\n{name}: {e}", fg="red"), err=True)
                raise SystemExit(1)
            click.echo(f"  ✓ {name} ({len(form.get_definition())} fields)")

    click.echo(click.style("\nAll definitions are valid.", fg="green", bold=True))


@definition.command("hash")
@click.argument("name")
@definitions_option
def hash_cmd(name: str, definitions_path: Path | None):
    """Print the content hash of a form definition."""
    form = _create_form(name, definitions_path)
    click.echo(form.get_hash())


@definition.command()
@click.argument("name")
@click.option("--locale", default=None, help="Locale used to resolve option lists.")
@definitions_option
def export(name: str, locale: str | None, definitions_path: Path | None):
    """Export a form definition as JSON (for client-side validation)."""
    form = _create_form(name, definitions_path, locale)
    click.echo(
        json.dumps(form.get_definition().to_dict(), indent=2, ensure_ascii=False, default=str)
    )
