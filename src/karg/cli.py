"""CLI entry point for karg."""

import glob
import logging
from pathlib import Path

import click
import yaml
from pydantic import ValidationError

from karg.generator.markdown import QUICK_REFERENCE_DEPTH, render_api_documentation, render_combined_documentation
from karg.parser.base import APIDocumentation, DocumentModel
from karg.parser.converter import NoStorageVersionError, convert_crds_to_documents
from karg.parser.crd import CustomResourceDefinition
from karg.parser.reader import load_crds

logger = logging.getLogger(__name__)


def _find_files(pattern: str) -> list[str]:
    files = sorted(glob.glob(pattern, recursive=True))
    if not files:
        raise click.ClickException(f"No files found matching pattern: {pattern}")
    return files


def _load_documents(files: list[str], verbose: bool) -> DocumentModel:
    """Read all CRDs from *files* and convert them, in file order."""
    if verbose:
        click.echo(f"Found {len(files)} files:")
        for file in files:
            click.echo(f"  - {file}")

    crds: list[CustomResourceDefinition] = []
    for file in files:
        try:
            found = load_crds(Path(file))
        except (yaml.YAMLError, ValidationError) as e:
            raise click.ClickException(f"Error parsing {file}: {e}") from e
        if verbose:
            click.echo(f"Parsed {len(found)} CRDs from {file}")
        crds.extend(found)

    if not crds:
        raise click.ClickException("No CRDs found in input files")

    try:
        return convert_crds_to_documents(crds, files)
    except NoStorageVersionError as e:
        raise click.ClickException(str(e)) from e


def output_filename(api_doc: APIDocumentation) -> str:
    """File name of a per-API page: ``{group}-{version}-{plural or kind}.md``."""
    plural = api_doc.metadata.plural if api_doc.metadata else ""
    name = (plural or api_doc.kind).lower()
    return f"{api_doc.group}-{api_doc.version}-{name}.md"


@click.group(context_settings={"auto_envvar_prefix": "KARG"})
def main():
    """karg: generate Markdown API reference documentation from Kubernetes CRDs."""
    pass


@main.command()
@click.option("-i", "--input", "pattern", required=True, help="Glob pattern for input CRD YAML files.")
@click.option(
    "-d",
    "--output-directory",
    default=None,
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory for one Markdown file per API.",
)
@click.option(
    "-o",
    "--output-file",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Single Markdown file for all APIs (alternative to --output-directory).",
)
@click.option(
    "--quick-reference-depth",
    default=QUICK_REFERENCE_DEPTH,
    show_default=True,
    type=click.IntRange(min=0),
    help="Deepest field path shown in the quick reference table (0 shows all).",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output.")
def generate(
    pattern: str,
    output_directory: Path | None,
    output_file: Path | None,
    quick_reference_depth: int,
    verbose: bool,
):
    """Generate Markdown documentation from CRD YAML files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if output_directory is None and output_file is None:
        raise click.UsageError("Either --output-directory or --output-file must be specified.")
    if output_directory is not None and output_file is not None:
        raise click.UsageError("--output-directory and --output-file cannot be used together.")

    files = _find_files(pattern)
    model = _load_documents(files, verbose)
    logger.debug("Converted %d APIs from %d files", len(model.api_docs), len(model.source_files))

    if output_file is not None:
        output_file.parent.mkdir(parents=True, exist_ok=True)
        markdown = render_combined_documentation(model.api_docs, quick_reference_depth)
        output_file.write_text(markdown, encoding="utf-8")
        click.echo(f"Generated combined markdown file: {output_file}")
        if verbose:
            click.echo("Included APIs:")
            for api_doc in model.api_docs:
                click.echo(f"  - {api_doc.kind} ({api_doc.group}/{api_doc.version})")
        return

    output_directory.mkdir(parents=True, exist_ok=True)
    for api_doc in model.api_docs:
        file_path = output_directory / output_filename(api_doc)
        file_path.write_text(render_api_documentation(api_doc, quick_reference_depth), encoding="utf-8")
        if verbose:
            click.echo(f"  Created {file_path} ({api_doc.kind})")

    click.echo(f"Generated {len(model.api_docs)} markdown files in {output_directory}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
