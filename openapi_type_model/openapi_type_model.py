import json
import logging

import click

from .pipeline import GeneratorConfig, PipelineGenerator, TypeModelError
from .pipeline.report import ReportRenderer

logger = logging.getLogger(__name__)


@click.command()
@click.option("--config", "-c", default=None, type=click.Path(exists=True, resolve_path=True))
@click.option("--format", "-f", "fmt", default="json", type=click.Choice(ReportRenderer.FORMATS))
@click.option("--include-tag", multiple=True, help="Keep only operations with one of these tags")
@click.option("--exclude-tag", multiple=True, help="Drop operations with any of these tags")
@click.option("--skip-prune", is_flag=True, default=False, help="Keep unreferenced components")
@click.option("--verbose", "-v", is_flag=True, default=False)
@click.argument("path", type=click.Path(exists=True, resolve_path=True))
@click.argument("output", default=None, required=False, type=click.Path(resolve_path=True))
def openapi_type_model(config, fmt, include_tag, exclude_tag, skip_prune, verbose, path, output):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    with open(path) as f:
        document = json.load(f)

    if config is not None:
        with open(config) as f:
            config = GeneratorConfig.from_dict(json.load(f))
    else:
        config = GeneratorConfig()

    # Command line flags extend the config file
    if include_tag:
        config.filter.include_tags.extend(include_tag)
    if exclude_tag:
        config.filter.exclude_tags.extend(exclude_tag)
    if skip_prune:
        config.skip_prune = True

    try:
        model = PipelineGenerator(document, config).generate()
    except TypeModelError as e:
        raise click.ClickException(str(e)) from e

    out = ReportRenderer().render(model, fmt)
    if output is None:
        click.echo(out, nl=False)
    else:
        with open(output, "w") as f:
            f.write(out)
        logger.info("wrote %d types to %s", len(model), output)


if __name__ == "__main__":
    openapi_type_model()
