import json

import click

from httprpc.service.registrar import build_manifest, compile_service_schema, parse_service_schema
from httprpc.validator import CompileError
from httprpc.validator.loaders import load_schema_from_file

from .utils import configure_logging, output_error, output_result


@click.command(name="describe")
@click.argument("schema_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--full", is_flag=True, help="Include TypeDefs and definitions")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def describe(schema_file: str, json_output: bool, full: bool, debug: bool) -> None:
    """Print the discovery metadata a service schema file would publish.

    Examples:
        httprpc describe services/email.yaml
        httprpc describe services/email.yaml --full --json-output
    """
    configure_logging(debug)

    try:
        schema = parse_service_schema(load_schema_from_file(schema_file))
        compile_service_schema(schema)
        manifest = build_manifest(schema)
    except (ValueError, FileNotFoundError, CompileError) as e:
        output_error(e, json_output, debug)
        return

    if full:
        result = manifest.model_dump(by_alias=True, exclude_none=True)
    else:
        result = manifest.exposed()

    if json_output:
        output_result(result, json_output)
        return

    if full:
        click.echo(json.dumps(result, indent=2))
        return

    click.echo(f"{result['serviceName']}: {result['help']}")
    for interface in result["interfaces"]:
        params = ", ".join(interface["paramNames"])
        click.echo(
            f"  {interface['methodName']}({params})"
            f"  timeout={interface['methodTimeout']}ms  {interface['help']}"
        )
