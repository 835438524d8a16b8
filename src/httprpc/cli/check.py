from typing import Any

import click

from httprpc.service.registrar import compile_service_schema, parse_service_schema
from httprpc.validator import CompileError
from httprpc.validator.loaders import load_schema_from_file

from .utils import configure_logging, output_result


def check_schema_file(path: str) -> dict[str, Any]:
    """Compile every method of a service schema file.

    Returns:
        {"path", "service", "status", "methods"} where status is "ok" or
        "error"; on error "message" says what failed. "service" is None when
        the document could not be read.
    """
    try:
        schema = parse_service_schema(load_schema_from_file(path))
    except (ValueError, FileNotFoundError) as e:
        return {
            "path": path,
            "service": None,
            "status": "error",
            "message": str(e),
            "methods": [],
        }

    try:
        compiled = compile_service_schema(schema)
    except CompileError as e:
        return {
            "path": path,
            "service": schema.name,
            "status": "error",
            "message": e.message,
            "methods": [],
        }
    return {
        "path": path,
        "service": schema.name,
        "status": "ok",
        "methods": list(compiled),
    }


def format_check_results(results: list[dict[str, Any]]) -> str:
    """Format check results for human-readable output"""
    failed = [r for r in results if r["status"] != "ok"]
    output = [f"Checked {len(results)} schema files ({len(results) - len(failed)} valid, {len(failed)} failed):", ""]

    if failed:
        output.append("Failed schemas:")
        for result in failed:
            service = f" ({result['service']})" if result["service"] else ""
            output.append(f"  ✗ {result['path']}{service}")
            output.append(f"    Error: {result['message']}")
        output.append("")

    valid = [r for r in results if r["status"] == "ok"]
    if valid:
        output.append("Valid schemas:")
        for result in valid:
            methods = ", ".join(result["methods"]) or "no methods"
            output.append(f"  ✓ {result['path']} ({result['service']}: {methods})")

    return "\n".join(output)


@click.command(name="check")
@click.argument("schema_files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--json-output", is_flag=True, help="Output in JSON format")
@click.option("--debug", is_flag=True, help="Show detailed debug information")
def check(schema_files: tuple[str, ...], json_output: bool, debug: bool) -> None:
    """Compile the request and response schemas of service schema files.

    Every file is checked. Exits with a non-zero status if any file cannot
    be read or any method fails to compile.

    Examples:
        httprpc check services/email.yaml
        httprpc check services/*.yaml --json-output
    """
    configure_logging(debug)

    results = [check_schema_file(path) for path in schema_files]

    if json_output:
        output_result(results, json_output)
    else:
        click.echo(format_check_results(results))

    if any(r["status"] != "ok" for r in results):
        raise SystemExit(1)
