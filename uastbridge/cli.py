"""CLI entry point for UastBridge."""

import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.tree import Tree

from uastbridge.client import Client, get_default_endpoint
from uastbridge.core.exceptions import PartialParseError, UastBridgeError
from uastbridge.uast import nodes
from uastbridge.uast.legacy import Node

app = typer.Typer(
    name="uastbridge",
    help="Parse source files with a remote UAST service.",
    no_args_is_help=True,
)
console = Console()

_MAX_TOKEN_DISPLAY = 40


class _State:
    endpoint: str | None = None


state = _State()


@app.callback()
def main(
    endpoint: Annotated[
        str | None,
        typer.Option("--endpoint", envvar="UASTBRIDGE_ENDPOINT", help="Service URL"),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    """Parse source files with a remote UAST service."""
    state.endpoint = endpoint or get_default_endpoint()
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        )


def get_client() -> Client:
    """Create a client for the configured endpoint."""
    return Client.connect(state.endpoint)


def format_token(token: str) -> str:
    """Shorten a token for display."""
    token = token.replace("\n", "\\n")
    if len(token) > _MAX_TOKEN_DISPLAY:
        token = token[: _MAX_TOKEN_DISPLAY - 3] + "..."
    return token


def legacy_tree(node: Node, tree: Tree | None = None) -> Tree:
    """Render a legacy node as a rich tree."""
    label = f"[cyan]{escape(node.internal_type or '?')}[/]"
    if node.token:
        label += f' [green]"{escape(format_token(node.token))}"[/]'
    if node.roles:
        label += f" [dim]{escape(', '.join(node.roles))}[/]"
    if node.start_position:
        label += f" [dim]{node.start_position.line}:{node.start_position.col}[/]"
    branch = tree.add(label) if tree is not None else Tree(label)
    for child in node.children:
        legacy_tree(child, branch)
    return branch


def current_tree(value: Any, label: str = "", tree: Tree | None = None) -> Tree:
    """Render a current-generation tree as a rich tree."""
    if isinstance(value, dict):
        text = f"[cyan]{escape(nodes.type_of(value) or '{}')}[/]"
        token = value.get(nodes.KEY_TOKEN)
        if isinstance(token, str) and token:
            text += f' [green]"{escape(format_token(token))}"[/]'
        children: list[tuple[str, Any]] = [
            (k, v) for k, v in sorted(value.items()) if k not in (nodes.KEY_TYPE, nodes.KEY_TOKEN)
        ]
    elif isinstance(value, list):
        text = f"[dim]\\[{len(value)}][/]"
        children = [(str(i), v) for i, v in enumerate(value)]
    else:
        text = f"[green]{escape(json.dumps(value))}[/]"
        children = []
    if label:
        text = f"[yellow]{escape(label)}[/]: {text}"
    branch = tree.add(text) if tree is not None else Tree(text)
    for key, child in children:
        current_tree(child, key, branch)
    return branch


def fail(error: Exception) -> NoReturn:
    """Print an error and exit with status 1."""
    console.print(f"[red]Error:[/red] {escape(str(error))}")
    raise typer.Exit(code=1)


@app.command()
def parse(
    path: Annotated[Path, typer.Argument(help="Source file to parse")],
    language: Annotated[
        str | None, typer.Option("--language", "-l", help="Language (guessed if omitted)")
    ] = None,
    mode: Annotated[
        str | None,
        typer.Option("--mode", "-m", help="Transformation: native, annotated, semantic"),
    ] = None,
    timeout: Annotated[float, typer.Option("--timeout", "-t", help="Timeout in seconds")] = 0.0,
    v2: Annotated[bool, typer.Option("--v2", help="Return the current-protocol tree")] = False,
    output_json: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Parse a file into a UAST."""

    async def run() -> Any:
        async with get_client() as client:
            request = client.new_parse_request().read_file(path).timeout(timeout)
            if language:
                request.language(language)
            if mode:
                request.mode(mode)
            if v2:
                return await request.uast()
            return await request.do()

    try:
        result = asyncio.run(run())
    except PartialParseError as e:
        if output_json:
            print(json.dumps({"language": e.language, "uast": e.tree, "errors": list(e.errors)}))
        else:
            console.print(current_tree(e.tree))
            console.print(f"[yellow]Partial parse:[/yellow] {escape('; '.join(e.errors))}")
        raise typer.Exit(code=1) from e
    except UastBridgeError as e:
        fail(e)

    if v2:
        tree, lang = result
        if output_json:
            print(json.dumps({"language": lang, "uast": tree}))
        else:
            console.print(f"[bold]{path.name}[/] ([cyan]{lang}[/])")
            console.print(current_tree(tree))
        return

    if output_json:
        print(
            json.dumps(
                {
                    "status": result.status.value,
                    "errors": result.errors,
                    "language": result.language,
                    "filename": result.filename,
                    "elapsed": result.elapsed,
                    "uast": result.uast.to_dict() if result.uast else None,
                }
            )
        )
        return

    console.print(f"[bold]{result.filename}[/] ([cyan]{result.language}[/])")
    console.print(f"  [dim]Status: {result.status.value}, elapsed {result.elapsed:.3f}s[/]")
    for error in result.errors:
        console.print(f"  [red]{error}[/red]")
    if result.uast:
        console.print(legacy_tree(result.uast))


@app.command("native-parse")
def native_parse(
    path: Annotated[Path, typer.Argument(help="Source file to parse")],
    language: Annotated[
        str | None, typer.Option("--language", "-l", help="Language (guessed if omitted)")
    ] = None,
    output_json: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Parse a file into the native AST of its driver."""

    async def run() -> Any:
        async with get_client() as client:
            request = client.new_native_parse_request().read_file(path)
            if language:
                request.language(language)
            return await request.do()

    try:
        resp = asyncio.run(run())
    except UastBridgeError as e:
        fail(e)

    if output_json:
        print(
            json.dumps(
                {
                    "status": resp.status.value,
                    "errors": resp.errors,
                    "language": resp.language,
                    "ast": resp.ast,
                }
            )
        )
        return

    console.print(f"[bold]{path.name}[/] ([cyan]{resp.language}[/])")
    for error in resp.errors:
        console.print(f"  [red]{error}[/red]")
    console.print(current_tree(resp.ast))


@app.command()
def version(
    output_json: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show the server version."""

    async def run() -> Any:
        async with get_client() as client:
            return await client.new_version_request().do()

    try:
        resp = asyncio.run(run())
    except UastBridgeError as e:
        fail(e)

    build = resp.build.isoformat() if resp.build else None
    if output_json:
        print(json.dumps({"version": resp.version, "build": build}))
    else:
        console.print(f"Server version: [cyan]{resp.version}[/cyan]")
        if build:
            console.print(f"Build: {build}")


@app.command()
def languages(
    output_json: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List the languages supported by the server."""

    async def run() -> Any:
        async with get_client() as client:
            return await client.new_supported_languages_request().do()

    try:
        resp = asyncio.run(run())
    except UastBridgeError as e:
        fail(e)

    if output_json:
        print(json.dumps([m.to_dict() for m in resp.languages]))
        return

    if not resp.languages:
        console.print("No languages supported")
        return
    for manifest in resp.languages:
        console.print(
            f"[cyan]{manifest.language}[/cyan] {manifest.version} [dim]({manifest.status})[/]"
        )


if __name__ == "__main__":
    app()
