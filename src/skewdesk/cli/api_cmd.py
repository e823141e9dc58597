"""API server command."""

import typer

from skewdesk.api.main import run_api

app = typer.Typer(help="Start the HTTP API (pass triggers and read endpoints)")


@app.callback(invoke_without_command=True)
def api(
    ctx: typer.Context,
    host: str = typer.Option("127.0.0.1", "--host", help="Bind host"),
    port: int = typer.Option(8000, "--port", help="Bind port"),
) -> None:
    if ctx.invoked_subcommand is not None:
        return
    obj = ctx.obj or {}
    run_api(host=host, port=port, settings=obj.get("settings"), profile=obj.get("profile"))


if __name__ == "__main__":
    app()
