"""Root CLI app - entry point and command registration."""

from pathlib import Path

import typer

from skewdesk.config import get_settings
from skewdesk.config.settings import configure_logging

app = typer.Typer(
    name="skewdesk",
    help="skewdesk - Cross-platform prediction market matching and arbitrage skew detection.",
    no_args_is_help=True,
)


@app.callback()
def main(
    ctx: typer.Context,
    config_dir: Path | None = typer.Option(
        None, "--config-dir", "-C", help="Config directory (default: ./config or package config)"
    ),
    profile: str | None = typer.Option(
        None, "--profile", "-p", help="Config profile (e.g. dev) to overlay on default.toml"
    ),
    db: str | None = typer.Option(None, "--db", help="DuckDB path (overrides storage.db_path)"),
) -> None:
    """Configure logging and store options in context."""
    settings = get_settings(profile, config_dir)
    if db:
        settings.storage["db_path"] = db
    configure_logging(settings)
    ctx.obj = {"settings": settings, "config_dir": config_dir, "profile": profile}


# Subcommands registered from other modules
from skewdesk.cli import api_cmd, markets, match, passes, spreads  # noqa: E402

app.add_typer(markets.app, name="markets")
app.add_typer(markets.prices_app, name="prices")
app.add_typer(match.app, name="match")
app.add_typer(spreads.app, name="spreads")
app.add_typer(passes.app, name="passes")
app.add_typer(api_cmd.app, name="api")


def run() -> None:
    app()


if __name__ == "__main__":
    run()
