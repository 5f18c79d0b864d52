import typer
import json
import logging
from pathlib import Path
from kv_cache.cache import FileCache, CorruptEntryError
from kv_cache.settings import settings


app = typer.Typer(help="File-backed key/value cache with expiration")


# Parse a command-line value as JSON, falling back to the raw string.
def _parse_value(raw: str):
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _cache(ctx: typer.Context) -> FileCache:
    return ctx.obj


@app.callback()
def main(
    ctx: typer.Context,
    cache_dir: Path = typer.Option(
        Path(settings.cache_dir), "--cache-dir", help="Cache directory"),
    verbose: bool = typer.Option(False, "--verbose", "-v",
                                 help="Log cache activity to stderr"),
):
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = FileCache(cache_dir)


# Store VALUE under KEY and print the written entry.
@app.command("set")
def set_cmd(
    ctx: typer.Context,
    key: str,
    value: str,
    ttl: float = typer.Option(None, "--ttl", help="Time-to-live in seconds"),
):
    try:
        entry = _cache(ctx).set(key, _parse_value(value), ttl=ttl)
    except ValueError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=2)
    typer.echo(json.dumps(entry.to_dict(), ensure_ascii=False))


# Print the value stored under KEY; exit code 1 on a miss.
@app.command("get")
def get_cmd(ctx: typer.Context, key: str):
    try:
        entry = _cache(ctx).lookup(key)
    except CorruptEntryError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(code=2)
    if entry is None:
        typer.echo("miss", err=True)
        raise typer.Exit(code=1)
    typer.echo(json.dumps(entry.data, ensure_ascii=False))


@app.command("clear")
def clear_cmd(ctx: typer.Context, key: str):
    typer.echo(json.dumps(_cache(ctx).clear(key)))


# Remove every entry and recreate the cache directory.
@app.command("clear-all")
def clear_all_cmd(ctx: typer.Context):
    typer.echo(json.dumps(_cache(ctx).clear_all()))


if __name__ == "__main__":
    app()
