"""CLI for inspecting and managing cassettes."""

import typer
import yaml

from .config import get_settings
from .exceptions import CorruptCassetteError
from .observability import setup_structured_logging
from .store import CassetteStore

app = typer.Typer(help="Inspect and manage browser-vcr cassettes")

DirOption = typer.Option(None, "--dir", "-d", help="Cassettes directory (default: BROWSER_VCR_CASSETTES_DIR)")


def _store(directory: str | None) -> CassetteStore:
    settings = get_settings()
    setup_structured_logging(settings.logging_level, json=settings.json_logs)
    return CassetteStore(directory or settings.get_cassettes_dir())


@app.command("list")
def list_cassettes(directory: str = DirOption) -> None:
    """List cassettes with their entry counts."""
    store = _store(directory)
    names = store.list_names()
    if not names:
        print(f"No cassettes in {store.directory}")
        return

    for name in names:
        try:
            count = len(store.load(name))
        except CorruptCassetteError:
            print(f"{name}  (corrupt)")
            continue
        print(f"{name}  {count} entries")


@app.command()
def show(
    name: str = typer.Argument(..., help="Cassette name"),
    as_yaml: bool = typer.Option(False, "--yaml", help="Dump entry summaries as YAML"),
    directory: str = DirOption,
) -> None:
    """Show the entries of a cassette."""
    store = _store(directory)
    if not store.exists(name):
        print(f"Error: cassette not found: {store.path_for(name)}")
        raise typer.Exit(code=1)

    try:
        cassette = store.load(name)
    except CorruptCassetteError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1) from e

    summaries = [
        {
            "method": entry.request.method,
            "url": entry.request.url,
            "status": entry.response.status,
            "fingerprint": entry.fingerprint,
        }
        for entry in cassette.entries
    ]

    if as_yaml:
        print(yaml.safe_dump({"cassette": name, "entries": summaries}, default_flow_style=False, sort_keys=False, allow_unicode=True), end="")
        return

    print(f"Cassette: {name} ({len(cassette)} entries)")
    for i, s in enumerate(summaries, start=1):
        print(f"{i:>4}. {s['status']} {s['method']} {s['url']}")


@app.command()
def delete(
    name: str = typer.Argument(..., help="Cassette name"),
    directory: str = DirOption,
) -> None:
    """Delete a cassette so the next run records it again."""
    store = _store(directory)
    if not store.delete(name):
        print(f"Error: cassette not found: {store.path_for(name)}")
        raise typer.Exit(code=1)
    print(f"Deleted {store.path_for(name)}")


@app.command()
def config() -> None:
    """Show current configuration."""
    settings = get_settings()
    print(f"Cassettes dir: {settings.get_cassettes_dir()}")
    print(f"URL pattern: {settings.url_pattern}")
    print(f"Strict playback: {settings.strict_playback}")
    print(f"Logging level: {settings.logging_level}")
    print(f"JSON logs: {settings.json_logs}")


if __name__ == "__main__":
    app()
