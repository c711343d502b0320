"""CLI entrypoint for CV Screener."""

from __future__ import annotations

import json
import os
from typing import Optional

import requests
import typer

app = typer.Typer(name="cvs", help="AI CV Screener command-line interface")

DEFAULT_HOST = "http://127.0.0.1:3001"


def _resolve_host(override: Optional[str]) -> str:
    if override:
        return override.rstrip("/")
    env_host = os.environ.get("CVS_HOST")
    if env_host:
        return env_host.rstrip("/")
    return DEFAULT_HOST


def _request(method: str, path: str, host: Optional[str] = None, **kwargs) -> requests.Response:
    url = f"{_resolve_host(host)}{path}"
    try:
        resp = requests.request(method, url, timeout=300, **kwargs)
    except requests.ConnectionError:
        typer.echo(f"Cannot reach backend at {url}", err=True)
        raise typer.Exit(code=1)
    if not resp.ok:
        try:
            detail = resp.json()
        except ValueError:
            detail = resp.text
        typer.echo(f"Request failed ({resp.status_code}): {detail}", err=True)
        raise typer.Exit(code=1)
    return resp


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question about the CV corpus"),
    raw: bool = typer.Option(False, "--json", help="Print the full JSON response"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Ask a question and print the answer with its sources."""
    payload = _request("POST", "/api/chat", host=host, json={"message": question}).json()
    if raw:
        typer.echo(json.dumps(payload, indent=2))
        return
    typer.echo(payload["response"])
    for source in payload.get("sources", []):
        typer.echo(f"  - {source['display_name']} (#{source['document_id']}, relevance {source['relevance']})")
    if not payload.get("success", True):
        raise typer.Exit(code=2)


@app.command()
def rebuild(host: Optional[str] = typer.Option(None, "--host", help="Override backend host")) -> None:
    """Re-embed the whole corpus."""
    resp = _request("POST", "/api/index/rebuild", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


@app.command()
def status(host: Optional[str] = typer.Option(None, "--host", help="Override backend host")) -> None:
    """Show the number of indexed chunks and whether the language model answers."""
    payload = _request("GET", "/api/index", host=host).json()
    payload["llm"] = _request("GET", "/api/chat/status", host=host).json().get("llm", False)
    typer.echo(json.dumps(payload, indent=2))


@app.command()
def clear(
    yes: bool = typer.Option(False, "--yes", help="Skip confirmation"),
    host: Optional[str] = typer.Option(None, "--host", help="Override backend host"),
) -> None:
    """Delete the persisted index."""
    if not yes:
        typer.confirm("Delete the persisted index?", abort=True)
    resp = _request("DELETE", "/api/index", host=host)
    typer.echo(json.dumps(resp.json(), indent=2))


if __name__ == "__main__":
    app()
