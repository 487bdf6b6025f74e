from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

import httpx
import typer

app = typer.Typer(help="Story data authoring CLI")
draft_app = typer.Typer(help="Draft commands")
package_app = typer.Typer(help="Story package commands")
app.add_typer(draft_app, name="draft")
app.add_typer(package_app, name="package")

DEFAULT_BACKEND_URL = "http://127.0.0.1:8000"
MODEL_KEYS = ("nodes", "items", "enemies", "encounters")


def backend_url() -> str:
    return os.getenv("BACKEND_URL", DEFAULT_BACKEND_URL).rstrip("/")


def request(
    method: str,
    endpoint: str,
    *,
    json_body: dict[str, Any] | None = None,
    params: dict[str, Any] | None = None,
) -> httpx.Response:
    url = f"{backend_url()}{endpoint}"
    with httpx.Client(timeout=20.0) as client:
        return client.request(method, url, json=json_body, params=params)


def response_detail(resp: httpx.Response) -> dict[str, Any]:
    try:
        payload = resp.json()
    except ValueError:
        return {}
    detail = payload.get("detail") if isinstance(payload, dict) else None
    return detail if isinstance(detail, dict) else {}


def extract_model(payload: dict[str, Any]) -> dict[str, Any]:
    """Keep only the four entity collections of a load response or model file."""
    source = payload.get("model") if isinstance(payload.get("model"), dict) else payload
    return {key: source.get(key) or {} for key in MODEL_KEYS}


def read_model_file(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"cannot read model file {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise typer.BadParameter(f"model file must contain a JSON object: {path}")
    return extract_model(payload)


def format_diagnostic(item: dict[str, Any]) -> str:
    location = item.get("file") or ""
    if item.get("row") is not None:
        location = f"{location}:{item['row']}"
    prefix = f"{item.get('code')} [{item.get('severity')}]"
    if location:
        prefix = f"{prefix} {location}"
    return f"{prefix}: {item.get('message')}"


def _print_diagnostics(body: dict[str, Any]) -> None:
    for key in ("errors", "warnings"):
        for item in body.get(key) or []:
            typer.echo(f"  {format_diagnostic(item)}")
    typer.echo(f"{len(body.get('errors') or [])} error(s), {len(body.get('warnings') or [])} warning(s)")


def _handle_response(resp: httpx.Response, action: str) -> dict[str, Any]:
    if resp.status_code >= 400:
        detail = response_detail(resp)
        typer.echo(f"{action} failed ({resp.status_code}): {detail.get('code') or resp.text}")
        if detail.get("errors"):
            _print_diagnostics(detail)
        raise typer.Exit(code=1)
    return resp.json()


def _write_json(path: Path, payload: dict[str, Any]) -> None:
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    typer.echo(f"wrote {path}")


@app.command()
def ping() -> None:
    body = _handle_response(request("GET", "/health"), "ping")
    typer.echo(f"ok: {body}")


@app.command()
def load(out: Path | None = typer.Option(None, "--out", help="Write the loaded model to this file")) -> None:
    body = _handle_response(request("GET", "/api/authoring/load"), "load")
    typer.echo(" ".join(f"{key}={len(body.get(key) or {})}" for key in MODEL_KEYS))
    _print_diagnostics(body)
    if out is not None:
        _write_json(out, extract_model(body))


@app.command()
def validate(model_file: Path = typer.Argument(..., help="Model JSON file")) -> None:
    body = _handle_response(
        request("POST", "/api/authoring/validate", json_body=read_model_file(model_file)),
        "validate",
    )
    _print_diagnostics(body)
    if body.get("errors"):
        raise typer.Exit(code=1)


@app.command()
def save(model_file: Path = typer.Argument(..., help="Model JSON file")) -> None:
    body = _handle_response(request("POST", "/api/authoring/save", json_body=read_model_file(model_file)), "save")
    for path in body.get("written") or []:
        typer.echo(f"written: {path}")
    for path in body.get("backups") or []:
        typer.echo(f"backup: {path}")
    _print_diagnostics(body)


@draft_app.command("save")
def draft_save(model_file: Path = typer.Argument(..., help="Model JSON file")) -> None:
    body = _handle_response(
        request("POST", "/api/authoring/save-draft", json_body=read_model_file(model_file)),
        "draft save",
    )
    typer.echo(f"saved_at: {body.get('savedAt')}")


@draft_app.command("load")
def draft_load(out: Path | None = typer.Option(None, "--out", help="Write the draft model to this file")) -> None:
    body = _handle_response(request("GET", "/api/authoring/load-draft"), "draft load")
    if not body.get("exists"):
        typer.echo("no draft saved")
        return
    typer.echo(f"saved_at: {body.get('savedAt')}")
    if out is not None:
        _write_json(out, extract_model(body))


@package_app.command("export")
def package_export(
    story_id: str = typer.Option(..., "--story-id"),
    version: str = typer.Option(..., "--version"),
    title: str = typer.Option(..., "--title"),
    author: str = typer.Option(..., "--author"),
    out: Path = typer.Option(..., "--out", help="Bundle output file"),
) -> None:
    params = {"storyId": story_id, "version": version, "title": title, "author": author}
    body = _handle_response(request("GET", "/api/packages/export", params=params), "package export")
    _write_json(out, body)


@package_app.command("import")
def package_import(bundle_file: Path = typer.Argument(..., help="Bundle JSON file")) -> None:
    try:
        bundle = json.loads(bundle_file.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"cannot read bundle {bundle_file}: {exc}") from exc
    body = _handle_response(request("POST", "/api/packages/import", json_body=bundle), "package import")
    typer.echo(f"accepted: {body.get('accepted')}")
    for item in body.get("assetDiagnostics") or []:
        typer.echo(f"  {format_diagnostic(item)}")
    _print_diagnostics(body)
    if not body.get("accepted"):
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
