import json
from pathlib import Path

import httpx
import pytest
import typer

from authoring_cli import (
    DEFAULT_BACKEND_URL,
    backend_url,
    extract_model,
    format_diagnostic,
    read_model_file,
    response_detail,
)


def test_backend_url_default(monkeypatch) -> None:
    monkeypatch.delenv("BACKEND_URL", raising=False)
    assert backend_url() == DEFAULT_BACKEND_URL


def test_backend_url_env(monkeypatch) -> None:
    monkeypatch.setenv("BACKEND_URL", "http://localhost:9999/")
    assert backend_url() == "http://localhost:9999"


def test_response_detail_reads_validation_failure() -> None:
    request = httpx.Request("POST", "http://test/api/authoring/save")
    response = httpx.Response(
        400,
        request=request,
        json={"detail": {"code": "VALIDATION_FAILED", "errors": [{"code": "DATA002"}], "warnings": []}},
    )
    detail = response_detail(response)
    assert detail["code"] == "VALIDATION_FAILED"
    assert detail["errors"] == [{"code": "DATA002"}]


def test_response_detail_non_json_is_empty() -> None:
    request = httpx.Request("GET", "http://test/api/authoring/load")
    response = httpx.Response(500, request=request, text="boom")
    assert response_detail(response) == {}


def test_extract_model_drops_diagnostics() -> None:
    payload = {"nodes": {"n_start": {"id": "n_start"}}, "items": {}, "errors": [], "warnings": []}
    assert extract_model(payload) == {"nodes": {"n_start": {"id": "n_start"}}, "items": {}, "enemies": {}, "encounters": {}}


def test_extract_model_unwraps_draft_payload() -> None:
    payload = {"exists": True, "savedAt": "x", "model": {"nodes": {"a": {}}}}
    assert extract_model(payload)["nodes"] == {"a": {}}


def test_read_model_file_rejects_non_object(tmp_path: Path) -> None:
    path = tmp_path / "model.json"
    path.write_text(json.dumps([1, 2]))
    with pytest.raises(typer.BadParameter):
        read_model_file(path)


def test_format_diagnostic_includes_location() -> None:
    item = {"code": "DATA001", "severity": "warning", "file": "nodes.csv", "row": 4, "message": "Duplicate ID"}
    assert format_diagnostic(item) == "DATA001 [warning] nodes.csv:4: Duplicate ID"


def test_format_diagnostic_without_location() -> None:
    item = {"code": "asset_shape", "severity": "error", "message": "Invalid asset payload shape"}
    assert format_diagnostic(item) == "asset_shape [error]: Invalid asset payload shape"
