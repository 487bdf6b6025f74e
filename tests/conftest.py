from __future__ import annotations

import shutil
from pathlib import Path

import pytest

from storygraph.config import DEFAULT_MAX_ASSET_BYTES, settings

ROOT = Path(__file__).resolve().parents[1]
SAMPLE_CSV_DIR = ROOT / "data" / "csv"


@pytest.fixture(autouse=True)
def story_csv_dir(tmp_path: Path):
    csv_dir = tmp_path / "csv"
    shutil.copytree(SAMPLE_CSV_DIR, csv_dir, ignore=shutil.ignore_patterns("*.bak.*", ".authoring-draft.json"))
    settings.data_csv_dir = csv_dir
    settings.compiled_dir = tmp_path / "compiled"
    settings.story_start_node_ids = ["n_start"]
    settings.dead_end_allowlist = []
    settings.lint_max_warnings = None
    settings.package_max_asset_bytes = DEFAULT_MAX_ASSET_BYTES
    yield csv_dir
