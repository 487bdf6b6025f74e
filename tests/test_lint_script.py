import json
import subprocess
import sys
from pathlib import Path

from storygraph.modules.lint.service import format_table, lint_data

ROOT = Path(__file__).resolve().parents[1]


def _run_lint(*args: str) -> subprocess.CompletedProcess:
    return subprocess.run(
        [sys.executable, "scripts/lint_data.py", *args],
        cwd=ROOT,
        capture_output=True,
        text=True,
    )


def _add_orphan(csv_dir: Path) -> None:
    nodes_csv = csv_dir / "nodes.csv"
    nodes_csv.write_text(nodes_csv.read_text(encoding="utf-8") + "n_lonely,ending,Nobody comes here.\n", encoding="utf-8")


def test_clean_data_exits_zero(story_csv_dir: Path) -> None:
    proc = _run_lint("--data-dir", str(story_csv_dir))
    assert proc.returncode == 0, proc.stderr
    assert "No errors or warnings." in proc.stdout


def test_json_output_shape(story_csv_dir: Path) -> None:
    _add_orphan(story_csv_dir)
    proc = _run_lint("--data-dir", str(story_csv_dir), "--format", "json")
    assert proc.returncode == 0, proc.stderr
    payload = json.loads(proc.stdout)
    assert payload["success"] is True
    assert payload["errorCount"] == 0
    assert payload["warningCount"] == 1
    assert payload["warnings"][0]["code"] == "DATA008"
    assert payload["warnings"][0]["file"] == "nodes.csv"


def test_max_warnings_and_strict_fail(story_csv_dir: Path) -> None:
    _add_orphan(story_csv_dir)
    assert _run_lint("--data-dir", str(story_csv_dir), "--max-warnings", "0").returncode == 1
    strict = _run_lint("--data-dir", str(story_csv_dir), "--strict", "--format", "json")
    assert strict.returncode == 1
    payload = json.loads(strict.stdout)
    assert payload["errorCount"] == 1
    assert payload["warningCount"] == 0
    assert payload["errors"][0]["severity"] == "error"


def test_content_errors_exit_one(story_csv_dir: Path) -> None:
    enemies_csv = story_csv_dir / "enemies.csv"
    enemies_csv.write_text("id,name,hp,maxHp,ac,attackBonus,damage,xpReward\ngoblin,Goblin,0,0,12,2,1d6,25\n", encoding="utf-8")
    proc = _run_lint("--data-dir", str(story_csv_dir))
    assert proc.returncode == 1
    assert "enemies.csv [error]" in proc.stdout
    assert "DATA012" in proc.stdout


def test_missing_table_is_fatal(tmp_path: Path) -> None:
    proc = _run_lint("--data-dir", str(tmp_path / "nowhere"))
    assert proc.returncode == 2
    assert "Fatal" in proc.stderr


def test_format_table_groups_by_file(story_csv_dir: Path) -> None:
    nodes_csv = story_csv_dir / "nodes.csv"
    nodes_csv.write_text(nodes_csv.read_text(encoding="utf-8") + "n_fall,ending,Again.\n", encoding="utf-8")
    report = lint_data(story_csv_dir)
    text = format_table(report)
    assert "nodes.csv [warning]" in text
    assert "  DATA001:8: Duplicate ID \"n_fall\" (also at row 5)" in text
    assert text.endswith("0 error(s), 1 warning(s)")
