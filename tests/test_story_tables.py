from pathlib import Path

import pytest

from storygraph.modules.story_data.errors import TableReadError, TableWriteError
from storygraph.modules.story_data.tables import backup_file, read_table, write_text, write_texts


def test_read_table_trims_and_skips_blank_lines(tmp_path: Path) -> None:
    path = tmp_path / "items.csv"
    path.write_text(" id , name ,type\n torch , Torch ,tool\n\n,,\nrope,Rope\n", encoding="utf-8")
    assert read_table(path) == [
        {"id": "torch", "name": "Torch", "type": "tool"},
        {"id": "rope", "name": "Rope", "type": ""},
    ]


def test_read_table_handles_quoted_cells(tmp_path: Path) -> None:
    path = tmp_path / "nodes.csv"
    path.write_text('id,text\nn_a,"Line one,\nline ""two"""\n', encoding="utf-8")
    assert read_table(path) == [{"id": "n_a", "text": 'Line one,\nline "two"'}]


def test_read_table_failures_raise_table_read_error(tmp_path: Path) -> None:
    with pytest.raises(TableReadError) as missing:
        read_table(tmp_path / "missing.csv")
    assert missing.value.code == "TABLE_READ_FAILED"

    broken = tmp_path / "broken.csv"
    broken.write_text('id,text\nn_a,"unterminated"x\n', encoding="utf-8")
    with pytest.raises(TableReadError):
        read_table(broken)


def test_backup_file_only_for_existing_files(tmp_path: Path) -> None:
    assert backup_file(tmp_path / "nodes.csv", 123) is None
    original = write_text(tmp_path / "nodes.csv", "id\nn_a")
    backup = backup_file(original, 123)
    assert backup == tmp_path / "nodes.csv.bak.123"
    assert backup.read_text(encoding="utf-8") == "id\nn_a"


def test_write_texts_swaps_in_every_file(tmp_path: Path) -> None:
    write_text(tmp_path / "nodes.csv", "id\nn_old")
    written = write_texts({tmp_path / "nodes.csv": "id\nn_new", tmp_path / "items.csv": "id\ntorch"})
    assert written == [tmp_path / "nodes.csv", tmp_path / "items.csv"]
    assert (tmp_path / "nodes.csv").read_text(encoding="utf-8") == "id\nn_new"
    assert list(tmp_path.glob("*.tmp")) == []


def test_write_texts_writes_nothing_when_one_file_fails(tmp_path: Path) -> None:
    write_text(tmp_path / "nodes.csv", "id\nn_old")
    (tmp_path / "items.csv.tmp").mkdir()
    with pytest.raises(TableWriteError):
        write_texts({tmp_path / "nodes.csv": "id\nn_new", tmp_path / "items.csv": "id\ntorch"})
    assert (tmp_path / "nodes.csv").read_text(encoding="utf-8") == "id\nn_old"
    assert not (tmp_path / "nodes.csv.tmp").exists()
    assert not (tmp_path / "items.csv").exists()
