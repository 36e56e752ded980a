from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from shelfie.domain.import_pipeline import (
    BatchSummary,
    ImportRunResult,
    RecordCompleted,
    RecordFailed,
)
from shelfie.domain.model import ImportStatus, new_id
from shelfie.ui import cli
from tests.helpers.imports import HOUSEHOLD_ID, START, make_batch

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def export_file(tmp_path: Path) -> Path:
    path = tmp_path / "export.csv"
    path.write_text("title\nDune\n", encoding="utf-8")
    return path


def _finished_result() -> ImportRunResult:
    batch = make_batch()
    batch.finish(ImportStatus.COMPLETED, START)
    return ImportRunResult(
        batch=batch,
        outcomes=[
            RecordCompleted(record_id=new_id(), external_id="row:2", item_id=new_id(), created=True),
            RecordFailed(record_id=new_id(), external_id="row:3", error="invalid payload"),
        ],
    )


def test_import_command_passes_options(
    monkeypatch: pytest.MonkeyPatch, export_file: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    def fake_import_file(path: Path, **kwargs: object) -> ImportRunResult:
        captured["path"] = path
        captured.update(kwargs)
        return _finished_result()

    monkeypatch.setattr(cli, "import_file", fake_import_file)

    cli.main(
        [
            "import",
            str(export_file),
            "--household-id",
            str(HOUSEHOLD_ID),
            "--source",
            "goodreads",
            "--archive",
        ]
    )

    assert captured["path"] == export_file
    assert captured["household_id"] == HOUSEHOLD_ID
    assert captured["source"] == "goodreads"
    assert captured["source_format"] is None
    assert captured["archive"] is True
    assert captured["cancel"] is cli.CANCEL_IMPORT
    output = capsys.readouterr().out
    assert "completed=1 failed=1 duplicates=0" in output
    assert "! row:3: invalid payload" in output


def test_import_command_rejects_bad_household_id(
    monkeypatch: pytest.MonkeyPatch, export_file: Path
) -> None:
    monkeypatch.setattr(cli, "import_file", lambda *_, **__: pytest.fail("should not import"))

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["import", str(export_file), "--household-id", "not-a-uuid"])

    assert excinfo.value.code == 2


def test_import_command_rejects_missing_file(tmp_path: Path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["import", str(tmp_path / "nope.csv"), "--household-id", str(HOUSEHOLD_ID)])

    assert excinfo.value.code == 2


def test_import_command_requires_known_format(tmp_path: Path) -> None:
    path = tmp_path / "export.xlsx"
    path.write_bytes(b"")

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["import", str(path), "--household-id", str(HOUSEHOLD_ID)])

    assert excinfo.value.code == 2


def test_failing_command_exits_with_error(
    monkeypatch: pytest.MonkeyPatch, export_file: Path
) -> None:
    def exploding_import(*_: object, **__: object) -> ImportRunResult:
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(cli, "import_file", exploding_import)

    with pytest.raises(SystemExit) as excinfo:
        cli.main(["import", str(export_file), "--household-id", str(HOUSEHOLD_ID)])

    assert excinfo.value.code == 1


def test_report_command_prints_summary(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    batch_id = new_id()
    summary = BatchSummary(
        batch_id=batch_id,
        status=ImportStatus.COMPLETED,
        total=3,
        completed=3,
        failed=0,
        pending=0,
        duplicates_skipped=2,
    )
    monkeypatch.setattr(cli, "summarize_batch", lambda received: summary)
    monkeypatch.setattr(
        cli, "list_batch_failures", lambda *_: pytest.fail("no failures to list")
    )

    cli.main(["report", str(batch_id), "--failures"])

    output = capsys.readouterr().out
    assert f"batch {batch_id}: completed" in output
    assert "total=3 completed=3 failed=0 pending=0 duplicates_skipped=2" in output


def test_batches_command_validates_paging() -> None:
    with pytest.raises(SystemExit) as excinfo:
        cli.main(["batches", "--household-id", str(HOUSEHOLD_ID), "--take", "-1"])

    assert excinfo.value.code == 2


def test_search_command_forwards_filters(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    captured: dict[str, object] = {}

    def fake_search(household_id: object, **kwargs: object) -> list[object]:
        captured["household_id"] = household_id
        captured.update(kwargs)
        return []

    monkeypatch.setattr(cli, "search_items", fake_search)

    cli.main(
        ["search", "--household-id", str(HOUSEHOLD_ID), "--query", "dune", "--location", "A"]
    )

    assert captured == {
        "household_id": HOUSEHOLD_ID,
        "query": "dune",
        "barcode": None,
        "status": None,
        "location": "A",
        "take": 50,
    }
    assert capsys.readouterr().out == ""


def test_sigint_during_import_requests_cancellation_before_exiting() -> None:
    cli.CANCEL_IMPORT.clear()
    cli.IMPORT_RUNNING.set()
    try:
        cli.sigint_handler(2, None)
        assert cli.CANCEL_IMPORT.is_set()

        with pytest.raises(SystemExit) as excinfo:
            cli.sigint_handler(2, None)
        assert excinfo.value.code == 0
    finally:
        cli.IMPORT_RUNNING.clear()
        cli.CANCEL_IMPORT.clear()


def test_sigint_outside_import_exits_immediately() -> None:
    cli.CANCEL_IMPORT.clear()

    with pytest.raises(SystemExit) as excinfo:
        cli.sigint_handler(2, None)

    assert excinfo.value.code == 0
    assert not cli.CANCEL_IMPORT.is_set()


def test_import_command_arms_cancellation_only_while_running(
    monkeypatch: pytest.MonkeyPatch, export_file: Path
) -> None:
    running: list[bool] = []

    def fake_import_file(*_: object, **__: object) -> ImportRunResult:
        running.append(cli.IMPORT_RUNNING.is_set())
        return _finished_result()

    monkeypatch.setattr(cli, "import_file", fake_import_file)

    cli.main(["import", str(export_file), "--household-id", str(HOUSEHOLD_ID)])

    assert running == [True]
    assert not cli.IMPORT_RUNNING.is_set()
