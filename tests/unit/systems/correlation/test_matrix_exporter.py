"""
Unit tests for the MatrixExporter: dense conversion, text format and
artifact writing.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

import pytest

import burstcounter.systems.correlation.exporter as exporter_module
from burstcounter.systems.correlation.engine import CorrelationEngine
from burstcounter.systems.correlation.errors import ExportError
from burstcounter.systems.correlation.exporter import MatrixExporter
from burstcounter.systems.correlation.ledger import EventLedger
from burstcounter.systems.correlation.types import (
    WINDOW_SIZES,
    CountingPolicy,
    PairCounter,
)

CUM = CountingPolicy.CUMULATIVE
DEB = CountingPolicy.DEBOUNCED


# ─── Fixtures ─────────────────────────────────────────────────────────────────


def make_populated() -> tuple[EventLedger, CorrelationEngine]:
    engine = CorrelationEngine()
    ledger = EventLedger(1, engine=engine)
    # Updated out of lexical order on purpose
    ledger.update("gamma", 1.0, 0)
    ledger.update("alpha", 2.0, 5)    # gamma → alpha (16)
    ledger.update("beta", 3.0, 40)    # gamma → beta (64), alpha → beta (64)
    ledger.update("alpha", 4.0, 45)   # beta → alpha (16), gamma → alpha (64)
    return ledger, engine


def artifact_names(tmp_path: Path) -> set[str]:
    return {p.name for p in tmp_path.iterdir()}


# ─── Tests: dense conversion ─────────────────────────────────────────────────


class TestBuildMatrix:
    def test_rows_and_columns_sorted(self):
        ledger, engine = make_populated()
        matrix = MatrixExporter.build_matrix(engine.table(64, CUM), ledger.names())
        # alpha, beta, gamma
        assert matrix == [
            [0, 1, 0],
            [0, 0, 0],
            [1, 1, 0],
        ]

    def test_names_absent_from_table_still_get_rows(self):
        ledger, engine = make_populated()
        matrix = MatrixExporter.build_matrix(engine.table(256, DEB), ledger.names())
        assert matrix == [[0, 0, 0], [0, 0, 0], [0, 0, 0]]

    def test_square_with_zero_diagonal_for_every_table(self):
        ledger, engine = make_populated()
        names = ledger.names()
        for policy in CountingPolicy:
            for window in WINDOW_SIZES:
                matrix = MatrixExporter.build_matrix(engine.table(window, policy), names)
                assert len(matrix) == len(names)
                assert all(len(row) == len(names) for row in matrix)
                assert all(matrix[i][i] == 0 for i in range(len(names)))

    def test_diagonal_forced_to_zero(self):
        table = {"a": {"a": PairCounter(count=9), "b": PairCounter(count=2)}}
        assert MatrixExporter.build_matrix(table, ["a", "b"]) == [[0, 2], [0, 0]]


class TestRenderMatrix:
    def test_format(self):
        text = MatrixExporter.render_matrix([[0, 12, 3], [4, 0, 6], [7, 8, 0]])
        assert text == "[[0,12,3],\n[4,0,6],\n[7,8,0]]"

    def test_single_event(self):
        assert MatrixExporter.render_matrix([[0]]) == "[[0]]"

    def test_no_events(self):
        assert MatrixExporter.render_matrix([]) == "[]"


# ─── Tests: artifacts ─────────────────────────────────────────────────────────


class TestExport:
    def test_artifact_name_and_content(self, tmp_path):
        ledger, engine = make_populated()
        exporter = MatrixExporter(tmp_path)
        result = exporter.export(16, CUM, engine.table(16, CUM), ledger.names())

        assert result.written
        assert result.path == tmp_path / "bc16v1.txt"
        assert result.dimension == 3
        content = result.path.read_text(encoding="utf-8")
        assert content == "[[0,0,0],\n[1,0,0],\n[1,0,0]]"
        assert not content.endswith("\n")

    def test_custom_prefix(self, tmp_path):
        exporter = MatrixExporter(tmp_path, artifact_prefix="run7_")
        assert exporter.artifact_path(128, DEB) == tmp_path / "run7_128v2.txt"

    def test_creates_output_dir(self, tmp_path):
        out = tmp_path / "nested" / "dir"
        exporter = MatrixExporter(out)
        exporter.export(32, DEB, {}, ["a"])
        assert (out / "bc32v2.txt").read_text() == "[[0]]"

    def test_unknown_window_rejected(self, tmp_path):
        with pytest.raises(ValueError):
            MatrixExporter(tmp_path).export(20, CUM, {}, [])

    def test_export_does_not_mutate_table(self, tmp_path):
        ledger, engine = make_populated()
        table = engine.table(64, CUM)
        before = {k: dict(v) for k, v in table.items()}
        MatrixExporter(tmp_path).export(64, CUM, table, ledger.names())
        assert table == before
        assert "beta" not in table

    def test_artifact_mode_follows_umask(self, tmp_path):
        old_mask = os.umask(0o022)
        try:
            result = MatrixExporter(tmp_path).export(16, CUM, {}, ["a"])
        finally:
            os.umask(old_mask)
        assert stat.S_IMODE(result.path.stat().st_mode) == 0o644

    def test_failed_write_keeps_previous_artifact(self, tmp_path, monkeypatch):
        exporter = MatrixExporter(tmp_path)
        exporter.export(16, CUM, {}, ["a"])

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(exporter_module.os, "replace", broken_replace)
        with pytest.raises(ExportError) as exc_info:
            exporter.export(16, CUM, {"a": {"b": PairCounter(count=5)}}, ["a", "b"])

        assert exc_info.value.path == tmp_path / "bc16v1.txt"
        assert exc_info.value.window == 16
        assert exc_info.value.policy == 1
        assert (tmp_path / "bc16v1.txt").read_text() == "[[0]]"
        # Temporary file cleaned up
        assert artifact_names(tmp_path) == {"bc16v1.txt"}


class TestExportAll:
    def test_writes_ten_artifacts(self, tmp_path):
        ledger, engine = make_populated()
        report = MatrixExporter(tmp_path).export_all(engine.table, ledger.names(), run_id="r1")

        assert report.ok
        assert report.run_id == "r1"
        assert report.event_names == ["alpha", "beta", "gamma"]
        assert [(a.window, a.policy) for a in report.artifacts] == [
            (w, p) for w in WINDOW_SIZES for p in (CUM, DEB)
        ]
        assert artifact_names(tmp_path) == {
            f"bc{w}v{p}.txt" for w in WINDOW_SIZES for p in (1, 2)
        }

    def test_same_dimension_in_every_artifact(self, tmp_path):
        ledger, engine = make_populated()
        MatrixExporter(tmp_path).export_all(engine.table, ledger.names())
        for path in tmp_path.iterdir():
            rows = path.read_text().split(",\n")
            assert len(rows) == 3
            assert all(row.strip("[]").count(",") == 2 for row in rows)

    def test_one_failure_does_not_stop_the_rest(self, tmp_path, monkeypatch):
        ledger, engine = make_populated()
        real_replace = os.replace

        def flaky_replace(src, dst):
            if Path(dst).name == "bc64v2.txt":
                raise OSError("read-only")
            real_replace(src, dst)

        monkeypatch.setattr(exporter_module.os, "replace", flaky_replace)
        report = MatrixExporter(tmp_path).export_all(engine.table, ledger.names())

        assert not report.ok
        assert [(a.window, a.policy) for a in report.failures] == [(64, DEB)]
        assert report.failures[0].error == "read-only"
        assert len(artifact_names(tmp_path)) == 9
