"""
burstcounter — Matrix Exporter

Renders sparse pair tables as dense, name-sorted square matrices and writes
one plain-text artifact per (window, policy).

Artifact format (no trailing newline):
  [[0,2,1],
  [0,0,3],
  [1,0,0]]

Row i / column j is the count for (names[i] → names[j]). Every known event
name gets a row and a column, including names that never qualified for the
table; missing pairs and the diagonal are 0.

Writes go to a temporary file in the target directory and are moved into
place with os.replace, so a reader only ever sees a complete artifact.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from collections.abc import Callable, Sequence
from pathlib import Path

import structlog

from burstcounter.systems.correlation.errors import ExportError
from burstcounter.systems.correlation.types import (
    WINDOW_SIZES,
    ArtifactResult,
    CountingPolicy,
    ExportReport,
    PairTable,
)

logger = structlog.get_logger()

Matrix = list[list[int]]


class MatrixExporter:
    def __init__(self, output_dir: str | Path = ".", artifact_prefix: str = "bc") -> None:
        self._output_dir = Path(output_dir)
        self._prefix = artifact_prefix
        self._logger = logger.bind(system="burstcounter.exporter")

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def artifact_path(self, window: int, policy: CountingPolicy) -> Path:
        return self._output_dir / f"{self._prefix}{window}v{CountingPolicy(policy).value}.txt"

    # ─── Dense conversion ─────────────────────────────────────────────────────

    @staticmethod
    def build_matrix(table: PairTable, names: Sequence[str]) -> Matrix:
        matrix: Matrix = []
        for earlier in names:
            row = table.get(earlier, {})
            matrix.append([
                row[later].count if later in row and later != earlier else 0
                for later in names
            ])
        return matrix

    @staticmethod
    def render_matrix(matrix: Matrix) -> str:
        rows = ["[" + ",".join(str(c) for c in row) + "]" for row in matrix]
        return "[" + ",\n".join(rows) + "]"

    # ─── Artifacts ────────────────────────────────────────────────────────────

    def export(
        self,
        window: int,
        policy: CountingPolicy,
        table: PairTable,
        names: Sequence[str],
    ) -> ArtifactResult:
        """
        Write the artifact for one table. Raises ExportError on failure.
        Never mutates the table.
        """
        if window not in WINDOW_SIZES:
            raise ValueError(f"unknown window {window}; expected one of {WINDOW_SIZES}")
        policy = CountingPolicy(policy)
        path = self.artifact_path(window, policy)
        text = self.render_matrix(self.build_matrix(table, names))

        try:
            _write_atomic(path, text)
        except OSError as exc:
            raise ExportError(path, window, policy.value, str(exc)) from exc

        self._logger.debug(
            "artifact_written",
            path=str(path),
            window=window,
            policy=policy.name.lower(),
            dimension=len(names),
        )
        return ArtifactResult(
            window=window,
            policy=policy,
            path=path,
            dimension=len(names),
            written=True,
        )

    def export_all(
        self,
        table_for: Callable[[int, CountingPolicy], PairTable],
        names: Sequence[str],
        run_id: str = "",
    ) -> ExportReport:
        """
        Export every (window, policy) table, cumulative then debounced for
        each window in ascending order. One failed artifact does not stop
        the rest; failures are logged and recorded in the report.
        """
        names = list(names)
        report = ExportReport(run_id=run_id, event_names=names)

        for window in WINDOW_SIZES:
            for policy in (CountingPolicy.CUMULATIVE, CountingPolicy.DEBOUNCED):
                try:
                    result = self.export(window, policy, table_for(window, policy), names)
                except ExportError as exc:
                    self._logger.error(
                        "artifact_write_failed",
                        path=str(exc.path),
                        window=window,
                        policy=policy.name.lower(),
                        error=exc.reason,
                    )
                    result = ArtifactResult(
                        window=window,
                        policy=policy,
                        path=exc.path,
                        dimension=len(names),
                        error=exc.reason,
                    )
                report.artifacts.append(result)

        self._logger.info(
            "burst_counters_exported",
            output_dir=str(self._output_dir),
            events=len(names),
            written=len(report.artifacts) - len(report.failures),
            failed=len(report.failures),
        )
        return report


def _write_atomic(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        mode="w",
        encoding="utf-8",
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
        delete=False,
    ) as tmp:
        tmp_path = Path(tmp.name)
        try:
            tmp.write(text)
            tmp.flush()
            os.fsync(tmp.fileno())
        except OSError:
            tmp.close()
            with contextlib.suppress(OSError):
                tmp_path.unlink()
            raise
    try:
        # NamedTemporaryFile creates 0600; artifacts follow the umask like a plain open()
        os.chmod(tmp_path, 0o666 & ~_current_umask())
        os.replace(tmp_path, path)
    except OSError:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise


def _current_umask() -> int:
    mask = os.umask(0)
    os.umask(mask)
    return mask

