"""
sink.py - Report output sinks

Append-only text outputs for report lines.

DESIGN PHILOSOPHY:
- One write() per accepted report trigger
- A failing sink reports the failure once, then disables itself
- Sinks are context managers; close() is safe to call repeatedly
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional

logger = logging.getLogger('dtnreport.sink')


class ReportOutputError(RuntimeError):
    """Writing to a report's output failed; the report is disabled."""


class ReportSink(ABC):
    """
    Abstract append-only output for one report instance.

    Subclasses implement _write() and _close(); this class handles the
    disable-after-failure policy.
    """

    def __init__(self, name: str):
        self.name = name
        self.failed = False
        self.closed = False

    def write(self, text: str):
        """
        Append text as one write, terminated by a newline.

        Raises:
            ReportOutputError: On the first failed write. Later writes to a
                failed sink are silently dropped.
        """
        if self.failed or self.closed:
            return

        try:
            self._write(text + "\n")
        except OSError as e:
            self.failed = True
            logger.error(f"Report output {self.name} failed, disabling further writes: {e}")
            raise ReportOutputError(f"Cannot write to report output {self.name}: {e}") from e

    def close(self):
        """Release the underlying resource."""
        if self.closed:
            return
        self.closed = True
        try:
            self._close()
        except OSError as e:
            logger.error(f"Closing report output {self.name} failed: {e}")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    @abstractmethod
    def _write(self, text: str):
        pass

    @abstractmethod
    def _close(self):
        pass


class FileReportSink(ReportSink):
    """Writes report output to a text file, opened on construction."""

    def __init__(self, path: str):
        """
        Open the report file.

        Args:
            path: Output file path (parent directories are created)
        """
        self.path = Path(path)
        super().__init__(self.path.name)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self.path, 'w')

    def _write(self, text: str):
        self._file.write(text)
        self._file.flush()

    def _close(self):
        self._file.close()


class MemoryReportSink(ReportSink):
    """Keeps report writes in memory (used by tests and embedding code)."""

    def __init__(self, name: str = "memory"):
        super().__init__(name)
        self.writes: List[str] = []

    def _write(self, text: str):
        self.writes.append(text)

    def _close(self):
        pass

    def getvalue(self) -> str:
        return "".join(self.writes)

    def lines(self) -> List[str]:
        """All written lines, without trailing newlines."""
        return self.getvalue().splitlines()


def open_report_sink(report_dir: Optional[str], name: str) -> ReportSink:
    """
    Create the sink for a report instance.

    Args:
        report_dir: Directory for report files, or None for in-memory output
        name: Report instance name (file is <report_dir>/<name>.txt)
    """
    if report_dir is None:
        return MemoryReportSink(name)
    return FileReportSink(str(Path(report_dir) / f"{name}.txt"))
