import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Protocol

from errors import ExportDeliveryError

logger = logging.getLogger(__name__)


class ExportDelivery(Protocol):
    def deliver(self, file_name: str, content: str) -> Path: ...


class DirectoryExportDelivery:
    """Writes finished reports into a local export directory."""

    def __init__(self, export_dir: Optional[Path]) -> None:
        self.export_dir = export_dir

    def deliver(self, file_name: str, content: str) -> Path:
        if self.export_dir is None:
            raise ExportDeliveryError("No export location is available")
        if Path(file_name).name != file_name:
            raise ExportDeliveryError(f"Invalid export file name: {file_name!r}")

        target = self.export_dir / file_name
        tmp_name: Optional[str] = None
        try:
            self.export_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.export_dir, prefix=".export-", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
                handle.write(content)
            os.replace(tmp_name, target)
        except OSError as exc:
            logger.exception("export_delivery_failed: file=%s", file_name)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise ExportDeliveryError(f"Could not write {file_name}: {exc}") from exc

        logger.info("export_delivered: file=%s bytes=%d", target, len(content))
        return target
