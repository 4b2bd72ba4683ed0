"""Filesystem archive for rendered report PDFs."""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

import structlog
from homeaudit.core.config import Settings, get_settings
from homeaudit.domain.errors import NotFoundError

logger = structlog.get_logger()

_SAFE_NAME = re.compile(r"^[A-Za-z0-9_-]+$")


class LocalReportArchive:
    """Stores each report as ``<report_number>.pdf`` under one directory."""

    def __init__(self, base_dir: str | Path | None = None, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.base_dir = Path(base_dir or self.settings.report_archive_dir)

    def _path_for(self, report_number: str) -> Path:
        if not _SAFE_NAME.match(report_number):
            raise ValueError(f"Unsafe report number: {report_number!r}")
        return self.base_dir / f"{report_number}.pdf"

    def public_url(self, appointment_id: str) -> str:
        return f"{self.settings.public_base_url.rstrip('/')}/api/reports/{appointment_id}/pdf"

    async def store(self, *, report_number: str, appointment_id: str, content: bytes) -> str:
        path = self._path_for(report_number)
        await asyncio.to_thread(self._write, path, content)
        await logger.ainfo("report_archived", report_number=report_number, path=str(path))
        return self.public_url(appointment_id)

    async def read(self, report_number: str) -> bytes:
        path = self._path_for(report_number)
        try:
            return await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise NotFoundError(f"Report file {report_number} not found") from exc

    @staticmethod
    def _write(path: Path, content: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".pdf.tmp")
        tmp.write_bytes(content)
        tmp.replace(path)
