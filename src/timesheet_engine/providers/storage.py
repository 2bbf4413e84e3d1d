"""Local filesystem storage for invoice PDFs."""

from __future__ import annotations

import logging
import re
from datetime import date
from pathlib import Path
from uuid import UUID

logger = logging.getLogger(__name__)

_UNSAFE = re.compile(r"[^a-zA-Z0-9]")


def pdf_filename(invoice_id: UUID, contractor_name: str, on: date) -> str:
    safe_name = _UNSAFE.sub("_", contractor_name)
    return f"invoice_{invoice_id}_{safe_name}_{on.isoformat()}.pdf"


class PdfStorage:
    """Stores PDFs under ``base_dir`` and addresses them by public url."""

    def __init__(self, base_dir: str | Path, url_prefix: str = "/uploads/invoices"):
        self.base_dir = Path(base_dir)
        self.url_prefix = url_prefix.rstrip("/")

    def path_for(self, url: str) -> Path:
        return self.base_dir / Path(url).name

    def save(
        self, invoice_id: UUID, contractor_name: str, content: bytes, on: date
    ) -> str:
        """Write ``content`` and return its public url."""
        self.base_dir.mkdir(parents=True, exist_ok=True)
        filename = pdf_filename(invoice_id, contractor_name, on)
        (self.base_dir / filename).write_bytes(content)
        return f"{self.url_prefix}/{filename}"

    def delete(self, url: str) -> bool:
        """Remove a stored PDF; returns False when it was already gone."""
        path = self.path_for(url)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("PDF %s already removed", path)
            return False
        return True

    def exists(self, url: str) -> bool:
        return self.path_for(url).is_file()
