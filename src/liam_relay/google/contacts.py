"""Recipient lookup against a two-column (name, email) contacts sheet."""

from __future__ import annotations

import logging
from typing import Any

from liam_relay.config import settings

logger = logging.getLogger(__name__)


class ContactDirectory:
    """Resolve display names to email addresses from a Google Sheet.

    Parameters
    ----------
    service:
        A Sheets v4 service.  Built from the configured credentials on
        first use when *None*.
    sheet_id:
        Spreadsheet id; defaults to ``settings.google_sheet_id``.
    cell_range:
        A1 range whose first column holds names and second column holds
        addresses; defaults to ``settings.google_sheet_range``.
    """

    def __init__(
        self,
        service: Any = None,
        *,
        sheet_id: str | None = None,
        cell_range: str | None = None,
    ) -> None:
        self._service = service
        self.sheet_id = sheet_id or settings.google_sheet_id
        self.cell_range = cell_range or settings.google_sheet_range

    @property
    def service(self) -> Any:
        if self._service is None:
            from liam_relay.google.credentials import build_service

            self._service = build_service("sheets", "v4")
        return self._service

    def rows(self) -> list[list[str]]:
        response = (
            self.service.spreadsheets()
            .values()
            .get(spreadsheetId=self.sheet_id, range=self.cell_range)
            .execute()
        )
        return response.get("values", [])

    def resolve_email(self, name: str) -> str | None:
        """Return the address on the first row whose name matches, ignoring case."""
        wanted = name.strip().lower()
        for row in self.rows():
            if len(row) >= 2 and row[0].strip().lower() == wanted:
                return row[1].strip()
        logger.info("No contact row matches %r", name)
        return None
