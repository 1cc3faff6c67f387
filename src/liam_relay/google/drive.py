"""Google Drive / Docs operations: upload, create document, list."""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Any

from googleapiclient.http import MediaFileUpload

from liam_relay.config import settings

logger = logging.getLogger(__name__)

DOCUMENT_MIME_TYPE = "application/vnd.google-apps.document"


def _quote(value: str) -> str:
    """Quote *value* as a Drive query string literal."""
    escaped = value.replace("\\", "\\\\").replace("'", "\\'")
    return f"'{escaped}'"


class DriveClient:
    """Thin wrapper over the Drive v3 and Docs v1 services.

    Parameters
    ----------
    drive, docs:
        Pre-built services.  Built from the configured credentials on first
        use when *None*.
    default_folder_id:
        Folder used when a call does not name one; defaults to
        ``settings.google_drive_folder_id``.
    """

    def __init__(
        self,
        drive: Any = None,
        docs: Any = None,
        *,
        default_folder_id: str | None = None,
    ) -> None:
        self._drive = drive
        self._docs = docs
        self.default_folder_id = default_folder_id or settings.google_drive_folder_id

    @property
    def drive(self) -> Any:
        if self._drive is None:
            from liam_relay.google.credentials import build_service

            self._drive = build_service("drive", "v3")
        return self._drive

    @property
    def docs(self) -> Any:
        if self._docs is None:
            from liam_relay.google.credentials import build_service

            self._docs = build_service("docs", "v1")
        return self._docs

    def _parents(self, folder_id: str | None) -> list[str]:
        folder_id = folder_id or self.default_folder_id
        return [folder_id] if folder_id else []

    # -- operations -----------------------------------------------------------

    def upload_file(
        self,
        path: str | Path,
        *,
        folder_id: str | None = None,
        name: str | None = None,
        mime_type: str | None = None,
    ) -> dict[str, Any]:
        """Upload a local file and return ``{id, name, webViewLink}``."""
        path = Path(path)
        mime_type = mime_type or mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        body: dict[str, Any] = {"name": name or path.name}
        parents = self._parents(folder_id)
        if parents:
            body["parents"] = parents

        media = MediaFileUpload(str(path), mimetype=mime_type, resumable=False)
        created = (
            self.drive.files()
            .create(body=body, media_body=media, fields="id, name, webViewLink")
            .execute()
        )
        logger.info("Uploaded %s to Drive as %s", path, created.get("id"))
        return created

    def create_document(
        self,
        title: str,
        content: str = "",
        *,
        folder_id: str | None = None,
    ) -> dict[str, Any]:
        """Create a Google Doc containing *content* and return ``{id, name, url}``."""
        body: dict[str, Any] = {"name": title, "mimeType": DOCUMENT_MIME_TYPE}
        parents = self._parents(folder_id)
        if parents:
            body["parents"] = parents

        created = self.drive.files().create(body=body, fields="id, name").execute()
        doc_id = created["id"]
        if content:
            requests = [{"insertText": {"location": {"index": 1}, "text": content}}]
            self.docs.documents().batchUpdate(documentId=doc_id, body={"requests": requests}).execute()

        logger.info("Created document %r (%s)", title, doc_id)
        return {
            "id": doc_id,
            "name": created.get("name", title),
            "url": f"https://docs.google.com/document/d/{doc_id}/edit",
        }

    def list_files(self, *, folder_id: str | None = None, page_size: int = 50) -> list[dict[str, Any]]:
        """List non-trashed files, newest first, optionally within one folder."""
        query = "trashed = false"
        parents = self._parents(folder_id)
        if parents:
            query += f" and {_quote(parents[0])} in parents"
        response = (
            self.drive.files()
            .list(
                q=query,
                pageSize=page_size,
                orderBy="modifiedTime desc",
                fields="files(id, name, mimeType, modifiedTime)",
            )
            .execute()
        )
        return response.get("files", [])
