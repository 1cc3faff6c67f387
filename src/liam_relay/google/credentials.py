"""OAuth2 credentials and API service builders for Google Workspace."""

from __future__ import annotations

import logging
from typing import Any

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from liam_relay.config import settings

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"
SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets.readonly",
    "https://www.googleapis.com/auth/drive",
    "https://www.googleapis.com/auth/documents",
]


def get_credentials() -> Credentials:
    """Return refresh-token credentials built from the configured client.

    The access token is fetched lazily by the client library on first use.
    """
    if not settings.google_refresh_token:
        logger.warning("GOOGLE_REFRESH_TOKEN is not set; Google API calls will fail")
    return Credentials(
        token=None,
        refresh_token=settings.google_refresh_token,
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        token_uri=TOKEN_URI,
        scopes=SCOPES,
    )


def build_service(name: str, version: str, credentials: Credentials | None = None) -> Any:
    """Build a discovery-based client, e.g. ``build_service("sheets", "v4")``."""
    return build(name, version, credentials=credentials or get_credentials(), cache_discovery=False)
