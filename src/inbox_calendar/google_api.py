"""Shared construction of authorized Google API service objects."""

from __future__ import annotations

import os

DEFAULT_TIMEOUT = float(os.environ.get("INBOX_CALENDAR_REQUEST_TIMEOUT", "30"))


def build_service(api: str, version: str, credentials, timeout: float | None = None):
    """Build a discovery service whose HTTP transport enforces a timeout.

    Args:
        credentials: A google.oauth2.credentials.Credentials object.
        timeout: Socket timeout in seconds for every request.
    """
    try:
        import google_auth_httplib2
        import httplib2
        from googleapiclient.discovery import build
    except ImportError:
        raise ImportError(
            "google-api-python-client is required for Google services. "
            "Install with: pip install inbox-calendar"
        )
    http = google_auth_httplib2.AuthorizedHttp(
        credentials,
        http=httplib2.Http(timeout=timeout or DEFAULT_TIMEOUT),
    )
    return build(api, version, http=http, cache_discovery=False)
