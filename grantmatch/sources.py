"""
Catalog store adapters.

A source only knows how to reach the store and hand back raw entries (dicts).
Validation happens in the loader, so a source never drops entries itself.
Every failure to reach the store surfaces as CatalogUnavailable.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

import requests
from sqlalchemy.exc import SQLAlchemyError

from .database import Grant, get_session, grant_to_dict
from .errors import CatalogUnavailable
from .retry import is_transient_error, should_retry_http_status


def _entries_from_payload(payload: Any, origin: str) -> List[Dict[str, Any]]:
    # Accept a bare list or {"grants": [...]}
    if isinstance(payload, dict):
        payload = payload.get("grants")
    if not isinstance(payload, list):
        raise CatalogUnavailable(f"Catalog at {origin} has no grant list", transient=False)
    return payload


class DatabaseCatalogSource:
    """Reads the grants table from a SQLite catalog store."""

    name = "database"

    def __init__(self, db_path: Path):
        self.db_path = Path(db_path)

    def describe(self) -> str:
        return str(self.db_path)

    def fetch(self) -> List[Dict[str, Any]]:
        # sqlite would silently create an empty file
        if not self.db_path.exists():
            raise CatalogUnavailable(f"Catalog database not found: {self.db_path}", transient=False)

        session = get_session(self.db_path)
        try:
            rows = session.query(Grant).order_by(Grant.id).all()
            return [grant_to_dict(row) for row in rows]
        except SQLAlchemyError as e:
            raise CatalogUnavailable(
                f"Catalog database query failed: {e}", transient=is_transient_error(e)
            ) from e
        finally:
            session.close()


class JsonFileCatalogSource:
    """Reads a JSON export of the catalog."""

    name = "file"

    def __init__(self, path: Path):
        self.path = Path(path)

    def describe(self) -> str:
        return str(self.path)

    def fetch(self) -> List[Dict[str, Any]]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                payload = json.load(f)
        except FileNotFoundError as e:
            raise CatalogUnavailable(f"Catalog file not found: {self.path}", transient=False) from e
        except json.JSONDecodeError as e:
            raise CatalogUnavailable(f"Catalog file is not valid JSON: {self.path} ({e})", transient=False) from e
        except OSError as e:
            raise CatalogUnavailable(f"Catalog file unreadable: {self.path} ({e})") from e
        return _entries_from_payload(payload, str(self.path))


class HttpCatalogSource:
    """Fetches the catalog from an HTTP endpoint serving JSON."""

    name = "http"

    def __init__(self, url: str, timeout: float = 15.0):
        self.url = url
        self.timeout = timeout

    def describe(self) -> str:
        return self.url

    def fetch(self) -> List[Dict[str, Any]]:
        try:
            resp = requests.get(self.url, timeout=self.timeout)
            resp.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else 0
            raise CatalogUnavailable(
                f"Catalog request failed ({status}): {self.url}",
                transient=should_retry_http_status(status),
            ) from e
        except requests.exceptions.Timeout as e:
            raise CatalogUnavailable(f"Catalog request timed out: {self.url}") from e
        except requests.exceptions.RequestException as e:
            raise CatalogUnavailable(f"Catalog request error: {e}") from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise CatalogUnavailable(f"Catalog response is not valid JSON: {self.url}", transient=False) from e
        return _entries_from_payload(payload, self.url)
