"""Outing record storage.

The editor only needs create / update / get from its storage collaborator;
delete and list round out the record service. Two backends:

  JsonFileOutingStore  one <id>.json document per outing in a directory
                       (local development, CLI use, tests).
  HttpOutingStore      a REST document service:
                         POST   /outings            -> {"id": "..."}
                         PUT    /outings/<id>
                         GET    /outings/<id>
                         DELETE /outings/<id>
                         GET    /outings[?isPublic=true]  -> [document, ...]
                       The service stamps createdAt / updatedAt itself.

Documents use the camelCase keys of OutingRecord.to_document(). Null fields
are never written to disk; an update sends the record's cleared fields as
null so the stored values are cleared too.
"""

import json
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

import requests
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from src.outings.config import OutingsConfig
from src.outings.errors import (
    PermanentError,
    RateLimitError,
    RecordNotFoundError,
    TransientError,
)
from src.outings.logging import get_logger
from src.outings.models import OutingRecord

logger = get_logger(__name__)


class OutingStore(Protocol):
    def create(self, record: OutingRecord) -> str: ...

    def update(self, outing_id: str, record: OutingRecord) -> None: ...

    def get(self, outing_id: str) -> OutingRecord | None: ...

    def delete(self, outing_id: str) -> None: ...

    def list_outings(self, public_only: bool = False) -> list[OutingRecord]: ...


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _update_document(record: OutingRecord) -> dict[str, Any]:
    """Fields an update writes; cleared fields are sent as null."""
    document = record.to_document(keep_nulls=True)
    for key in ("id", "createdAt", "updatedAt"):
        document.pop(key, None)
    return document


def _newest_first(records: list[OutingRecord]) -> list[OutingRecord]:
    return sorted(
        records,
        key=lambda r: r.created_at.timestamp() if r.created_at else float("-inf"),
        reverse=True,
    )


# ---------------------------------------------------------------------------
# JSON files on disk
# ---------------------------------------------------------------------------
class JsonFileOutingStore:
    """Stores each outing as ``<directory>/<id>.json``."""

    def __init__(self, directory: str | Path = "data/outings") -> None:
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        logger.debug("json_store_initialized", directory=str(self.directory))

    def _path(self, outing_id: str) -> Path:
        if not outing_id or "/" in outing_id or "\\" in outing_id or outing_id.startswith("."):
            raise PermanentError(f"Invalid outing id {outing_id!r}")
        return self.directory / f"{outing_id}.json"

    def _read(self, path: Path) -> dict[str, Any]:
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise PermanentError(f"Corrupt outing document {path}: {e}") from e

    def _write(self, path: Path, document: dict[str, Any]) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2, ensure_ascii=False)

    def create(self, record: OutingRecord) -> str:
        outing_id = uuid.uuid4().hex
        document = record.to_document()
        document.pop("id", None)
        now = _utc_now()
        document["createdAt"] = now
        document["updatedAt"] = now
        self._write(self._path(outing_id), document)
        logger.info("outing_created", outing_id=outing_id, days=len(record.schedule_days))
        return outing_id

    def update(self, outing_id: str, record: OutingRecord) -> None:
        """Merge the record's fields into the stored document.

        Keys the record does not know stay as stored, fields the record has
        cleared are removed, and createdAt is kept.
        """
        path = self._path(outing_id)
        if not path.exists():
            raise RecordNotFoundError(outing_id)
        existing = self._read(path)
        document = _update_document(record)
        merged = {
            key: value
            for key, value in {**existing, **document}.items()
            if value is not None
        }
        if "createdAt" in existing:
            merged["createdAt"] = existing["createdAt"]
        merged["updatedAt"] = _utc_now()
        self._write(path, merged)
        logger.info("outing_updated", outing_id=outing_id, days=len(record.schedule_days))

    def get(self, outing_id: str) -> OutingRecord | None:
        path = self._path(outing_id)
        if not path.exists():
            logger.debug("outing_not_found", outing_id=outing_id)
            return None
        return OutingRecord.from_document(self._read(path), outing_id=outing_id)

    def delete(self, outing_id: str) -> None:
        path = self._path(outing_id)
        if not path.exists():
            raise RecordNotFoundError(outing_id)
        path.unlink()
        logger.info("outing_deleted", outing_id=outing_id)

    def list_outings(self, public_only: bool = False) -> list[OutingRecord]:
        records = [
            OutingRecord.from_document(self._read(path), outing_id=path.stem)
            for path in self.directory.glob("*.json")
        ]
        if public_only:
            records = [r for r in records if r.is_public]
        logger.debug("outings_listed", count=len(records), public_only=public_only)
        return _newest_first(records)


# ---------------------------------------------------------------------------
# REST document service
# ---------------------------------------------------------------------------
class HttpOutingStore:
    """Outing records behind a REST document service.

    5xx, 429, timeouts and connection failures are transient and retried
    with a fixed wait; other 4xx answers are permanent.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        timeout: float = 30.0,
        session: requests.Session | None = None,
        retry_attempts: int = 3,
        retry_wait_seconds: float = 2.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()
        self.retry_attempts = retry_attempts
        self.retry_wait_seconds = retry_wait_seconds

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _send(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(
                method, url, headers=self._headers(), timeout=self.timeout, **kwargs
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning("store_request_failed", method=method, url=url, error=str(e))
            raise TransientError(f"{method} {url} failed: {e}") from e

        if resp.status_code == 429:
            logger.warning("store_rate_limited", method=method, url=url)
            raise RateLimitError(f"{method} {url} rate limited")
        if resp.status_code >= 500:
            logger.warning(
                "store_server_error", method=method, url=url, status=resp.status_code
            )
            raise TransientError(f"{method} {url} returned {resp.status_code}")
        return resp

    def _request(self, method: str, path: str, **kwargs: Any) -> requests.Response:
        for attempt in Retrying(
            stop=stop_after_attempt(self.retry_attempts),
            wait=wait_fixed(self.retry_wait_seconds),
            retry=retry_if_exception_type(TransientError),
            reraise=True,
        ):
            with attempt:
                return self._send(method, path, **kwargs)
        raise AssertionError("unreachable")  # Retrying either returns or re-raises

    def _check(self, resp: requests.Response, method: str, path: str) -> None:
        if resp.status_code >= 400:
            raise PermanentError(
                f"{method} {path} returned {resp.status_code}: {resp.text[:200]}"
            )

    def create(self, record: OutingRecord) -> str:
        document = record.to_document()
        document.pop("id", None)
        resp = self._request("POST", "/outings", json=document)
        self._check(resp, "POST", "/outings")
        outing_id = resp.json()["id"]
        logger.info("outing_created", outing_id=outing_id, days=len(record.schedule_days))
        return outing_id

    def update(self, outing_id: str, record: OutingRecord) -> None:
        path = f"/outings/{outing_id}"
        resp = self._request("PUT", path, json=_update_document(record))
        if resp.status_code == 404:
            raise RecordNotFoundError(outing_id)
        self._check(resp, "PUT", path)
        logger.info("outing_updated", outing_id=outing_id, days=len(record.schedule_days))

    def get(self, outing_id: str) -> OutingRecord | None:
        path = f"/outings/{outing_id}"
        resp = self._request("GET", path)
        if resp.status_code == 404:
            logger.debug("outing_not_found", outing_id=outing_id)
            return None
        self._check(resp, "GET", path)
        return OutingRecord.from_document(resp.json(), outing_id=outing_id)

    def delete(self, outing_id: str) -> None:
        path = f"/outings/{outing_id}"
        resp = self._request("DELETE", path)
        if resp.status_code == 404:
            raise RecordNotFoundError(outing_id)
        self._check(resp, "DELETE", path)
        logger.info("outing_deleted", outing_id=outing_id)

    def list_outings(self, public_only: bool = False) -> list[OutingRecord]:
        params = {"isPublic": "true"} if public_only else None
        resp = self._request("GET", "/outings", params=params)
        self._check(resp, "GET", "/outings")
        records = [OutingRecord.from_document(doc) for doc in resp.json()]
        logger.debug("outings_listed", count=len(records), public_only=public_only)
        return _newest_first(records)


def store_from_config(config: OutingsConfig) -> OutingStore:
    """HTTP store when store_url is configured, JSON files otherwise."""
    if config.store_url:
        return HttpOutingStore(
            config.store_url,
            api_key=config.store_api_key,
            timeout=config.store_timeout_seconds,
            retry_attempts=config.store_retry_attempts,
            retry_wait_seconds=config.store_retry_wait_seconds,
        )
    return JsonFileOutingStore(config.store_dir)
