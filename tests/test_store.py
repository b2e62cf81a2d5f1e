import json
import tempfile
import unittest
from pathlib import Path

import requests

from src.outings.config import OutingsConfig
from src.outings.errors import (
    PermanentError,
    RateLimitError,
    RecordNotFoundError,
    TransientError,
)
from src.outings.models import Activity, OutingRecord, Person, ScheduleDay
from src.outings.store import HttpOutingStore, JsonFileOutingStore, store_from_config


def _record(name: str = "Spring Campout", public: bool = True) -> OutingRecord:
    return OutingRecord(
        event_name=name,
        is_public=public,
        start_date_time="2026-04-10T08:00:00",
        end_date_time="2026-04-11T16:00:00",
        schedule_days=[
            ScheduleDay(
                id="day-1",
                title="Day 1",
                activities=[
                    Activity(id="a1", time="9:00 AM", activity="Hike", lead=[Person(name="Sam", role="SPL")])
                ],
            ),
            ScheduleDay.create(2),
        ],
    )


class TestJsonFileOutingStore(unittest.TestCase):
    def setUp(self) -> None:
        self._td = tempfile.TemporaryDirectory()
        self.dir = Path(self._td.name)
        self.store = JsonFileOutingStore(self.dir)

    def tearDown(self) -> None:
        self._td.cleanup()

    def test_create_writes_camel_case_document(self) -> None:
        outing_id = self.store.create(_record())
        data = json.loads((self.dir / f"{outing_id}.json").read_text(encoding="utf-8"))
        self.assertEqual(data["eventName"], "Spring Campout")
        self.assertEqual(data["scheduleDays"][0]["activities"][0]["lead"], [{"name": "Sam", "role": "SPL"}])
        self.assertIn("createdAt", data)
        self.assertIn("updatedAt", data)
        self.assertNotIn("id", data)
        self.assertNotIn("createdBy", data)

    def test_get_round_trips_schedule(self) -> None:
        record = _record()
        outing_id = self.store.create(record)
        loaded = self.store.get(outing_id)
        self.assertEqual(loaded.id, outing_id)
        self.assertEqual(loaded.schedule_days, record.schedule_days)
        self.assertIsNotNone(loaded.created_at)

    def test_get_missing_returns_none(self) -> None:
        self.assertIsNone(self.store.get("missing"))

    def test_update_merges_and_keeps_created_at(self) -> None:
        outing_id = self.store.create(_record())
        path = self.dir / f"{outing_id}.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        data["packingList"] = "Tent"
        path.write_text(json.dumps(data), encoding="utf-8")
        created_at = data["createdAt"]

        changed = self.store.get(outing_id).model_copy(update={"event_name": "Fall Campout"})
        self.store.update(outing_id, changed)

        stored = json.loads(path.read_text(encoding="utf-8"))
        self.assertEqual(stored["eventName"], "Fall Campout")
        self.assertEqual(stored["packingList"], "Tent")
        self.assertEqual(stored["createdAt"], created_at)

    def test_update_clears_fields_the_record_cleared(self) -> None:
        outing_id = self.store.create(_record())
        cleared = self.store.get(outing_id).model_copy(update={"end_date_time": None})
        self.store.update(outing_id, cleared)

        stored = json.loads((self.dir / f"{outing_id}.json").read_text(encoding="utf-8"))
        self.assertNotIn("endDateTime", stored)
        self.assertIsNone(self.store.get(outing_id).end_date_time)
        self.assertIsNone(self.store.get(outing_id).date_range.end)

    def test_update_and_delete_missing_raise(self) -> None:
        with self.assertRaises(RecordNotFoundError):
            self.store.update("missing", _record())
        with self.assertRaises(RecordNotFoundError):
            self.store.delete("missing")

    def test_delete(self) -> None:
        outing_id = self.store.create(_record())
        self.store.delete(outing_id)
        self.assertIsNone(self.store.get(outing_id))

    def test_list_filters_public(self) -> None:
        self.store.create(_record("Public"))
        self.store.create(_record("Private", public=False))
        self.assertEqual(len(self.store.list_outings()), 2)
        self.assertEqual([r.event_name for r in self.store.list_outings(public_only=True)], ["Public"])

    def test_corrupt_document_is_permanent_error(self) -> None:
        (self.dir / "bad.json").write_text("{not json", encoding="utf-8")
        with self.assertRaises(PermanentError):
            self.store.get("bad")

    def test_path_like_ids_are_refused(self) -> None:
        with self.assertRaises(PermanentError):
            self.store.get("../etc/passwd")

    def test_invalid_stored_dates_load_as_unset(self) -> None:
        (self.dir / "old.json").write_text(
            json.dumps({"eventName": "Old", "startDateTime": "Invalid Date", "scheduleDays": None}),
            encoding="utf-8",
        )
        record = self.store.get("old")
        self.assertIsNone(record.start_date_time)
        self.assertEqual(record.schedule_days, [])


class _FakeResponse:
    def __init__(self, status_code: int, payload=None) -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = json.dumps(payload) if payload is not None else ""

    def json(self):
        return self._payload


class _FakeSession:
    """Replays queued responses (or exceptions) and records requests."""

    def __init__(self, *responses) -> None:
        self.responses = list(responses)
        self.calls: list[tuple] = []

    def request(self, method, url, headers=None, timeout=None, **kwargs):
        self.calls.append((method, url, headers, kwargs))
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class TestHttpOutingStore(unittest.TestCase):
    def _store(self, *responses, attempts: int = 3) -> tuple[HttpOutingStore, _FakeSession]:
        session = _FakeSession(*responses)
        store = HttpOutingStore(
            "https://records.example.org/api/",
            api_key="secret",
            session=session,
            retry_attempts=attempts,
            retry_wait_seconds=0,
        )
        return store, session

    def test_create_posts_document(self) -> None:
        store, session = self._store(_FakeResponse(201, {"id": "abc"}))
        self.assertEqual(store.create(_record()), "abc")
        method, url, headers, kwargs = session.calls[0]
        self.assertEqual((method, url), ("POST", "https://records.example.org/api/outings"))
        self.assertEqual(headers["Authorization"], "Bearer secret")
        self.assertEqual(kwargs["json"]["scheduleDays"][0]["id"], "day-1")

    def test_transient_failures_are_retried(self) -> None:
        doc = _record().to_document()
        store, session = self._store(
            requests.ConnectionError("reset"),
            _FakeResponse(503),
            _FakeResponse(200, doc),
        )
        record = store.get("abc")
        self.assertEqual(record.id, "abc")
        self.assertEqual(len(session.calls), 3)

    def test_gives_up_after_attempts(self) -> None:
        store, session = self._store(_FakeResponse(502), _FakeResponse(502), attempts=2)
        with self.assertRaises(TransientError):
            store.get("abc")
        self.assertEqual(len(session.calls), 2)

    def test_rate_limit_is_transient(self) -> None:
        store, _ = self._store(_FakeResponse(429), attempts=1)
        with self.assertRaises(RateLimitError):
            store.list_outings()

    def test_client_errors_are_permanent_and_not_retried(self) -> None:
        store, session = self._store(_FakeResponse(400, {"error": "bad"}))
        with self.assertRaises(PermanentError):
            store.create(_record())
        self.assertEqual(len(session.calls), 1)

    def test_update_sends_cleared_fields_as_null(self) -> None:
        store, session = self._store(_FakeResponse(200, {}))
        record = _record().model_copy(update={"id": "abc", "end_date_time": None})
        store.update("abc", record)
        method, url, _, kwargs = session.calls[0]
        self.assertEqual((method, url), ("PUT", "https://records.example.org/api/outings/abc"))
        self.assertIn("endDateTime", kwargs["json"])
        self.assertIsNone(kwargs["json"]["endDateTime"])
        self.assertNotIn("id", kwargs["json"])
        self.assertNotIn("createdAt", kwargs["json"])

    def test_not_found_handling(self) -> None:
        store, _ = self._store(_FakeResponse(404), _FakeResponse(404), _FakeResponse(404))
        self.assertIsNone(store.get("nope"))
        with self.assertRaises(RecordNotFoundError):
            store.update("nope", _record())
        with self.assertRaises(RecordNotFoundError):
            store.delete("nope")

    def test_list_public_outings(self) -> None:
        older = {**_record("Older").to_document(), "id": "1", "createdAt": "2026-01-01T00:00:00+00:00"}
        newer = {**_record("Newer").to_document(), "id": "2", "createdAt": "2026-02-01T00:00:00+00:00"}
        store, session = self._store(_FakeResponse(200, [older, newer]))
        records = store.list_outings(public_only=True)
        self.assertEqual([r.event_name for r in records], ["Newer", "Older"])
        self.assertEqual(session.calls[0][3]["params"], {"isPublic": "true"})


class TestStoreFromConfig(unittest.TestCase):
    def test_picks_backend(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            self.assertIsInstance(store_from_config(OutingsConfig(store_dir=td)), JsonFileOutingStore)
            http = store_from_config(OutingsConfig(store_dir=td, store_url="https://x.example"))
            self.assertIsInstance(http, HttpOutingStore)


if __name__ == "__main__":
    unittest.main(verbosity=2)
