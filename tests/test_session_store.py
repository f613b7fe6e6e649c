import tempfile
import unittest
from pathlib import Path

from support import PROJECT_ROOT  # noqa: F401

from mockmate.core.errors import SessionNotFoundError
from mockmate.core.session_store import (
    InMemorySessionStore,
    InterviewSession,
    ReviewRecord,
    SqliteSessionStore,
)


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class InMemorySessionStoreTests(unittest.TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.store = InMemorySessionStore(ttl_seconds=60, max_entries=3, clock=self.clock)

    def test_create_returns_uuid_token(self):
        session_id = self.store.create("Resume text")
        self.assertEqual(len(session_id), 36)
        session = self.store.get(session_id)
        self.assertEqual(session.resume_text, "Resume text")
        self.assertIsNone(session.company)
        self.assertEqual(session.questions, [])

    def test_tokens_are_unique(self):
        ids = {self.store.create("r") for _ in range(3)}
        self.assertEqual(len(ids), 3)

    def test_update_sets_company_role_and_questions(self):
        session_id = self.store.create("Resume")
        self.store.update(session_id, company="Acme", role="Engineer")
        self.store.update(session_id, questions=["Tell me about a project you led."])

        session = self.store.get(session_id)
        self.assertEqual((session.company, session.role), ("Acme", "Engineer"))
        self.assertEqual(session.questions, ["Tell me about a project you led."])

    def test_update_rejects_resume_text(self):
        session_id = self.store.create("Resume")
        with self.assertRaises(ValueError):
            self.store.update(session_id, resume_text="other")

    def test_update_unknown_session(self):
        with self.assertRaises(SessionNotFoundError):
            self.store.update("00000000-0000-0000-0000-000000000000", company="Acme")

    def test_session_expires_after_ttl(self):
        session_id = self.store.create("Resume")
        self.clock.advance(59)
        self.assertIsNotNone(self.store.get(session_id))
        self.clock.advance(1)
        self.assertIsNone(self.store.get(session_id))

    def test_writes_extend_lifetime(self):
        session_id = self.store.create("Resume")
        self.clock.advance(50)
        self.store.update(session_id, company="Acme")
        self.clock.advance(50)
        self.assertIsNotNone(self.store.get(session_id))

    def test_oldest_entries_are_evicted(self):
        first = self.store.create("one")
        for index in range(3):
            self.clock.advance(1)
            self.store.create(f"resume {index}")

        self.assertEqual(len(self.store), 3)
        self.assertIsNone(self.store.get(first))

    def test_purge_expired(self):
        self.store.create("one")
        self.clock.advance(30)
        keep = self.store.create("two")
        self.clock.advance(30)

        self.assertEqual(self.store.purge_expired(), 1)
        self.assertIsNotNone(self.store.get(keep))

    def test_append_review(self):
        session_id = self.store.create("Resume")
        self.store.append_review(session_id, ReviewRecord(question="Q?", score=72, feedback=["Good"]))
        session = self.store.get(session_id)
        self.assertEqual(session.reviews[0].score, 72)


class SqliteSessionStoreTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.clock = FakeClock()
        self.db_path = str(Path(self.tmp.name) / "nested" / "sessions.db")
        self.store = SqliteSessionStore(self.db_path, ttl_seconds=60, clock=self.clock)

    def tearDown(self):
        if self.store._conn is not None:
            self.store._conn.close()
        self.tmp.cleanup()

    def test_round_trip_survives_new_store_instance(self):
        session_id = self.store.create("Persisted resume")
        self.store.update(session_id, company="Acme", role="SRE")
        self.store.append_review(
            session_id,
            ReviewRecord(question="Why Acme?", score=64, feedback=["Be concrete"], transcript="I like it"),
        )

        reopened = SqliteSessionStore(self.db_path, ttl_seconds=60, clock=self.clock)
        session = reopened.get(session_id)
        reopened._conn.close()

        self.assertIsInstance(session, InterviewSession)
        self.assertEqual(session.role, "SRE")
        self.assertEqual(session.reviews[0].transcript, "I like it")

    def test_expired_rows_are_purged(self):
        session_id = self.store.create("Resume")
        self.clock.advance(61)
        self.assertIsNone(self.store.get(session_id))
        self.assertEqual(self.store.purge_expired(), 0)

    def test_update_unknown_session(self):
        with self.assertRaises(SessionNotFoundError):
            self.store.update("missing", role="SRE")


if __name__ == "__main__":
    unittest.main()
