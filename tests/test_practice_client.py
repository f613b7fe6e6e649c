import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path

import httpx

from support import build_text_pdf

from mockmate.client.api import ClientError, MockMateClient
from mockmate.client.cli import main
from mockmate.client.state import (
    STEP_JOB,
    STEP_PRACTICE,
    STEP_UPLOAD,
    StepLockedError,
    WizardState,
    load_state,
    save_state,
)

SESSION_ID = "3f2b7c1e-9a4d-4e2f-8b6a-0c1d2e3f4a5b"
QUESTION = "Tell me about a time you disagreed with your manager."


class FakeBackend:
    """Routes httpx requests to canned MockMate responses."""

    def __init__(self, *, expired=False):
        self.expired = expired
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/api/upload-resume":
            return httpx.Response(200, json={"sessionId": SESSION_ID, "resumePreview": "Jordan Lee", "pages": 1})
        if self.expired:
            return httpx.Response(400, json={"error": "Invalid sessionId"})
        if request.url.path == "/api/generate-questions":
            return httpx.Response(200, json={"question": QUESTION, "questions": [QUESTION]})
        if request.url.path == "/api/answer":
            if request.headers["content-type"].startswith("multipart/form-data"):
                return httpx.Response(200, json={"transcript": "Spoken", "score": 66, "feedback": ["Slow down"]})
            return httpx.Response(200, json={"score": 81, "feedback": ["Nice"]})
        return httpx.Response(404, json={"error": "Not Found"})


class MockMateClientTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.backend = FakeBackend()
        self.client = MockMateClient(transport=httpx.MockTransport(self.backend))

    def tearDown(self):
        self.client.close()
        self.tmp.cleanup()

    def _write(self, name, data):
        path = Path(self.tmp.name) / name
        path.write_bytes(data)
        return path

    def test_upload_resume(self):
        result = self.client.upload_resume(self._write("resume.pdf", build_text_pdf(["Jordan Lee"])))
        self.assertEqual(result.session_id, SESSION_ID)
        self.assertEqual(result.pages, 1)

    def test_upload_rejects_non_pdf_before_sending(self):
        with self.assertRaises(ClientError) as ctx:
            self.client.upload_resume(self._write("resume.docx", b"PK"))
        self.assertEqual(str(ctx.exception), "PDF required")
        self.assertEqual(self.backend.requests, [])

    def test_missing_file(self):
        with self.assertRaises(ClientError) as ctx:
            self.client.upload_resume(Path(self.tmp.name) / "missing.pdf")
        self.assertEqual(str(ctx.exception), "File is required")

    def test_server_error_message_is_surfaced(self):
        self.backend.expired = True
        with self.assertRaises(ClientError) as ctx:
            self.client.generate_questions(SESSION_ID, "Acme", "Engineer")
        self.assertEqual(str(ctx.exception), "Invalid sessionId")
        self.assertEqual(ctx.exception.status_code, 400)

    def test_error_without_json_body(self):
        client = MockMateClient(transport=httpx.MockTransport(lambda request: httpx.Response(502, text="bad gateway")))
        with self.assertRaises(ClientError) as ctx:
            client.submit_answer(SESSION_ID, QUESTION, "Answer")
        client.close()
        self.assertEqual(str(ctx.exception), "HTTP 502: Bad Gateway")

    def test_timeout(self):
        def raise_timeout(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = MockMateClient(transport=httpx.MockTransport(raise_timeout))
        with self.assertRaises(ClientError) as ctx:
            client.generate_questions(SESSION_ID, "Acme", "Engineer")
        client.close()
        self.assertEqual(str(ctx.exception), "Request timeout after 30000ms")

    def test_submit_answer_payload(self):
        result = self.client.submit_answer(SESSION_ID, QUESTION, "I listened first.")
        body = json.loads(self.backend.requests[-1].content)
        self.assertEqual(body, {"sessionId": SESSION_ID, "question": QUESTION, "answer": "I listened first."})
        self.assertEqual(result.score, 81)

    def test_submit_audio_answer(self):
        result = self.client.submit_audio_answer(SESSION_ID, QUESTION, self._write("answer.wav", b"RIFF0000WAVE"))
        self.assertEqual(result.transcript, "Spoken")
        self.assertEqual(result.score, 66)


class WizardStateTests(unittest.TestCase):
    def test_steps_unlock_in_order(self):
        state = WizardState()
        with self.assertRaises(StepLockedError):
            state.require(STEP_JOB)
        state.mark_complete(STEP_UPLOAD)
        state.require(STEP_JOB)
        with self.assertRaises(StepLockedError):
            state.require(STEP_PRACTICE)

    def test_start_over_clears_later_progress(self):
        state = WizardState(
            session_id=SESSION_ID,
            company="Acme",
            role="Engineer",
            questions=[QUESTION],
            completed_steps=[STEP_UPLOAD, STEP_JOB, STEP_PRACTICE],
            last_review={"score": 70},
        )
        state.start_over_from(STEP_JOB)
        self.assertEqual(state.completed_steps, [STEP_UPLOAD])
        self.assertEqual(state.questions, [])
        self.assertIsNone(state.last_review)
        self.assertEqual(state.company, "Acme")

    def test_load_handles_corrupt_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "session.json"
            path.write_text("{not json", encoding="utf-8")
            self.assertEqual(load_state(path), WizardState())

    def test_save_and_load(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "nested" / "session.json"
            save_state(WizardState(session_id=SESSION_ID, completed_steps=[STEP_UPLOAD, "bogus"]), path)
            state = load_state(path)
        self.assertEqual(state.session_id, SESSION_ID)
        self.assertEqual(state.completed_steps, [STEP_UPLOAD])


class PracticeCliTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.state_path = Path(self.tmp.name) / "state.json"
        self.resume = Path(self.tmp.name) / "resume.pdf"
        self.resume.write_bytes(build_text_pdf(["Jordan Lee"]))
        self.backend = FakeBackend()
        self.client = MockMateClient(transport=httpx.MockTransport(self.backend))

    def tearDown(self):
        self.client.close()
        self.tmp.cleanup()

    def run_cli(self, *argv):
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(["--state", str(self.state_path), *argv], client=self.client)
        return code, out.getvalue(), err.getvalue()

    def test_full_walkthrough(self):
        self.assertEqual(self.run_cli("upload", str(self.resume))[0], 0)
        code, out, _ = self.run_cli("job", "--company", "Acme", "--role", "Engineer")
        self.assertEqual(code, 0)
        self.assertIn(QUESTION, out)

        code, out, _ = self.run_cli("answer", "--text", "I listened and proposed a compromise.")
        self.assertEqual(code, 0)
        self.assertIn("Score: 81/100", out)

        state = load_state(self.state_path)
        self.assertEqual(state.completed_steps, [STEP_UPLOAD, STEP_JOB, STEP_PRACTICE])
        self.assertEqual(state.last_review["score"], 81)

    def test_answer_before_job_is_locked(self):
        self.run_cli("upload", str(self.resume))
        code, _, err = self.run_cli("answer", "--text", "Too early")
        self.assertEqual(code, 1)
        self.assertIn("company and role", err)

    def test_expired_session_sends_user_back_to_upload(self):
        self.run_cli("upload", str(self.resume))
        self.backend.expired = True

        code, _, err = self.run_cli("job", "--company", "Acme", "--role", "Engineer")

        self.assertEqual(code, 1)
        self.assertIn("session has expired", err)
        self.assertEqual(load_state(self.state_path).completed_steps, [])

    def test_reset(self):
        self.run_cli("upload", str(self.resume))
        code, _, _ = self.run_cli("reset")
        self.assertEqual(code, 0)
        self.assertFalse(self.state_path.exists())


if __name__ == "__main__":
    unittest.main()
