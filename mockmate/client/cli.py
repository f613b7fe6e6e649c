from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from mockmate.client.api import AnswerResult, ClientError, MockMateClient
from mockmate.client.state import (
    DEFAULT_STATE_PATH,
    STEP_JOB,
    STEP_PRACTICE,
    STEP_UPLOAD,
    StepLockedError,
    WizardState,
    clear_state,
    load_state,
    save_state,
)

_EXPIRED_HINT = "Your session has expired. Upload your resume again to continue."


def _print_review(result: AnswerResult) -> None:
    if result.transcript:
        print(f"Transcript:\n{result.transcript}\n")
    print(f"Score: {result.score}/100")
    for item in result.feedback:
        print(f"  - {item}")


def _cmd_upload(args, client: MockMateClient, state: WizardState) -> WizardState:
    result = client.upload_resume(args.file)
    state.session_id = result.session_id
    state.resume_preview = result.resume_preview
    state.start_over_from(STEP_UPLOAD)
    state.mark_complete(STEP_UPLOAD)
    pages = f" ({result.pages} pages)" if result.pages else ""
    print(f"Resume uploaded{pages}. Session: {result.session_id}")
    if result.resume_preview:
        print(f"\n{result.resume_preview}\n")
    return state


def _cmd_job(args, client: MockMateClient, state: WizardState) -> WizardState:
    state.require(STEP_JOB)
    result = client.generate_questions(state.session_id or "", args.company, args.role)
    state.start_over_from(STEP_PRACTICE)
    state.company = args.company
    state.role = args.role
    state.questions = result.questions or [result.question]
    state.current_index = 0
    state.mark_complete(STEP_JOB)
    print(f"Question for {args.role} at {args.company}:\n\n{result.question}")
    return state


def _cmd_answer(args, client: MockMateClient, state: WizardState) -> WizardState:
    state.require(STEP_PRACTICE)
    question = state.current_question
    if not question:
        raise StepLockedError("No question yet. Run the job step again.")

    if args.audio:
        result = client.submit_audio_answer(state.session_id or "", question, args.audio)
    else:
        if args.file:
            answer = Path(args.file).read_text(encoding="utf-8")
        elif args.text:
            answer = args.text
        else:
            print(f"{question}\n\nType your answer, then press Ctrl-D:")
            answer = sys.stdin.read()
        result = client.submit_answer(state.session_id or "", question, answer.strip())

    state.last_review = {"score": result.score, "feedback": result.feedback, "transcript": result.transcript}
    state.mark_complete(STEP_PRACTICE)
    _print_review(result)
    return state


def _cmd_status(args, client: MockMateClient, state: WizardState) -> WizardState:
    _ = args, client
    for step in (STEP_UPLOAD, STEP_JOB, STEP_PRACTICE):
        mark = "x" if state.is_complete(step) else " "
        print(f"[{mark}] {step}")
    if state.company and state.role:
        print(f"\nTarget: {state.role} at {state.company}")
    if state.current_question:
        print(f"Question: {state.current_question}")
    if state.last_review:
        print(f"Last score: {state.last_review.get('score')}/100")
    return state


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="mockmate-practice", description="Practice a behavioral interview.")
    parser.add_argument(
        "--server",
        default=os.getenv("MOCKMATE_SERVER", "http://localhost:5001"),
        help="MockMate backend URL",
    )
    parser.add_argument("--state", default=str(DEFAULT_STATE_PATH), help="Where wizard progress is stored")
    sub = parser.add_subparsers(dest="command", required=True)

    upload = sub.add_parser("upload", help="Step 1: upload your resume (PDF)")
    upload.add_argument("file")
    upload.set_defaults(handler=_cmd_upload)

    job = sub.add_parser("job", help="Step 2: target company and role")
    job.add_argument("--company", required=True)
    job.add_argument("--role", required=True)
    job.set_defaults(handler=_cmd_job)

    answer = sub.add_parser("answer", help="Step 3: answer the question and get feedback")
    source = answer.add_mutually_exclusive_group()
    source.add_argument("--text")
    source.add_argument("--file", help="Read the answer from a text file")
    source.add_argument("--audio", help="Submit a recorded answer")
    answer.set_defaults(handler=_cmd_answer)

    status = sub.add_parser("status", help="Show wizard progress")
    status.set_defaults(handler=_cmd_status)

    sub.add_parser("reset", help="Forget the current session")
    return parser


def main(argv: list[str] | None = None, *, client: MockMateClient | None = None) -> int:
    args = build_parser().parse_args(argv)
    state_path = Path(args.state)

    if args.command == "reset":
        clear_state(state_path)
        print("Session cleared.")
        return 0

    state = load_state(state_path)
    owned = client is None
    client = client or MockMateClient(args.server)
    try:
        state = args.handler(args, client, state)
    except ClientError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        if str(exc) == "Invalid sessionId":
            # Server-side sessions expire; the resume has to be uploaded again.
            state.start_over_from(STEP_UPLOAD)
            save_state(state, state_path)
            print(_EXPIRED_HINT, file=sys.stderr)
        return 1
    except StepLockedError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    finally:
        if owned:
            client.close()

    save_state(state, state_path)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
