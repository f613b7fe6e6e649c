from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_STATE_PATH = Path.home() / ".mockmate" / "session.json"

STEP_UPLOAD = "upload"
STEP_JOB = "job"
STEP_PRACTICE = "practice"
STEPS = (STEP_UPLOAD, STEP_JOB, STEP_PRACTICE)

_PREREQUISITES = {
    STEP_UPLOAD: None,
    STEP_JOB: STEP_UPLOAD,
    STEP_PRACTICE: STEP_JOB,
}
_STEP_HINTS = {
    STEP_UPLOAD: "Upload your resume first (mockmate-practice upload <file.pdf>).",
    STEP_JOB: "Enter the company and role first (mockmate-practice job --company ... --role ...).",
}


class StepLockedError(RuntimeError):
    pass


@dataclass
class WizardState:
    session_id: str | None = None
    resume_preview: str = ""
    company: str | None = None
    role: str | None = None
    questions: list[str] = field(default_factory=list)
    current_index: int = 0
    completed_steps: list[str] = field(default_factory=list)
    last_review: dict[str, Any] | None = None

    @property
    def current_question(self) -> str | None:
        if 0 <= self.current_index < len(self.questions):
            return self.questions[self.current_index]
        return None

    def is_complete(self, step: str) -> bool:
        return step in self.completed_steps

    def mark_complete(self, step: str) -> None:
        if step not in self.completed_steps:
            self.completed_steps.append(step)

    def require(self, step: str) -> None:
        """Raise unless every step before ``step`` has been completed."""
        needed = _PREREQUISITES.get(step)
        while needed:
            if not self.is_complete(needed):
                raise StepLockedError(_STEP_HINTS[needed])
            needed = _PREREQUISITES.get(needed)

    def start_over_from(self, step: str) -> None:
        """Forget progress from ``step`` onwards; later answers belong to a new attempt."""
        index = STEPS.index(step)
        self.completed_steps = [s for s in self.completed_steps if STEPS.index(s) < index]
        if index <= STEPS.index(STEP_JOB):
            self.questions = []
            self.current_index = 0
            self.last_review = None
        if index <= STEPS.index(STEP_UPLOAD):
            self.company = None
            self.role = None


def load_state(path: Path = DEFAULT_STATE_PATH) -> WizardState:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return WizardState()
    except (OSError, ValueError) as exc:
        logger.warning("Failed to load wizard state from %s: %s", path, exc)
        return WizardState()
    if not isinstance(raw, dict):
        return WizardState()

    known = {f.name for f in fields(WizardState)}
    state = WizardState(**{key: value for key, value in raw.items() if key in known})
    if not isinstance(state.questions, list):
        state.questions = []
    if not isinstance(state.current_index, int):
        state.current_index = 0
    if not isinstance(state.completed_steps, list):
        state.completed_steps = []
    state.completed_steps = [step for step in state.completed_steps if step in STEPS]
    return state


def save_state(state: WizardState, path: Path = DEFAULT_STATE_PATH) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(state), indent=2, ensure_ascii=False), encoding="utf-8")


def clear_state(path: Path = DEFAULT_STATE_PATH) -> None:
    try:
        path.unlink()
    except FileNotFoundError:
        pass
