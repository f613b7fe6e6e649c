QUESTION_RESUME_CHARS = 2000
REVIEW_RESUME_CHARS = 1500


def resume_excerpt(resume_text: str, max_chars: int) -> str:
    text = (resume_text or "").strip()
    if len(text) > max_chars:
        return text[:max_chars] + "..."
    return text


def build_question_prompt(resume_text: str, company: str, role: str) -> str:
    excerpt = resume_excerpt(resume_text, QUESTION_RESUME_CHARS)
    return (
        f"Generate exactly 1 behavioral interview question for a {role} role at {company}.\n\n"
        "Requirements:\n"
        f"- The question should reflect {company}'s culture and values\n"
        "- Tailor it to the candidate's experience in the resume below\n"
        "- 1-2 sentences, specific, answerable with a STAR story\n"
        '- Return JSON only: {"question": "<the question>"}\n\n'
        f"Resume excerpt:\n{excerpt}"
    )


def build_question_fixer_prompt(raw_text: str) -> str:
    return (
        "Convert the following into valid JSON only (no markdown, no code blocks, no explanations) "
        'matching {"question": "<the question>"}:\n\n'
        f"{raw_text}"
    )


def build_review_prompt(
    *,
    question: str,
    answer: str,
    company: str | None,
    role: str | None,
    resume_text: str,
) -> str:
    excerpt = resume_excerpt(resume_text, REVIEW_RESUME_CHARS)
    return (
        "You are an experienced interviewer reviewing a written answer to a behavioral question.\n\n"
        "Evaluate the answer for structure (STAR), clarity, impact and alignment with the company/role.\n"
        "Give a score from 0 to 100 and 3-5 short, actionable feedback items.\n\n"
        "Return strict JSON with this schema:\n"
        '{"score": number, "feedback": ["item1", "item2", "item3"]}\n\n'
        f"Question: {question}\n"
        f"Company: {company or 'Not specified'}\n"
        f"Role: {role or 'Not specified'}\n"
        f"Answer:\n{answer}\n\n"
        f"Candidate resume (truncated):\n{excerpt}"
    )


def build_audio_review_prompt(
    *,
    question: str,
    company: str | None,
    role: str | None,
    resume_text: str,
) -> str:
    excerpt = resume_excerpt(resume_text, REVIEW_RESUME_CHARS)
    return (
        "You will receive an interview question and a recorded spoken answer (attached audio).\n\n"
        "Tasks:\n"
        "1) Transcribe the audio (concise, with punctuation).\n"
        "2) Evaluate the answer for structure (STAR), clarity, impact and company/role alignment.\n"
        "3) Provide 3-5 improvement bullets and a 0-100 score.\n\n"
        "Return strict JSON with this schema:\n"
        '{"transcript": "string", "score": number, "feedback": ["item1", "item2", "item3"]}\n\n'
        f"Question: {question}\n"
        f"Company: {company or 'Not specified'}\n"
        f"Role: {role or 'Not specified'}\n"
        f"Candidate resume (truncated):\n{excerpt}"
    )


def build_review_fixer_prompt(raw_text: str, *, with_transcript: bool = False) -> str:
    schema = (
        '{"transcript": "", "score": 0, "feedback": ["..."]}'
        if with_transcript
        else '{"score": 0, "feedback": ["..."]}'
    )
    return (
        f"Convert to valid JSON only (no markdown, no code blocks) matching {schema}:\n\n"
        f"{raw_text}"
    )
