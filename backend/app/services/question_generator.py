import logging
import re
from typing import Any

from app.models.quiz import QuizAnswer, QuizOption, QuizQuestion
from app.services import llm_client
from app.services.llm_client import GenerateFn, GenerationResult
from app.services.response_repair import repair_json_payload

LOGGER = logging.getLogger(__name__)

MIN_OPTIONS = 2
MAX_OPTIONS = 4
MAX_CONTEXT_TEXT_LENGTH = 280

SYSTEM_PROMPT = (
    "You are a career counseling expert running an adaptive career assessment."
    " Ask one multiple choice question at a time and answer with JSON only."
)

QUESTION_PROMPT_TEMPLATE = """
Generate {question_kind} career assessment question.
{history_block}
Generate a question with 3-4 multiple choice options that:
- Relates to work preferences, skills, or values
- Helps identify suitable career paths
- Avoids yes/no questions
- Does not repeat an earlier question

Format response strictly as JSON:
{{
  "id": {question_id},
  "question": "Your question here?",
  "options": [
    {{"text": "Option 1", "value": "opt1"}},
    {{"text": "Option 2", "value": "opt2"}}
  ]
}}
""".strip()

FALLBACK_QUESTIONS = [
    {
        "question": "Which activities energize you most?",
        "options": [
            "Solving complex problems",
            "Creating artistic works",
            "Helping others directly",
            "Analyzing data/patterns",
        ],
    },
    {
        "question": "What's your preferred learning style?",
        "options": [
            "Hands-on practice",
            "Theoretical study",
            "Collaborative projects",
            "Self-directed exploration",
        ],
    },
    {
        "question": "Which work environment suits you best?",
        "options": [
            "A fast-paced startup",
            "A large structured organization",
            "Outdoors or on the move",
            "Remote and independent",
        ],
    },
    {
        "question": "What matters most to you in a career?",
        "options": [
            "High earning potential",
            "Making a social impact",
            "Creative freedom",
            "Stability and work-life balance",
        ],
    },
    {
        "question": "How do you prefer to work with other people?",
        "options": [
            "Leading and organizing a team",
            "Collaborating as an equal contributor",
            "Advising or teaching others",
            "Working mostly on my own",
        ],
    },
]


def build_question_prompt(previous_questions: list[QuizQuestion], previous_answers: list[QuizAnswer]) -> str:
    question_id = len(previous_questions) + 1
    question_kind = "a broad introductory" if question_id == 1 else "a targeted follow-up"
    history_lines: list[str] = []
    for index, answer in enumerate(previous_answers):
        if index >= len(previous_questions):
            break
        history_lines.append(f"Q{index + 1}: {_compact(previous_questions[index].question)}")
        history_lines.append(f"A: {_compact(answer.text)}")
    history_block = ""
    if history_lines:
        history_block = "\nContext from previous answers:\n" + "\n".join(history_lines) + "\n"
    return QUESTION_PROMPT_TEMPLATE.format(
        question_kind=question_kind,
        history_block=history_block,
        question_id=question_id,
    )


def attempt_question(
    previous_questions: list[QuizQuestion],
    previous_answers: list[QuizAnswer],
    *,
    generate: GenerateFn,
) -> GenerationResult[QuizQuestion]:
    question_id = len(previous_questions) + 1
    prompt = build_question_prompt(previous_questions, previous_answers)
    try:
        raw = generate(prompt)
    except Exception as exc:
        return GenerationResult.failure(f"generation failed: {exc}")

    repaired = repair_json_payload(raw)
    if not repaired.ok:
        return GenerationResult.failure("no JSON payload in model response")
    question = parse_question_payload(repaired.value, question_id=question_id)
    if question is None:
        return GenerationResult.failure("model response did not match the question shape")
    return GenerationResult.success(question)


def parse_question_payload(payload: Any, *, question_id: int) -> QuizQuestion | None:
    if not isinstance(payload, dict):
        return None
    text = str(payload.get("question") or "").strip()
    raw_options = payload.get("options")
    if not text or not isinstance(raw_options, list):
        return None

    options: list[QuizOption] = []
    for raw_option in raw_options:
        option = _parse_option(raw_option)
        if option is not None:
            options.append(option)
        if len(options) == MAX_OPTIONS:
            break
    if len(options) < MIN_OPTIONS:
        return None
    # Model-supplied ids are ignored; position decides the id.
    return QuizQuestion(id=question_id, question=text, options=options)


def derive_option_value(text: str) -> str:
    return re.sub(r"\s+", "_", text.strip().lower())


def fallback_question(question_index: int) -> QuizQuestion:
    template = FALLBACK_QUESTIONS[question_index % len(FALLBACK_QUESTIONS)]
    return QuizQuestion(
        id=question_index + 1,
        question=template["question"],
        options=[
            QuizOption(text=text, value=f"opt{position + 1}")
            for position, text in enumerate(template["options"])
        ],
    )


def generate_next_question(
    previous_questions: list[QuizQuestion],
    previous_answers: list[QuizAnswer],
    *,
    generate: GenerateFn | None = None,
) -> QuizQuestion:
    question_index = len(previous_questions)
    result = attempt_question(
        previous_questions,
        previous_answers,
        generate=generate or _generate_with_system_prompt,
    )
    if not result.ok:
        LOGGER.warning("Using fallback question %d: %s", question_index + 1, result.error)
    return result.or_else(lambda: fallback_question(question_index))


def _generate_with_system_prompt(prompt: str) -> str:
    return llm_client.generate(prompt, system_prompt=SYSTEM_PROMPT)


def _parse_option(raw_option: Any) -> QuizOption | None:
    if isinstance(raw_option, str):
        text, value = raw_option.strip(), ""
    elif isinstance(raw_option, dict):
        text = str(raw_option.get("text") or "").strip()
        value = str(raw_option.get("value") or "").strip()
    else:
        return None
    if not text:
        return None
    return QuizOption(text=text, value=value or derive_option_value(text))


def _compact(text: str) -> str:
    return re.sub(r"\s+", " ", str(text or "")).strip()[:MAX_CONTEXT_TEXT_LENGTH]
