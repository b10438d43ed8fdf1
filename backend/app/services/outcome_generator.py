import logging
import math
from typing import Any

from app.models.quiz import CareerOutcome, QuizAnswer, QuizQuestion
from app.services import llm_client
from app.services.llm_client import GenerateFn, GenerationResult
from app.services.response_repair import repair_json_payload

LOGGER = logging.getLogger(__name__)

MIN_OUTCOMES = 2
MAX_OUTCOMES = 5
MAX_LIST_ITEMS = 3
DEFAULT_FIT_SCORE = 50.0
DEFAULT_COMPENSATION_RANGE = "Varies by location/experience"
DEFAULT_PREPARATION_PATH = "Typically requires relevant education/training"
DEMAND_LEVELS = {"high", "medium", "low"}

# Field names older prompts used; accepted so slightly off-script output still counts.
FIELD_ALIASES = {
    "advantages": ("advantages", "pros"),
    "disadvantages": ("disadvantages", "cons"),
    "compensationRange": ("compensationRange", "salaryRange"),
    "preparationPath": ("preparationPath", "educationPath"),
    "demandLevel": ("demandLevel", "jobMarket"),
}

SYSTEM_PROMPT = (
    "You are a professional career counselor. Recommend careers from assessment answers"
    " and return a JSON array only."
)

OUTCOME_PROMPT_TEMPLATE = """
Analyze these career assessment responses and suggest 3-5 career paths:

{transcript}

For each career, provide:
- title: Career title
- description: 1-2 sentence overview
- advantages: 3 advantages
- disadvantages: 3 challenges
- compensationRange: Typical salary range
- preparationPath: Required education/certifications
- demandLevel: Demand level (high/medium/low)
- fitScore: 0-100 match score

Important:
- Fit scores should vary meaningfully between careers
- Include both traditional and emerging careers
- Suggest at least one unconventional option

Format output as a JSON array ONLY:
[
  {{
    "title": "...",
    "description": "...",
    "advantages": ["...", "...", "..."],
    "disadvantages": ["...", "...", "..."],
    "compensationRange": "...",
    "preparationPath": "...",
    "demandLevel": "...",
    "fitScore": 0
  }}
]
""".strip()

FALLBACK_OUTCOMES = [
    {
        "title": "UX/UI Designer",
        "description": "Design intuitive digital experiences for websites and applications.",
        "advantages": [
            "High creativity in problem-solving",
            "Growing demand across industries",
            "Opportunity to impact user satisfaction",
        ],
        "disadvantages": [
            "Subjective feedback on designs",
            "Need to balance user needs with business goals",
            "Rapidly evolving tools and standards",
        ],
        "compensationRange": "$75,000 - $120,000",
        "preparationPath": "Bachelor's in design + portfolio, bootcamps",
        "demandLevel": "high",
        "fitScore": 82.0,
    },
    {
        "title": "Data Scientist",
        "description": "Extract insights from complex datasets to drive decision-making.",
        "advantages": [
            "High earning potential",
            "Applicable across diverse industries",
            "Intellectually challenging work",
        ],
        "disadvantages": [
            "Requires advanced technical skills",
            "Can involve cleaning messy data",
            "Need to constantly update skills",
        ],
        "compensationRange": "$95,000 - $150,000",
        "preparationPath": "Advanced degree in statistics/computer science",
        "demandLevel": "high",
        "fitScore": 78.0,
    },
]


def build_outcome_prompt(questions: list[QuizQuestion], answers: list[QuizAnswer]) -> str:
    blocks = []
    for index, question in enumerate(questions):
        answer_text = answers[index].text if index < len(answers) else "N/A"
        blocks.append(f"Q{index + 1}: {question.question}\nA: {answer_text}")
    return OUTCOME_PROMPT_TEMPLATE.format(transcript="\n\n".join(blocks) or "No responses recorded.")


def attempt_outcomes(
    questions: list[QuizQuestion],
    answers: list[QuizAnswer],
    *,
    generate: GenerateFn,
) -> GenerationResult[list[CareerOutcome]]:
    prompt = build_outcome_prompt(questions, answers)
    try:
        raw = generate(prompt)
    except Exception as exc:
        return GenerationResult.failure(f"generation failed: {exc}")

    repaired = repair_json_payload(raw)
    if not repaired.ok:
        return GenerationResult.failure("no JSON payload in model response")
    outcomes = normalize_outcomes(repaired.value)
    if not outcomes:
        return GenerationResult.failure("no usable outcomes after normalization")
    return GenerationResult.success(_pad_with_fallbacks(outcomes))


def normalize_outcomes(payload: Any) -> list[CareerOutcome]:
    candidates = _unwrap_candidates(payload)
    outcomes = [outcome for outcome in (_normalize_candidate(item) for item in candidates) if outcome]
    # sorted() is stable, so equal scores keep the model's order.
    outcomes = sorted(outcomes, key=lambda outcome: outcome.fitScore, reverse=True)
    return outcomes[:MAX_OUTCOMES]


def fallback_outcomes() -> list[CareerOutcome]:
    return [CareerOutcome(**item) for item in FALLBACK_OUTCOMES]


def _pad_with_fallbacks(outcomes: list[CareerOutcome]) -> list[CareerOutcome]:
    if len(outcomes) >= MIN_OUTCOMES:
        return outcomes
    padded = list(outcomes)
    titles = {outcome.title.lower() for outcome in padded}
    for fallback in fallback_outcomes():
        if len(padded) >= MIN_OUTCOMES:
            break
        if fallback.title.lower() not in titles:
            padded.append(fallback)
            titles.add(fallback.title.lower())
    return sorted(padded, key=lambda outcome: outcome.fitScore, reverse=True)


def generate_outcomes(
    questions: list[QuizQuestion],
    answers: list[QuizAnswer],
    *,
    generate: GenerateFn | None = None,
) -> list[CareerOutcome]:
    result = attempt_outcomes(questions, answers, generate=generate or _generate_with_system_prompt)
    if not result.ok:
        LOGGER.warning("Using fallback career outcomes: %s", result.error)
    return result.or_else(fallback_outcomes)


def _generate_with_system_prompt(prompt: str) -> str:
    return llm_client.generate(prompt, system_prompt=SYSTEM_PROMPT)


def _unwrap_candidates(payload: Any) -> list[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in ("outcomes", "careers", "careerSuggestions", "suggestions"):
            nested = payload.get(key)
            if isinstance(nested, list):
                return nested
        return [payload]
    return []


def _normalize_candidate(candidate: Any) -> CareerOutcome | None:
    if not isinstance(candidate, dict):
        return None
    title = _text(candidate.get("title"))
    description = _text(candidate.get("description"))
    if not title or not description:
        return None
    return CareerOutcome(
        title=title,
        description=description,
        advantages=_text_list(_lookup(candidate, "advantages")),
        disadvantages=_text_list(_lookup(candidate, "disadvantages")),
        compensationRange=_text(_lookup(candidate, "compensationRange")) or DEFAULT_COMPENSATION_RANGE,
        preparationPath=_text(_lookup(candidate, "preparationPath")) or DEFAULT_PREPARATION_PATH,
        demandLevel=_demand_level(_lookup(candidate, "demandLevel")),
        fitScore=_fit_score(candidate.get("fitScore")),
    )


def _lookup(candidate: dict, field: str) -> Any:
    for key in FIELD_ALIASES[field]:
        if candidate.get(key) is not None:
            return candidate[key]
    return None


def _text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _text_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [_text(item) for item in value]
    return [item for item in items if item][:MAX_LIST_ITEMS]


def _demand_level(value: Any) -> str:
    level = _text(value).lower()
    return level if level in DEMAND_LEVELS else "medium"


def _fit_score(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return DEFAULT_FIT_SCORE
    try:
        score = float(value)
    except (TypeError, ValueError):
        return DEFAULT_FIT_SCORE
    if math.isnan(score):
        return DEFAULT_FIT_SCORE
    return _clamp(score, 0.0, 100.0)


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, float(value)))
