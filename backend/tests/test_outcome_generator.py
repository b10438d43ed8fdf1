import json
import unittest
from datetime import datetime, timezone

from app.models.quiz import QuizAnswer
from app.services.outcome_generator import (
    DEFAULT_COMPENSATION_RANGE,
    DEFAULT_PREPARATION_PATH,
    build_outcome_prompt,
    fallback_outcomes,
    generate_outcomes,
    normalize_outcomes,
)
from app.services.question_generator import fallback_question


def _career(title: str, score, **extra) -> dict:
    payload = {
        "title": title,
        "description": f"{title} description",
        "advantages": ["a", "b", "c"],
        "disadvantages": ["x", "y", "z"],
        "compensationRange": "$50,000 - $70,000",
        "preparationPath": "Degree",
        "demandLevel": "high",
        "fitScore": score,
    }
    payload.update(extra)
    return payload


class OutcomeNormalizationTests(unittest.TestCase):
    def test_entries_without_title_or_description_are_dropped(self) -> None:
        outcomes = normalize_outcomes(
            [
                _career("Nurse", 70),
                _career("", 90),
                {"title": "Pilot", "fitScore": 95},
                "not an object",
                _career("Librarian", 60, description="   "),
            ]
        )
        self.assertEqual([outcome.title for outcome in outcomes], ["Nurse"])

    def test_fields_are_normalized(self) -> None:
        outcome = normalize_outcomes(
            [
                {
                    "title": " Robotics Engineer ",
                    "description": " Builds robots. ",
                    "advantages": ["one", "two", "three", "four"],
                    "disadvantages": "not a list",
                    "demandLevel": "Very High",
                    "fitScore": "not a number",
                }
            ]
        )[0]
        self.assertEqual(outcome.title, "Robotics Engineer")
        self.assertEqual(outcome.description, "Builds robots.")
        self.assertEqual(outcome.advantages, ["one", "two", "three"])
        self.assertEqual(outcome.disadvantages, [])
        self.assertEqual(outcome.compensationRange, DEFAULT_COMPENSATION_RANGE)
        self.assertEqual(outcome.preparationPath, DEFAULT_PREPARATION_PATH)
        self.assertEqual(outcome.demandLevel, "medium")
        self.assertEqual(outcome.fitScore, 50.0)

    def test_fit_score_is_clamped(self) -> None:
        outcomes = normalize_outcomes([_career("High", 150), _career("Low", -20), _career("Zero", 0)])
        scores = {outcome.title: outcome.fitScore for outcome in outcomes}
        self.assertEqual(scores, {"High": 100.0, "Low": 0.0, "Zero": 0.0})

    def test_sorted_descending_with_stable_ties(self) -> None:
        outcomes = normalize_outcomes(
            [_career("B", 60), _career("A", 80), _career("C", 60), _career("D", "75")]
        )
        self.assertEqual([outcome.title for outcome in outcomes], ["A", "D", "B", "C"])

    def test_legacy_field_names_are_accepted(self) -> None:
        outcome = normalize_outcomes(
            [
                {
                    "title": "Chef",
                    "description": "Cooks food.",
                    "pros": ["creative"],
                    "cons": ["long hours"],
                    "salaryRange": "$40k",
                    "educationPath": "Culinary school",
                    "jobMarket": "LOW",
                    "fitScore": 64,
                }
            ]
        )[0]
        self.assertEqual(outcome.advantages, ["creative"])
        self.assertEqual(outcome.disadvantages, ["long hours"])
        self.assertEqual(outcome.compensationRange, "$40k")
        self.assertEqual(outcome.preparationPath, "Culinary school")
        self.assertEqual(outcome.demandLevel, "low")

    def test_wrapped_and_oversized_lists(self) -> None:
        careers = [_career(f"Career {n}", n * 10) for n in range(7)]
        outcomes = normalize_outcomes({"careers": careers})
        self.assertEqual(len(outcomes), 5)
        self.assertEqual(outcomes[0].title, "Career 6")


class OutcomeGenerationTests(unittest.TestCase):
    def setUp(self) -> None:
        self.questions = [fallback_question(index) for index in range(3)]
        self.answers = [
            QuizAnswer(questionId=question.id, text="Hands-on practice", submittedAt=datetime.now(timezone.utc))
            for question in self.questions
        ]

    def test_model_outcomes_are_used(self) -> None:
        raw = "Based on the answers:\n```json\n" + json.dumps([_career("Nurse", 70), _career("Coder", 90)]) + "\n```"
        outcomes = generate_outcomes(self.questions, self.answers, generate=lambda prompt: raw)
        self.assertEqual([outcome.title for outcome in outcomes], ["Coder", "Nurse"])

    def test_failures_return_fallback_outcomes(self) -> None:
        def _raise(prompt: str) -> str:
            raise TimeoutError("slow model")

        for generate in (_raise, lambda prompt: "no json here", lambda prompt: json.dumps([{"title": "x"}])):
            with self.subTest(generate=generate):
                outcomes = generate_outcomes(self.questions, self.answers, generate=generate)
                self.assertEqual(outcomes, fallback_outcomes())
                self.assertEqual(len(outcomes), 2)
                self.assertGreaterEqual(outcomes[0].fitScore, outcomes[1].fitScore)

    def test_single_valid_outcome_is_padded_to_two(self) -> None:
        raw = json.dumps(
            [
                {"title": "Nurse", "description": "Cares for patients.", "fitScore": 70},
                {"title": "", "description": "dropped"},
            ]
        )
        outcomes = generate_outcomes(self.questions, self.answers, generate=lambda prompt: raw)
        self.assertEqual([outcome.title for outcome in outcomes], ["UX/UI Designer", "Nurse"])
        self.assertGreaterEqual(outcomes[0].fitScore, outcomes[1].fitScore)

    def test_padding_skips_fallback_with_same_title(self) -> None:
        raw = json.dumps([_career("ux/ui designer", 95)])
        outcomes = generate_outcomes(self.questions, self.answers, generate=lambda prompt: raw)
        self.assertEqual([outcome.title for outcome in outcomes], ["ux/ui designer", "Data Scientist"])

    def test_prompt_contains_transcript(self) -> None:
        prompt = build_outcome_prompt(self.questions, self.answers[:2])
        self.assertIn(f"Q1: {self.questions[0].question}", prompt)
        self.assertIn("A: Hands-on practice", prompt)
        self.assertIn("A: N/A", prompt)
        self.assertIn("fitScore", prompt)


if __name__ == "__main__":
    unittest.main()
