import os
import unittest
from unittest.mock import patch

from app.services import llm_client
from app.services.career_chat import (
    CAREER_ADVISOR_PROMPT,
    CareerChatService,
    ChatUnavailableError,
    InvalidMessageError,
)
from app.services.chat_memory import ChatMemoryStore
from app.services.llm_client import GenerationError


class RecordingChatModel:
    def __init__(self) -> None:
        self.calls: list[tuple[list[dict], str]] = []

    def __call__(self, messages: list[dict], *, system_prompt: str) -> str:
        self.calls.append(([dict(message) for message in messages], system_prompt))
        return f"reply {len(self.calls)}"


def _failing_chat(messages: list[dict], *, system_prompt: str) -> str:
    raise GenerationError("timeout")


class CareerChatServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.model = RecordingChatModel()
        self.service = CareerChatService(ChatMemoryStore(), generate_chat=self.model)

    def test_reply_records_both_turns(self) -> None:
        self.assertEqual(self.service.reply("t1", "  How do I become a nurse? "), "reply 1")
        history = self.service.history("t1")
        self.assertEqual([message.role for message in history], ["user", "assistant"])
        self.assertEqual(history[0].content, "How do I become a nurse?")
        self.assertEqual(history[1].content, "reply 1")

    def test_full_history_is_sent_in_order(self) -> None:
        self.service.reply("t1", "first")
        self.service.reply("t1", "second")
        messages, system_prompt = self.model.calls[-1]
        self.assertEqual(
            messages,
            [
                {"role": "user", "content": "first"},
                {"role": "assistant", "content": "reply 1"},
                {"role": "user", "content": "second"},
            ],
        )
        self.assertEqual(system_prompt, CAREER_ADVISOR_PROMPT)

    def test_threads_are_independent(self) -> None:
        self.service.reply("t1", "hello")
        self.service.reply("t2", "hi")
        self.assertEqual(len(self.service.history("t1")), 2)
        self.assertEqual(len(self.service.history("t2")), 2)
        self.assertEqual(self.service.history("unknown"), [])

    def test_blank_message_is_rejected(self) -> None:
        with self.assertRaises(InvalidMessageError):
            self.service.reply("t1", "   ")
        self.assertEqual(self.service.history("t1"), [])
        self.assertEqual(self.model.calls, [])

    def test_generation_failure_is_reported(self) -> None:
        service = CareerChatService(ChatMemoryStore(), generate_chat=_failing_chat)
        with self.assertRaises(ChatUnavailableError):
            service.reply("t1", "Any jobs in design?")
        history = service.history("t1")
        self.assertEqual([message.role for message in history], ["user"])

    def test_malformed_model_setting_is_reported_as_unavailable(self) -> None:
        service = CareerChatService(ChatMemoryStore(), generate_chat=llm_client.generate_chat)
        env = {"OPENAI_API_KEY": "k", "CAREER_LLM_TIMEOUT_SECONDS": "twenty"}
        with patch.dict(os.environ, env), patch("app.services.llm_client.OpenAI") as openai_cls:
            with self.assertRaises(ChatUnavailableError):
                service.reply("t1", "Any jobs in design?")
        openai_cls.return_value.chat.completions.create.assert_not_called()
        self.assertEqual([message.role for message in service.history("t1")], ["user"])


if __name__ == "__main__":
    unittest.main()
