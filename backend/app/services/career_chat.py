import logging

from app.services import llm_client
from app.services.chat_memory import ChatMemoryStore, chat_memory
from app.services.llm_client import GenerationError

LOGGER = logging.getLogger(__name__)

CAREER_ADVISOR_PROMPT = """
You are a friendly AI career advisor for young job seekers. Follow these guidelines:

1. RESPONSE STYLE:
- Be extremely concise (1-2 short paragraphs max)
- Use simple language and short sentences
- Present information in bullet points when possible
- Keep answers focused and practical

2. CONTENT PRIORITIES:
- Provide key facts first
- Highlight the most important steps
- Give specific examples when helpful
- Include local context (salaries, opportunities) when the user mentions a country

3. LANGUAGE:
- Respond in the user's language
- Keep technical terms minimal
- Explain complex concepts simply

4. FORMATTING:
- Use clear section headings
- Break down complex answers
- End with clear next steps
""".strip()


class InvalidMessageError(ValueError):
    pass


class ChatUnavailableError(RuntimeError):
    pass


class CareerChatService:
    def __init__(self, memory: ChatMemoryStore | None = None, *, generate_chat=None) -> None:
        self.memory = memory if memory is not None else ChatMemoryStore()
        self._generate_chat = generate_chat or llm_client.generate_chat

    def reply(self, thread_id: str, message: str) -> str:
        text = str(message or "").strip()
        if not text:
            raise InvalidMessageError("Message must not be empty")

        with self.memory.lock_for(thread_id):
            self.memory.append(thread_id, "user", text)
            history = [
                {"role": item.role, "content": item.content}
                for item in self.memory.history(thread_id)
            ]
            try:
                answer = self._generate_chat(history, system_prompt=CAREER_ADVISOR_PROMPT)
            except GenerationError as exc:
                LOGGER.warning("Career chat generation failed for thread %s: %s", thread_id, exc)
                raise ChatUnavailableError("Failed to process your request. Please try again.") from exc
            answer = str(answer or "").strip()
            if not answer:
                raise ChatUnavailableError("Failed to process your request. Please try again.")
            self.memory.append(thread_id, "assistant", answer)
        return answer

    def history(self, thread_id: str):
        return self.memory.history(thread_id)


career_chat_service = CareerChatService(chat_memory)
