"""Language-model backed translation, summaries and comparisons."""

from __future__ import annotations

import logging
from typing import Dict, List, Sequence

from openai import AsyncOpenAI, AuthenticationError, OpenAIError

from docscope.config import AppConfig
from docscope.errors import AssistantError, AssistantUnavailable
from docscope.utils.text import split_into_chunks

LOGGER = logging.getLogger(__name__)

TRANSLATE_CHUNK_CHARS = 3000
SUMMARY_CHUNK_CHARS = 4000
COMPARE_MAX_CHARS = 6000

LANGUAGES: List[Dict[str, str]] = [
    {"code": "en", "name": "English"},
    {"code": "es", "name": "Spanish"},
    {"code": "fr", "name": "French"},
    {"code": "de", "name": "German"},
    {"code": "it", "name": "Italian"},
    {"code": "pt", "name": "Portuguese"},
    {"code": "nl", "name": "Dutch"},
    {"code": "ru", "name": "Russian"},
    {"code": "zh", "name": "Chinese"},
    {"code": "ja", "name": "Japanese"},
    {"code": "ko", "name": "Korean"},
    {"code": "ar", "name": "Arabic"},
    {"code": "hi", "name": "Hindi"},
    {"code": "tr", "name": "Turkish"},
    {"code": "pl", "name": "Polish"},
    {"code": "sv", "name": "Swedish"},
    {"code": "da", "name": "Danish"},
    {"code": "no", "name": "Norwegian"},
    {"code": "fi", "name": "Finnish"},
]

SUMMARY_LENGTHS = {
    "short": "Provide a brief summary in 2-3 sentences.",
    "medium": "Provide a comprehensive summary in 1-2 paragraphs.",
    "long": "Provide a detailed summary covering all main points in 3-4 paragraphs.",
}

COMPARE_SYSTEM_PROMPT = """You are an expert document analyst. Compare two documents and provide a detailed analysis including:
1. **Key Differences**: Major changes, additions, or removals between the documents
2. **Similarities**: Common themes, topics, or content that appears in both
3. **Content Changes**: Specific modifications in wording, data, or structure
4. **Summary**: Overall assessment of how the documents relate to each other

Format your response in clear sections with markdown formatting."""


def _truncate(text: str, limit: int) -> str:
    return text[:limit] + "..." if len(text) > limit else text


class ChatAssistant:
    """Thin wrapper around the OpenAI chat completions API."""

    def __init__(self, client: AsyncOpenAI, *, model: str) -> None:
        self.client = client
        self.model = model

    @classmethod
    def from_config(cls, config: AppConfig) -> "ChatAssistant":
        if not config.openai_api_key:
            raise AssistantUnavailable("OPENAI_API_KEY is not configured")
        client = AsyncOpenAI(
            api_key=config.openai_api_key,
            timeout=config.openai_timeout,
            max_retries=config.openai_max_retries,
        )
        return cls(client, model=config.openai_model)

    async def complete_chat(
        self,
        messages: Sequence[Dict[str, str]],
        *,
        temperature: float,
        max_tokens: int,
    ) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=list(messages),
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except AuthenticationError as exc:
            raise AssistantError("Invalid OpenAI API key. Please check your .env file.") from exc
        except OpenAIError as exc:
            raise AssistantError(f"Language model request failed: {exc}") from exc
        return response.choices[0].message.content or ""

    async def translate(self, text: str, language: str) -> str:
        system = (
            f"You are a professional translator. Translate the following text to {language}. "
            "Maintain the original formatting and structure. "
            "Only provide the translation, no explanations."
        )
        translated: List[str] = []
        for chunk in split_into_chunks(text, TRANSLATE_CHUNK_CHARS):
            translated.append(
                await self.complete_chat(
                    [{"role": "system", "content": system}, {"role": "user", "content": chunk}],
                    temperature=0.3,
                    max_tokens=4000,
                )
            )
        return "\n\n".join(translated)

    async def summarize(self, text: str, length: str = "medium") -> str:
        instruction = SUMMARY_LENGTHS.get(length, SUMMARY_LENGTHS["medium"])
        if len(text) > SUMMARY_CHUNK_CHARS:
            return await self._summarize_long(text, instruction)

        return await self.complete_chat(
            [
                {
                    "role": "system",
                    "content": f"You are an expert at summarizing documents. {instruction} "
                    "Focus on the key points and main ideas.",
                },
                {"role": "user", "content": f"Please summarize the following text:\n\n{text}"},
            ],
            temperature=0.5,
            max_tokens=1000,
        )

    async def _summarize_long(self, text: str, instruction: str) -> str:
        chunks = split_into_chunks(text, SUMMARY_CHUNK_CHARS)
        LOGGER.debug("Summarizing %d chunks", len(chunks))
        partials: List[str] = []
        for number, chunk in enumerate(chunks, start=1):
            partials.append(
                await self.complete_chat(
                    [
                        {
                            "role": "system",
                            "content": f"You are summarizing part {number} of {len(chunks)} of a longer "
                            "document. Provide a concise summary of this section.",
                        },
                        {"role": "user", "content": chunk},
                    ],
                    temperature=0.5,
                    max_tokens=500,
                )
            )

        combined = "\n\n".join(partials)
        return await self.complete_chat(
            [
                {
                    "role": "system",
                    "content": f"You are creating a final summary from multiple section summaries. {instruction}",
                },
                {
                    "role": "user",
                    "content": f"Create a cohesive summary from these section summaries:\n\n{combined}",
                },
            ],
            temperature=0.5,
            max_tokens=1000,
        )

    async def compare(self, text_a: str, text_b: str, label_a: str, label_b: str) -> str:
        prompt = (
            "Compare these two documents:\n\n"
            f"**Document 1: {label_a}**\n{_truncate(text_a, COMPARE_MAX_CHARS)}\n\n"
            f"**Document 2: {label_b}**\n{_truncate(text_b, COMPARE_MAX_CHARS)}\n\n"
            "Please provide a comprehensive comparison analysis."
        )
        return await self.complete_chat(
            [{"role": "system", "content": COMPARE_SYSTEM_PROMPT}, {"role": "user", "content": prompt}],
            temperature=0.3,
            max_tokens=2000,
        )
