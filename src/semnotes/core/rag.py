"""Question answering grounded in the user's notes."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from semnotes.config import SemNotesSettings
from semnotes.core.notes_index import NotesIndex
from semnotes.core.providers import CompletionProvider
from semnotes.vault.schema import SearchResult

logger = logging.getLogger(__name__)

NO_CONTEXT_ANSWER = (
    "I couldn't find any relevant information in your notes to answer this question."
)

PROMPT_TEMPLATE = """You are a helpful assistant answering questions based on the user's notes.
Answer the following question based ONLY on the provided context from the user's notes.
If the context doesn't contain the information needed to answer, say "I don't have enough information in your notes to answer this question."

CONTEXT:
{context}

QUESTION: {question}

ANSWER:"""


@dataclass
class QuestionAnswer:
    """Answer to a question plus the notes it was grounded in."""
    answer: str
    sources: list[SearchResult] = field(default_factory=list)
    show_sources: bool = False
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


def format_context(notes: list[SearchResult]) -> str:
    """Number each retrieved note and label it with its title."""
    return "\n".join(
        f'[{i}] From "{note.title}":\n{note.text}\n'
        for i, note in enumerate(notes, start=1)
    )


def build_prompt(question: str, context: str) -> str:
    return PROMPT_TEMPLATE.format(context=context, question=question)


class RAGService:
    """Retrieves context from a NotesIndex and asks the completion provider."""

    def __init__(
        self,
        settings: SemNotesSettings,
        index: NotesIndex,
        completion: CompletionProvider,
    ) -> None:
        self.settings = settings
        self.index = index
        self.completion = completion

    async def answer_question(self, question: str) -> QuestionAnswer:
        """Answer ``question`` from the indexed notes.

        Completion failures are reported on the result, never retried.
        """
        if not self.settings.llm_model:
            return QuestionAnswer(answer="Error: LLM model not selected", error="LLM model not selected")

        notes = await self.index.search(
            question,
            limit=self.settings.context_length,
            use_reranking=self.settings.use_reranking,
        )
        if not notes:
            return QuestionAnswer(answer=NO_CONTEXT_ANSWER)

        prompt = build_prompt(question, format_context(notes))

        try:
            answer = await self.completion.complete(prompt, self.settings.llm_model)
        except Exception as e:
            logger.exception("Answer generation failed")
            return QuestionAnswer(answer=f"Error: {e}", error=str(e))

        return QuestionAnswer(answer=answer, sources=notes, show_sources=True)
