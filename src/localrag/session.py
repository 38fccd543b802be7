"""
Interactive question-answering session.

ChatSession is a small state machine around one retriever and one
generator:

    IDLE ──run()──▶ AWAITING_INPUT ──question──▶ ANSWERING
                        ▲   │                        │
                        │   └── exit / quit / EOF ──▶ TERMINATED
                        └────────── answer printed ──┘

Each non-blank line is one question: retrieve, generate, print the answer
and its sources. Backend failures while answering (EmbeddingError,
GenerationError) are printed and logged, and the loop goes on. Anything
else propagates.

The session does no I/O of its own. run() takes an iterable of lines and a
write callable, so the CLI passes input()/print and tests pass lists.
"""

from enum import Enum
from typing import Callable, Iterable, Optional

import structlog

from localrag.base.generator import BaseGenerator
from localrag.base.retriever import BaseRetriever
from localrag.exceptions import EmbeddingError, GenerationError
from localrag.models.result import RAGResponse

logger = structlog.get_logger()

EXIT_COMMANDS = frozenset({"exit", "quit"})
EXIT_BANNER = "Goodbye!"


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_INPUT = "awaiting_input"
    ANSWERING = "answering"
    TERMINATED = "terminated"


def is_exit_command(line: str) -> bool:
    return line.strip().lower() in EXIT_COMMANDS


class ChatSession:
    """One interactive conversation over an existing index."""

    def __init__(
        self,
        retriever: BaseRetriever,
        generator: BaseGenerator,
        k: Optional[int] = None,
        show_sources: bool = True,
    ):
        self._retriever = retriever
        self._generator = generator
        self.k = k
        self.show_sources = show_sources
        self.state = SessionState.IDLE
        self.answered = 0
        self.errors = 0

    def ask(self, question: str) -> RAGResponse:
        """One retrieve-and-generate cycle for a single question."""
        retrieval = self._retriever.retrieve(question, k=self.k)
        generation = self._generator.generate(question, retrieval)
        return RAGResponse(
            answer=generation.answer,
            retrieval=retrieval,
            generation=generation,
            technique="simple_rag",
        )

    def handle(self, line: str, write: Callable[[str], None] = print) -> SessionState:
        """
        Process one input line and return the resulting state.

        Raises:
            RuntimeError: If the session has already terminated.
        """
        if self.state == SessionState.TERMINATED:
            raise RuntimeError("Session has terminated")

        if is_exit_command(line):
            write(EXIT_BANNER)
            return self._terminate("exit_command")

        question = line.strip()
        if not question:
            self.state = SessionState.AWAITING_INPUT
            return self.state

        self.state = SessionState.ANSWERING
        try:
            response = self.ask(question)
        except (EmbeddingError, GenerationError) as e:
            self.errors += 1
            logger.warning("question_failed", error=str(e), error_type=type(e).__name__)
            write(f"Error: {e}")
        else:
            self.answered += 1
            write(response.answer)
            if self.show_sources and response.generation and response.generation.sources:
                write("Sources: " + ", ".join(response.generation.sources))

        self.state = SessionState.AWAITING_INPUT
        return self.state

    def run(self, lines: Iterable[str], write: Callable[[str], None] = print) -> SessionState:
        """
        Answer lines until an exit command or the end of input.

        Returns:
            The final state, always TERMINATED.
        """
        self.state = SessionState.AWAITING_INPUT
        logger.info("session_started", k=self.k)

        for line in lines:
            self.handle(line, write)
            if self.state == SessionState.TERMINATED:
                return self.state

        return self._terminate("end_of_input")

    def _terminate(self, reason: str) -> SessionState:
        self.state = SessionState.TERMINATED
        logger.info(
            "session_ended",
            reason=reason,
            answered=self.answered,
            errors=self.errors,
        )
        return self.state
