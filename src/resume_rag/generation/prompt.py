"""System and user prompt builders."""

from __future__ import annotations

from collections.abc import Sequence

from resume_rag.types import RetrievalHit

_SYSTEM_PROMPT = """
You are a helpful assistant that answers questions using the candidate's résumé and projects.
- Be concise and specific.
- Cite the snippets you used as [source], using the label shown before each snippet.
- If the answer is not in the provided text, say you do not know.
""".strip()

_GROUNDED_TEMPLATE = """Question: {question}

Use this information:
{context}

Answer using only the information above. Give a short, direct answer and mention which parts you used."""

_UNGROUNDED_TEMPLATE = """Question: {question}

No résumé or project context was supplied for this question.
Answer from general knowledge, and say clearly that the answer is not based on the candidate's documents."""

_NO_MATCHES = "(no matching passages were found)"


def system_prompt() -> str:
    return _SYSTEM_PROMPT


def render_snippet(hit: RetrievalHit) -> str:
    return f"[{hit.source}] {hit.text}"


def select_context(
    snippets: Sequence[RetrievalHit], max_context_chars: int | None = None
) -> list[RetrievalHit]:
    """Take snippets in rank order while the rendered context fits the budget.

    The top-ranked snippet is always kept, even if it alone exceeds the budget.
    """

    if max_context_chars is None:
        return list(snippets)

    selected: list[RetrievalHit] = []
    used = 0
    for hit in snippets:
        cost = len(render_snippet(hit)) + (2 if selected else 0)
        if selected and used + cost > max_context_chars:
            break
        selected.append(hit)
        used += cost
    return selected


def render_context(snippets: Sequence[RetrievalHit]) -> str:
    if not snippets:
        return _NO_MATCHES
    return "\n\n".join(render_snippet(hit) for hit in snippets)


def user_prompt(
    question: str,
    snippets: Sequence[RetrievalHit] | None = None,
    *,
    max_context_chars: int | None = None,
) -> str:
    """Build the user turn.

    With `snippets` (grounded mode) the rendered `[source] text` blocks are
    placed ahead of the answering instruction. With `snippets=None`
    (ungrounded mode) the prompt states that no context exists and allows a
    general-knowledge answer.
    """

    if snippets is None:
        return _UNGROUNDED_TEMPLATE.format(question=question)
    context = render_context(select_context(snippets, max_context_chars))
    return _GROUNDED_TEMPLATE.format(question=question, context=context)
