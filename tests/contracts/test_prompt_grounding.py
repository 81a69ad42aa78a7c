from resume_rag.generation.prompt import select_context, system_prompt, user_prompt
from resume_rag.types import RetrievalHit


def _hit(source: str, text: str, score: float = 0.5) -> RetrievalHit:
    return RetrievalHit(id=f"{source}-id", source=source, text=text, score=score)


def test_system_prompt_contains_grounding_constraints() -> None:
    prompt = system_prompt()

    assert "[source]" in prompt
    assert "say you do not know" in prompt


def test_grounded_prompt_renders_snippets_before_question() -> None:
    prompt = user_prompt(
        "What did Jane do?",
        [_hit("resume", "Jane is an engineer."), _hit("projects", "Project X processes events.")],
    )

    assert "[resume] Jane is an engineer.\n\n[projects] Project X processes events." in prompt
    assert prompt.index("[resume]") < prompt.index("Answer using only the information above")
    assert "mention which parts you used" in prompt


def test_ungrounded_prompt_allows_general_knowledge() -> None:
    prompt = user_prompt("What is Kubernetes?")

    assert "No résumé or project context was supplied" in prompt
    assert "general knowledge" in prompt
    assert "[" not in prompt.split("\n", 1)[1]


def test_grounded_prompt_with_no_matches_says_so() -> None:
    assert "no matching passages" in user_prompt("Anything?", [])


def test_context_budget_keeps_rank_order_and_top_hit() -> None:
    hits = [_hit("a", "x" * 30), _hit("b", "y" * 30), _hit("c", "z" * 30)]

    assert [hit.source for hit in select_context(hits, 80)] == ["a", "b"]
    assert [hit.source for hit in select_context(hits, 5)] == ["a"]
    assert select_context(hits, None) == hits
