# tests/core/test_completion.py
import pytest
from unittest.mock import MagicMock

from tiny_console.core.command_registry import CommandRegistry, Param, ParamType
from tiny_console.core.managers.alias_manager import AliasManager
from tiny_console.core.managers.completion_manager import CompletionCycle, CompletionManager
from tiny_console.core.managers.history_manager import HistoryBuffer
from tiny_console.model import CandidateKind, CompletionCandidate

ENEMIES = ["goblin", "Giant", "orc", "big goblin"]


@pytest.fixture
def completion():
    registry = CommandRegistry()
    registry.register("math multiply", "multiply two numbers", MagicMock(),
                      [Param("a", ParamType.FLOAT), Param("b", ParamType.FLOAT)])
    registry.register("math add", "add two numbers", MagicMock(),
                      [Param("a", ParamType.FLOAT), Param("b", ParamType.FLOAT)])
    registry.register("echo", "display a line of text", MagicMock(),
                      [Param("text", ParamType.TEXT, default="", greedy=True)])
    registry.register("set_health", "set player health", MagicMock(),
                      [Param("value", ParamType.INT, source=lambda: [10, 50, 100])])
    registry.register("spawn", "spawn an enemy", MagicMock(),
                      [Param("kind", ParamType.TEXT, source=lambda: ENEMIES)])
    registry.register("teleport", "move the player", MagicMock(), [
        Param("pos", ParamType.VECTOR2),
        Param("target", ParamType.TEXT, default="", source=lambda: ["home", "base"]),
    ])

    aliases = AliasManager()
    aliases.add("hp", "set_health")
    return CompletionManager(registry, aliases, HistoryBuffer())


def texts(candidates):
    return [c.text for c in candidates]


def test_empty_line_lists_root_commands_and_aliases(completion):
    candidates = completion.complete("")
    assert texts(candidates) == ["echo", "hp", "math", "set_health", "spawn", "teleport"]
    kinds = {c.text: c.kind for c in candidates}
    assert kinds["math"] is CandidateKind.SUBCOMMAND
    assert kinds["echo"] is CandidateKind.COMMAND
    assert kinds["hp"] is CandidateKind.ALIAS


def test_prefix_filters_root_segment(completion):
    candidates = completion.complete("ma")
    assert texts(candidates) == ["math"]
    assert candidates[0].line == "math"


def test_structural_node_offers_subcommands(completion):
    candidates = completion.complete("math ")
    assert [c.line for c in candidates] == ["math add", "math multiply"]
    assert all(c.kind is CandidateKind.COMMAND for c in candidates)
    assert candidates[0].description == "add two numbers"


def test_subcommand_prefix_is_case_insensitive(completion):
    assert texts(completion.complete("MATH Mu")) == ["multiply"]


def test_argument_source_is_filtered_case_insensitively(completion):
    candidates = completion.complete("spawn g")
    assert texts(candidates) == ["goblin", "Giant"]
    assert all(c.kind is CandidateKind.ARGUMENT for c in candidates)


def test_argument_with_spaces_is_quoted_in_line(completion):
    candidates = completion.complete("spawn bi")
    assert candidates[0].line == 'spawn "big goblin"'


def test_source_values_are_stringified(completion):
    assert texts(completion.complete("set_health 1")) == ["10", "100"]


def test_alias_in_leading_position_is_expanded(completion):
    candidates = completion.complete("hp 5")
    assert [c.line for c in candidates] == ["hp 50"]


def test_vector_parameters_shift_the_argument_index(completion):
    candidates = completion.complete("teleport 1 2 h")
    assert [c.line for c in candidates] == ["teleport 1 2 home"]
    assert completion.complete("teleport 1 ") == []


def test_source_is_called_fresh_each_time(completion):
    values = ["alpha"]
    completion.registry.set_source("echo", 0, lambda: list(values))
    assert texts(completion.complete("echo a")) == ["alpha"]
    values.append("apex")
    assert texts(completion.complete("echo a")) == ["alpha", "apex"]


def test_failing_source_yields_no_candidates(completion):
    completion.registry.set_source("echo", 0, MagicMock(side_effect=RuntimeError("boom")))
    assert completion.complete("echo x") == []


def test_cursor_token_index_ignores_later_tokens(completion):
    assert texts(completion.complete("math mul 3 4", cursor_token_index=1)) == ["multiply"]


def test_history_candidates_follow_matches(completion):
    completion.history.push("echo hello")
    candidates = completion.complete("ec")
    assert [(c.text, c.kind) for c in candidates] == [
        ("echo", CandidateKind.COMMAND),
        ("echo hello", CandidateKind.HISTORY),
    ]


def test_history_only_when_nothing_else_matches(completion):
    completion.use_history_with_matches = False
    completion.history.push("echo hello")
    assert texts(completion.complete("ec")) == ["echo"]
    candidates = completion.complete("echo h")
    assert [(c.line, c.kind) for c in candidates] == [("echo hello", CandidateKind.HISTORY)]


def test_suggestion_comes_first(completion):
    completion.suggestion = "echo hi"
    candidates = completion.complete("ec")
    assert candidates[0].kind is CandidateKind.SUGGESTION
    assert candidates[0].line == "echo hi"
    assert completion.complete("ma")[0].kind is not CandidateKind.SUGGESTION


def test_complete_does_not_modify_state(completion):
    completion.history.push("echo hello")
    before = (completion.registry.list(), completion.aliases.list(), completion.history.list())
    completion.complete("e")
    completion.complete("hp ")
    assert (completion.registry.list(), completion.aliases.list(), completion.history.list()) == before


def test_cycle_steps_through_candidates_and_wraps(completion):
    assert completion.cycle("math ").line == "math add"
    assert completion.cycle("math add").line == "math multiply"
    assert completion.cycle("math multiply").line == "math add"


def test_cycle_reverse_starts_from_the_end(completion):
    assert completion.cycle("math ", reverse=True).line == "math multiply"


def test_cycle_restarts_on_a_new_line(completion):
    completion.cycle("math ")
    assert completion.cycle("spawn o").line == "spawn orc"
    completion.reset_cycle()
    assert completion.cycle("math ").line == "math add"


def test_completion_cycle_is_immutable():
    candidates = (
        CompletionCandidate(text="a", line="a", kind=CandidateKind.COMMAND),
        CompletionCandidate(text="b", line="b", kind=CandidateKind.COMMAND),
    )
    cycle = CompletionCycle("", candidates)
    advanced = cycle.next()
    assert cycle.current is None
    assert advanced.current.text == "a"
    assert advanced.next().next().current.text == "a"
    assert CompletionCycle("", ()).next().current is None


def test_command_names(completion):
    assert "hp" in completion.command_names()
    assert "hp" not in completion.command_names(include_aliases=False)
    assert "math add" in completion.command_names()
