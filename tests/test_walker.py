"""Tests for the instruction walker."""

import pytest

from dbconcat.engine import FileFragment, TextFragment, Walker
from dbconcat.exceptions import (
    DanglingConditionalError,
    InstructionError,
    InvalidCommandFormatError,
    SourceFileError,
    UnclosedConditionalError,
    UnknownCommandError,
)
from dbconcat.params import ParameterStore


def walk(path, **locked):
    store = ParameterStore(locked=locked)
    plan = Walker(store).walk(path)
    return plan, store


def texts(plan):
    return [f.text for f in plan.fragments if isinstance(f, TextFragment)]


def test_comments_and_blank_lines(write):
    path = write("main.dsl", "# header\n\n   # indented\nemit a\n")
    plan, _ = walk(path)
    assert plan.fragments == [TextFragment("a")]


def test_concat_records_base_dir(write, tmp_path):
    path = write("sub/main.dsl", "concat ${V}.sql\n")
    plan, _ = walk(path)
    assert plan.fragments == [FileFragment("${V}.sql", tmp_path / "sub")]


def test_emit_and_print_are_deferred(write):
    path = write("main.dsl", "emit v=${V}@@n\nprint V\nset V=2\n")
    plan, store = walk(path)
    assert texts(plan) == ["v=${V}@@n", "${V}"]
    assert plan.fragments[1].param == "V"
    assert store.resolve("V") == "2"


def test_param_and_set(write):
    path = write("main.dsl", "param A=1\nparam A=2\nparam B=${A}x\nset C=${B}y\n")
    _, store = walk(path)
    assert store.resolve("A") == "1"
    assert store.resolve("B") == "1x"
    assert store.resolve("C") == "1xy"


@pytest.mark.parametrize("line", ["param NOVALUE", "set NOVALUE"])
def test_assignment_without_equals(write, line):
    path = write("main.dsl", f"emit ok\n{line}\n")
    with pytest.raises(InvalidCommandFormatError, match="command format") as info:
        walk(path)
    assert info.value.lineno == 2


def test_unknown_command(write):
    path = write("main.dsl", "emit ok\nfrobnicate now\n")
    with pytest.raises(UnknownCommandError, match="unknown command: frobnicate") as info:
        walk(path)
    assert info.value.source == path
    assert "main.dsl:2" in str(info.value)


def test_missing_instruction_file(tmp_path):
    with pytest.raises(SourceFileError):
        walk(tmp_path / "nope.dsl")


class TestOutput:
    def test_output_recorded(self, write):
        plan, _ = walk(write("main.dsl", "output out/${ENV}.sql\n"))
        assert plan.output == "out/${ENV}.sql"

    def test_first_output_wins(self, write):
        write("inc.dsl", "output second.sql\n")
        path = write("main.dsl", "output first.sql\ninclude inc.dsl\noutput third.sql\n")
        plan, _ = walk(path)
        assert plan.output == "first.sql"

    def test_first_output_inside_include_wins(self, write):
        write("inc.dsl", "output from_include.sql\n")
        plan, _ = walk(write("main.dsl", "include inc.dsl\noutput from_main.sql\n"))
        assert plan.output == "from_include.sql"

    def test_empty_output_ignored(self, write):
        plan, _ = walk(write("main.dsl", "output\nemit ok\n"))
        assert plan.output is None

    def test_empty_output_does_not_take_first_slot(self, write):
        plan, _ = walk(write("main.dsl", "output  \noutput real.sql\n"))
        assert plan.output == "real.sql"


class TestTextBlock:
    def test_lines_kept_verbatim(self, write):
        path = write(
            "main.dsl",
            "text-begin\n  -- indented ${V}\n# not a comment\n\nemit not a command\n  text-end  \nemit after\n",
        )
        plan, _ = walk(path)
        assert texts(plan) == [
            "  -- indented ${V}\n# not a comment\n\nemit not a command\n",
            "after",
        ]

    def test_empty_block(self, write):
        plan, _ = walk(write("main.dsl", "text-begin\ntext-end\n"))
        assert texts(plan) == [""]

    def test_block_end_with_prefix(self, write):
        path = write("main.dsl", "set-prefix ns\nns:text-begin\nbody\nns:text-end\n")
        plan, _ = walk(path)
        assert texts(plan) == ["body\n"]

    def test_block_in_false_branch_discarded(self, write):
        path = write(
            "main.dsl",
            "if X=1\ntext-begin\nhidden\nendif\nemit done\n",
        )
        plan, _ = walk(path, X="0")
        assert texts(plan) == ["done"]

    def test_suppressed_text_begin_does_not_swallow_else(self, write):
        path = write("main.dsl", "if X=1\ntext-begin\nelse\nemit hi\nendif\n")
        plan, _ = walk(path, X="0")
        assert texts(plan) == ["hi"]

    def test_lines_after_suppressed_text_begin_are_directives(self, write):
        path = write(
            "main.dsl",
            "if X=1\ntext-begin\nif Y=1\nemit inner\nendif\nendif\nemit done\n",
        )
        plan, _ = walk(path, X="0", Y="1")
        assert texts(plan) == ["done"]

    def test_unterminated_block_discarded(self, write):
        plan, _ = walk(write("main.dsl", "emit a\ntext-begin\nnever closed\n"))
        assert texts(plan) == ["a"]


class TestConditionals:
    def test_branch_selection(self, write):
        path = write(
            "main.dsl",
            "if ENV=prod\nemit prod\nelse\nemit dev\nendif\n",
        )
        plan, _ = walk(path, ENV="prod")
        assert texts(plan) == ["prod"]
        plan, _ = walk(path, ENV="test")
        assert texts(plan) == ["dev"]

    def test_suppressed_directives_have_no_effect(self, write):
        path = write(
            "main.dsl",
            "if X=1\nset V=changed\nbogus command\ninclude missing.dsl\noutput x.sql\nendif\n",
        )
        plan, store = walk(path, X="0")
        assert store.resolve("V") is None
        assert plan.output is None
        assert plan.fragments == []

    def test_condition_sees_earlier_set(self, write):
        path = write("main.dsl", "set MODE=full\nif MODE=full\nemit yes\nendif\n")
        plan, _ = walk(path)
        assert texts(plan) == ["yes"]

    def test_unclosed_if(self, write):
        with pytest.raises(UnclosedConditionalError, match=r"unclosed if block\(s\)"):
            walk(write("main.dsl", "if A=1\nemit a\n"))

    def test_dangling_endif(self, write):
        with pytest.raises(DanglingConditionalError):
            walk(write("main.dsl", "endif\n"))

    def test_invalid_condition(self, write):
        with pytest.raises(InvalidCommandFormatError, match="invalid condition format"):
            walk(write("main.dsl", "if NOOP\nendif\n"))

    def test_if_cannot_be_closed_by_included_file(self, write):
        write("inc.dsl", "endif\n")
        path = write("main.dsl", "if A=1\ninclude inc.dsl\nendif\n")
        with pytest.raises(DanglingConditionalError) as info:
            walk(path, A="1")
        assert info.value.source.name == "inc.dsl"

    def test_included_file_must_close_its_own_if(self, write):
        write("inc.dsl", "if A=1\n")
        path = write("main.dsl", "include inc.dsl\nendif\n")
        with pytest.raises(UnclosedConditionalError) as info:
            walk(path, A="1")
        assert info.value.source.name == "inc.dsl"


class TestPrefix:
    def test_prefix_filters_lines(self, write):
        path = write(
            "main.dsl",
            "set-prefix ns\nconcat a.sql\nns:concat b.sql\nns:clear-prefix\nconcat c.sql\n",
        )
        plan, _ = walk(path)
        assert [f.path for f in plan.fragments] == ["b.sql", "c.sql"]

    def test_prefix_is_file_local(self, write):
        write("inc.dsl", "emit inc-plain\n")
        path = write(
            "main.dsl",
            "set-prefix ns\nns:include inc.dsl\nemit dropped\nns:emit kept\n",
        )
        plan, _ = walk(path)
        assert texts(plan) == ["inc-plain", "kept"]

    def test_prefix_in_include_does_not_leak(self, write):
        write("inc.dsl", "set-prefix inner\ninner:emit inside\n")
        path = write("main.dsl", "include inc.dsl\nemit outside\n")
        plan, _ = walk(path)
        assert texts(plan) == ["inside", "outside"]

    def test_set_prefix_while_suppressed(self, write):
        path = write("main.dsl", "if X=1\nset-prefix ns\nns:endif\nemit dropped\nns:emit kept\n")
        plan, _ = walk(path, X="0")
        assert texts(plan) == ["kept"]

    def test_prefixed_conditionals(self, write):
        path = write(
            "main.dsl",
            "set-prefix ns\nns:if X=1\nns:emit yes\nns:endif\nns:clear-prefix\n",
        )
        plan, _ = walk(path, X="1")
        assert texts(plan) == ["yes"]


class TestInclude:
    def test_fragments_spliced_in_order(self, write):
        write("inc.dsl", "emit two\n")
        plan, _ = walk(write("main.dsl", "emit one\ninclude inc.dsl\nemit three\n"))
        assert texts(plan) == ["one", "two", "three"]

    def test_relative_to_including_file(self, write, tmp_path):
        write("lib/nested/deep.dsl", "concat deep.sql\n")
        write("lib/inc.dsl", "concat inc.sql\ninclude nested/deep.dsl\n")
        plan, _ = walk(write("main.dsl", "include lib/inc.dsl\n"))
        assert [f.base_dir for f in plan.fragments] == [
            tmp_path / "lib",
            tmp_path / "lib" / "nested",
        ]

    def test_absolute_path(self, write):
        inc = write("elsewhere/inc.dsl", "emit abs\n")
        plan, _ = walk(write("main.dsl", f"include {inc}\n"))
        assert texts(plan) == ["abs"]

    def test_path_placeholders(self, write):
        write("env/prod.dsl", "emit prod settings\n")
        plan, _ = walk(write("main.dsl", "param ENV=prod\ninclude env/${ENV}.dsl\n"))
        assert texts(plan) == ["prod settings"]

    def test_shared_parameters(self, write):
        write("inc.dsl", "set FROM_INC=1\nemit ${FROM_MAIN}\n")
        plan, store = walk(write("main.dsl", "set FROM_MAIN=m\ninclude inc.dsl\n"))
        assert store.resolve("FROM_INC") == "1"
        assert plan.sources[-1].name == "inc.dsl"

    def test_missing_include(self, write):
        with pytest.raises(SourceFileError, match="missing.dsl"):
            walk(write("main.dsl", "include missing.dsl\n"))

    def test_runaway_recursion(self, write):
        with pytest.raises(InstructionError, match="include nested deeper"):
            walk(write("main.dsl", "include main.dsl\n"))
