import ast
from pathlib import Path

from powerseq.core.expand.expand_config import ExpandConfig
from powerseq.core.expand.expand_module import expand_module_source, expand_module_tree
from powerseq.core.io.load_source import load_source, parse_module


EXAMPLES = Path(__file__).resolve().parents[1] / "examples"


def _dump(text: str) -> str:
    return ast.dump(ast.parse(text))


def test_expand_module_matches_expected():
    text, _ = load_source(str(EXAMPLES / "power_sequence.py"))
    got = expand_module_source(text)
    expected = (EXAMPLES / "power_sequence-expected-rewrite.py").read_text(encoding="utf-8")
    assert _dump(got) == _dump(expected)


def test_expand_module_is_deterministic():
    text, _ = load_source(str(EXAMPLES / "power_sequence.py"))
    assert expand_module_source(text) == expand_module_source(text)


def test_expand_module_does_not_mutate_input():
    _, module = load_source(str(EXAMPLES / "power_sequence.py"))
    before = ast.dump(module, include_attributes=True)
    expand_module_tree(module)
    assert ast.dump(module, include_attributes=True) == before


def test_expand_module_leaves_unmarked_code_alone():
    src = (
        "def helper():\n"
        "    return power_off()\n"
        "\n"
        "@power_state\n"
        "async def idle(self) -> None:\n"
        "    return helper()\n"
    )
    tree, triples = expand_module_tree(parse_module(src))
    names = [s.name for s in tree.body]
    assert names == ["helper", "pre_idle", "idle", "post_idle"]
    assert ast.unparse(tree.body[0]) == "def helper():\n    return power_off()"
    assert [(scope, t.original.name) for scope, t in triples] == [("", "idle")]


def test_expand_module_stub_strategy():
    text, _ = load_source(str(EXAMPLES / "power_sequence.py"))
    got = expand_module_source(text, config=ExpandConfig(strategy="stub"))
    assert "pre_power_off()" not in got
    assert "def pre_hibernate" in got
    # Originals keep their delegation.
    assert "await self.power_off()" in got


def test_expand_module_keeps_comments_and_layout():
    src = (
        "# keep me\n"
        "import abc\n"
        "\n"
        "\n"
        "class Board(abc.ABC):\n"
        "    # rails are numbered from 1\n"
        "    RAILS = (1,  2)\n"
        "\n"
        "    @power_state\n"
        "    async def hibernate(self) -> None:\n"
        "        await self.power_off()  # cut the main rail\n"
        "\n"
        "    def helper(self):\n"
        "        return 'x'   # odd spacing\n"
        "# trailing\n"
    )
    got = expand_module_source(src)
    lines = got.splitlines()

    assert lines[:7] == src.splitlines()[:7]
    assert got.endswith("    def helper(self):\n        return 'x'   # odd spacing\n# trailing\n")
    assert "        await self.power_off()  # cut the main rail\n" in got
    assert "@power_state" not in got
    assert "    async def pre_hibernate(self) -> None:" in lines
    assert "        await self.pre_power_off()" in lines
    assert got.index("def pre_hibernate") < got.index("def hibernate") < got.index("def post_hibernate")

    names = [s.name for s in ast.parse(got).body[1].body if isinstance(s, ast.AsyncFunctionDef)]
    assert names == ["pre_hibernate", "hibernate", "post_hibernate"]


def test_expand_module_without_marks_is_unchanged():
    src = "# nothing to do\nx = 1  # one\n"
    assert expand_module_source(src) == src


def test_expand_module_one_line_declaration_at_end_of_file():
    src = "# keep me\nX = 1  # and me\n\nclass A:\n    @power_state\n    async def idle(self): ..."
    got = expand_module_source(src)
    assert got.startswith("# keep me\nX = 1  # and me\n\nclass A:\n")
    assert "    async def idle(self): ...\n" in got
    assert got.rstrip().endswith("return None")
    assert [s.name for s in ast.parse(got).body[1].body] == ["pre_idle", "idle", "post_idle"]
