import ast
import textwrap

import pytest

from powerseq.core.errors import ExpansionError
from powerseq.core.expand.expand_config import ExpandConfig
from powerseq.core.expand.expand_decl import expand_declaration
from powerseq.core.io.load_source import parse_declaration
from powerseq.core.model import OperationDeclaration


STUB = ExpandConfig(strategy="stub")


def _decl(src: str) -> OperationDeclaration:
    return parse_declaration(textwrap.dedent(src))


def _body(decl: OperationDeclaration) -> list[str]:
    # Hook bodies start with the generated docstring.
    return [ast.dump(s) for s in decl.node.body[1:]]


def _expected(src: str) -> list[str]:
    return [ast.dump(s) for s in ast.parse(textwrap.dedent(src)).body]


HIBERNATE = """
async def hibernate(self) -> None:
    await self.power_off()
"""


def test_triple_names_and_order():
    triple = expand_declaration(_decl(HIBERNATE))
    assert len(triple) == 3
    assert [d.name for d in triple] == ["pre_hibernate", "hibernate", "post_hibernate"]


def test_hooks_share_parameters_and_return_type():
    decl = _decl(
        """
        async def power_on(self, rail: int, *args, timeout: float = 1.0, **kw) -> bool:
            return await self.bus.enable(rail)
        """
    )
    pre, original, post = expand_declaration(decl)
    assert pre.parameters == original.parameters == post.parameters
    assert pre.return_type == original.return_type == post.return_type == "bool"
    assert pre.is_async and post.is_async


def test_rewrite_calls_sibling_same_role_hook():
    pre, _, post = expand_declaration(_decl(HIBERNATE))
    assert _body(pre) == _expected("await self.pre_power_off()")
    assert _body(post) == _expected("await self.post_power_off()")


def test_rewrite_activate_scenario():
    decl = _decl(
        """
        async def activate(self) -> None:
            await self.power_on()
        """
    )
    pre, _, post = expand_declaration(decl)
    assert _body(pre) == _expected("await self.pre_power_on()")
    assert _body(post) == _expected("await self.post_power_on()")


def test_rewrite_dotted_free_call_like_receiver_call():
    decl = _decl(
        """
        async def power_off(self) -> None:
            return await T.power_off(self)
        """
    )
    pre, _, post = expand_declaration(decl)
    assert _body(pre) == _expected("return await T.pre_power_off(self)")
    assert _body(post) == _expected("return await T.post_power_off(self)")


def test_whitelisted_success_call_untouched():
    decl = _decl(
        """
        async def idle(self) -> None:
            return Ok()
        """
    )
    pre, _, post = expand_declaration(decl)
    assert _body(pre) == _expected("return Ok()")
    assert _body(post) == _expected("return Ok()")


def test_whitelist_is_exact_name_only():
    decl = _decl(
        """
        async def idle(self) -> None:
            return Okay(result.Ok())
        """
    )
    pre, _, _ = expand_declaration(decl)
    assert _body(pre) == _expected("return pre_Okay(result.pre_Ok())")


def test_bare_calls_renamed_by_name_only():
    decl = _decl(
        """
        async def suspend(self) -> None:
            print("suspending")
            await power_off(self)
        """
    )
    pre, _, _ = expand_declaration(decl)
    assert _body(pre) == _expected(
        """
        pre_print("suspending")
        await pre_power_off(self)
        """
    )


def test_rewrite_reaches_nested_calls():
    decl = _decl(
        """
        async def resume(self) -> None:
            if self.ready():
                for rail in self.rails(helper(3)):
                    await rail.enable(lambda: self.check())
            return Ok(wrap(self.bus().reset()))
        """
    )
    pre, _, _ = expand_declaration(decl)
    assert _body(pre) == _expected(
        """
        if self.pre_ready():
            for rail in self.pre_rails(pre_helper(3)):
                await rail.pre_enable(lambda: self.pre_check())
        return Ok(pre_wrap(self.pre_bus().pre_reset()))
        """
    )


def test_own_name_rewritten_without_calls():
    decl = _decl(
        """
        async def wake_up(self) -> None:
            return None
        """
    )
    pre, _, post = expand_declaration(decl)
    assert pre.name == "pre_wake_up"
    assert post.name == "post_wake_up"
    assert _body(pre) == _expected("return None")


def test_original_is_untouched():
    decl = _decl(HIBERNATE)
    before = ast.dump(decl.node, include_attributes=True)
    triple = expand_declaration(decl)
    assert triple.original is decl
    assert ast.dump(decl.node, include_attributes=True) == before


def test_no_default_body_gets_trivial_success_and_drops_abstract():
    decl = _decl(
        """
        @abc.abstractmethod
        async def power_on(self) -> None:
            \"\"\"Power the device on.\"\"\"
        """
    )
    pre, original, post = expand_declaration(decl)
    assert original.is_abstract
    assert not pre.is_abstract and not post.is_abstract
    assert _body(pre) == _expected("return None")
    assert _body(post) == _expected("return None")


def test_hooks_get_generated_docstrings():
    decl = _decl(
        """
        async def idle(self) -> None:
            \"\"\"Put the device in idle state.\"\"\"
            return Ok()
        """
    )
    pre, _, post = expand_declaration(decl)
    assert pre.docstring == "Hook run before :meth:`idle`."
    assert post.docstring == "Hook run after :meth:`idle`."
    assert _body(pre) == _expected("return Ok()")


def test_stub_strategy_ignores_default_body():
    pre, _, post = expand_declaration(_decl(HIBERNATE), STUB)
    assert _body(pre) == _expected("return None")
    assert _body(post) == _expected("return None")


def test_stub_and_rewrite_diverge_for_delegating_body():
    decl = _decl(HIBERNATE)
    rewrite_pre = expand_declaration(decl).pre
    stub_pre = expand_declaration(decl, STUB).pre
    assert _body(rewrite_pre) != _body(stub_pre)


def test_each_expansion_is_independent():
    decl = _decl(HIBERNATE)
    first = expand_declaration(decl)
    second = expand_declaration(decl)
    assert first.pre is not second.pre
    assert first.pre.node is not second.pre.node
    assert ast.dump(first.pre.node) == ast.dump(second.pre.node)


def test_sync_declaration_keeps_sync_hooks():
    decl = _decl(
        """
        def idle(self) -> None:
            return Ok()
        """
    )
    pre, _, post = expand_declaration(decl)
    assert not pre.is_async and not post.is_async


def test_unknown_strategy_is_fatal():
    with pytest.raises(ExpansionError) as exc:
        expand_declaration(_decl(HIBERNATE), ExpandConfig(strategy="sometimes"))  # type: ignore[arg-type]
    assert exc.value.code == "E_EXPAND_UNKNOWN_STRATEGY"


def test_non_function_node_is_fatal():
    with pytest.raises(ExpansionError) as exc:
        expand_declaration(OperationDeclaration(ast.Pass()))  # type: ignore[arg-type]
    assert exc.value.code == "E_EXPAND_NOT_A_FUNCTION"


def test_custom_success_names():
    decl = _decl(
        """
        async def idle(self) -> None:
            return Success()
        """
    )
    pre, _, _ = expand_declaration(decl, ExpandConfig(success_names=("Success",)))
    assert _body(pre) == _expected("return Success()")
