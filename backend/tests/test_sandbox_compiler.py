"""
Tests for the sandbox compiler
"""
from types import MappingProxyType

import pytest

from wormhole.core.errors import (CompilationError, InvalidArtifactError,
                                  UnsafeSourceError)
from wormhole.services.sandbox_compiler import (SandboxCompiler,
                                                default_global_namespace,
                                                validate_source_safety)


@pytest.fixture
def compiler():
    return SandboxCompiler()


@pytest.mark.asyncio
async def test_compile_returns_default_export(compiler):
    component = await compiler.compile("exports.default = lambda: 1")
    assert callable(component)
    assert component() == 1


@pytest.mark.asyncio
async def test_compile_fixture_source(compiler, fixtures_dir):
    source = (fixtures_dir / "sources" / "hello.py").read_text(encoding="utf-8")
    hello = await compiler.compile(source)
    assert hello() == "Hello, world!"
    assert hello("wormhole") == "Hello, wormhole!"


@pytest.mark.asyncio
async def test_class_default_export(compiler, fixtures_dir):
    source = (fixtures_dir / "sources" / "counter.py").read_text(encoding="utf-8")
    Counter = await compiler.compile(source)
    counter = Counter(start=1)
    assert counter.increment() == 2
    assert counter.increment(3) == 5


@pytest.mark.asyncio
async def test_awaitable_default_export_is_awaited(compiler):
    source = (
        "async def build():\n"
        "    return lambda: 2\n"
        "exports.default = build()\n"
    )
    component = await compiler.compile(source)
    assert component() == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("source, type_name", [
    ("exports.default = 5", "int"),
    ("exports.default = 'text'", "str"),
    ("value = 1", "NoneType"),
])
async def test_non_callable_export_is_rejected(compiler, source, type_name):
    with pytest.raises(InvalidArtifactError) as exc_info:
        await compiler.compile(source)
    assert type_name in str(exc_info.value)


@pytest.mark.asyncio
async def test_require_resolves_allowed_modules_only(compiler):
    source = (
        "m = require('math')\n"
        "exports.default = lambda: (m.sqrt(16), require('os'), require('json').dumps([1]))\n"
    )
    component = await compiler.compile(source)
    assert component() == (4.0, None, "[1]")


@pytest.mark.asyncio
async def test_required_module_hides_submodules():
    compiler = SandboxCompiler(default_global_namespace(["json"]))
    component = await compiler.compile("exports.default = lambda: require('json')")
    facade = component()
    assert hasattr(facade, "dumps")
    assert not hasattr(facade, "codecs")


@pytest.mark.asyncio
async def test_plain_match_patterns_still_compile(compiler):
    source = (
        "def describe(value):\n"
        "    match value:\n"
        "        case {'kind': kind, **rest}:\n"
        "            return kind, len(rest)\n"
        "        case [first, *others]:\n"
        "            return first, len(others)\n"
        "        case _:\n"
        "            return None\n"
        "exports.default = describe\n"
    )
    describe = await compiler.compile(source)
    assert describe({"kind": "a", "x": 1}) == ("a", 1)
    assert describe([1, 2, 3]) == (1, 2)


@pytest.mark.asyncio
async def test_required_modules_cannot_be_modified_by_a_source(compiler):
    poison = (
        "m = require('math')\n"
        "def poison():\n"
        "    m.sqrt = lambda x: 'poisoned'\n"
        "exports.default = poison\n"
    )
    poisoner = await compiler.compile(poison)
    with pytest.raises(AttributeError):
        poisoner()

    with pytest.raises(CompilationError):
        await compiler.compile("del require('math').sqrt\nexports.default = lambda: 1")

    reader = await compiler.compile("exports.default = lambda: require('math').sqrt(16)")
    assert reader() == 4.0


@pytest.mark.asyncio
@pytest.mark.parametrize("source", [
    "import os\nexports.default = lambda: os",
    "from os import path\nexports.default = lambda: path",
    "exports.default = lambda: ().__class__",
    "exports.default = lambda: __builtins__",
    "exports.default = lambda: open('/etc/passwd')",
    "exports.default = lambda: eval('1')",
    "exports.default = lambda: getattr(exports, 'default')",
    "exports.default = lambda: '{0.__class__}'.format(1)",
    "def gen():\n    yield 1\nexports.default = lambda: gen().gi_frame",
    (
        "def leak(x):\n"
        "    match x:\n"
        "        case object(__class__=cls):\n"
        "            match cls:\n"
        "                case object(__base__=base):\n"
        "                    return base\n"
        "exports.default = lambda: leak(())"
    ),
    "def f(x):\n    match x:\n        case object(_private=p):\n            return p\nexports.default = f",
    "def f(x):\n    match x:\n        case object(gi_frame=frame):\n            return frame\nexports.default = f",
    "def f(x):\n    match x:\n        case [*__rest]:\n            return 1\nexports.default = f",
    "def f(x):\n    match x:\n        case {**__rest}:\n            return 1\nexports.default = f",
])
async def test_unsafe_sources_are_rejected(compiler, source):
    with pytest.raises(UnsafeSourceError):
        await compiler.compile(source)


@pytest.mark.asyncio
async def test_ambient_builtins_are_unavailable(compiler):
    component = await compiler.compile("exports.default = lambda: print('leak')")
    with pytest.raises(NameError):
        component()


@pytest.mark.asyncio
async def test_syntax_error_raises_compilation_error(compiler):
    with pytest.raises(CompilationError) as exc_info:
        await compiler.compile("exports.default = (")
    assert "Syntax error" in str(exc_info.value)


@pytest.mark.asyncio
async def test_runtime_error_raises_compilation_error(compiler):
    with pytest.raises(CompilationError) as exc_info:
        await compiler.compile("x = 1 / 0")
    assert "ZeroDivisionError" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, ZeroDivisionError)


@pytest.mark.asyncio
async def test_global_namespace_is_frozen_and_shared_read_only():
    compiler = SandboxCompiler({"greeting": "hi"})
    assert isinstance(compiler.global_namespace, MappingProxyType)

    first = await compiler.compile("greeting = 'changed'\nexports.default = lambda: greeting")
    second = await compiler.compile("exports.default = lambda: greeting")

    assert first() == "changed"
    assert second() == "hi"
    assert compiler.global_namespace["greeting"] == "hi"


def test_validate_source_safety_lists_every_issue():
    with pytest.raises(UnsafeSourceError) as exc_info:
        validate_source_safety("import os\nx = __name__")
    message = str(exc_info.value)
    assert "import statement" in message
    assert "__name__" in message
