"""
Sandbox Compiler
Turns source text into a callable component, executed against a restricted global namespace
"""
import ast
import builtins
import importlib
import inspect
from types import MappingProxyType, ModuleType, SimpleNamespace
from typing import Any, Callable, Iterable, Mapping, Optional

from wormhole.core.errors import (CompilationError, DynamicComponentError,
                                  InvalidArtifactError, UnsafeSourceError)
from wormhole.core.logging_config import LoggingConfig

logger = LoggingConfig.get_logger(__name__)

SANDBOX_MODULE_NAME = "wormhole.sandbox"

SAFE_BUILTINS = (
    "__build_class__", "abs", "all", "any", "ascii", "bin", "bool", "bytes",
    "callable", "chr", "classmethod", "dict", "divmod", "enumerate", "filter",
    "float", "frozenset", "hash", "hex", "int", "isinstance", "issubclass",
    "iter", "len", "list", "map", "max", "min", "next", "object", "oct", "ord",
    "pow", "property", "range", "repr", "reversed", "round", "set", "slice",
    "sorted", "staticmethod", "str", "sum", "super", "tuple", "zip",
    "ArithmeticError", "AssertionError", "AttributeError", "Exception",
    "IndexError", "KeyError", "LookupError", "NotImplementedError",
    "RuntimeError", "StopIteration", "TypeError", "ValueError",
    "ZeroDivisionError",
)

BLOCKED_NAMES = frozenset([
    "eval", "exec", "open", "compile", "__import__", "globals", "locals",
    "vars", "getattr", "setattr", "delattr", "input", "breakpoint", "help",
    "memoryview", "type",
])

# Frame and code introspection lets code walk back into the host's globals
BLOCKED_ATTRIBUTES = frozenset([
    "gi_frame", "gi_code", "cr_frame", "cr_code", "ag_frame", "ag_code",
    "f_globals", "f_locals", "f_builtins", "f_back", "f_code",
    "tb_frame", "tb_next", "co_code", "format", "format_map",
])


def _safe_builtins() -> dict:
    return {name: getattr(builtins, name) for name in SAFE_BUILTINS}


class ModuleFacade:
    """
    Read-only view over the public members of a module.

    Facades are cached per require() shim and shared by every compilation,
    so writes and deletes are refused.
    """

    __slots__ = ("_name", "_members")

    def __init__(self, name: str, members: Mapping[str, Any]):
        object.__setattr__(self, "_name", name)
        object.__setattr__(self, "_members", MappingProxyType(dict(members)))

    def __getattr__(self, name: str) -> Any:
        try:
            return self._members[name]
        except KeyError:
            raise AttributeError(f"module facade {self._name!r} has no attribute {name!r}") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"module facade {self._name!r} is read-only")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"module facade {self._name!r} is read-only")

    def __dir__(self) -> Iterable[str]:
        return sorted(self._members)

    def __repr__(self) -> str:
        return f"<module facade {self._name!r}>"


def _module_facade(module: ModuleType) -> ModuleFacade:
    """Expose only the public, non-module members of a module"""
    names: Iterable[str] = getattr(module, "__all__", None) or [
        name for name in dir(module) if not name.startswith("_")
    ]
    members = {}
    for name in names:
        value = getattr(module, name, None)
        if value is None or isinstance(value, ModuleType):
            continue
        members[name] = value
    return ModuleFacade(module.__name__, members)


def build_require(allowed_modules: Iterable[str]) -> Callable[[str], Optional[ModuleFacade]]:
    """
    Build a restricted module-resolution shim.

    Only the named modules resolve; anything else yields None.
    """
    allowed = frozenset(allowed_modules)
    resolved = {}

    def require(module_id: str) -> Optional[ModuleFacade]:
        if module_id not in allowed:
            return None
        if module_id not in resolved:
            resolved[module_id] = _module_facade(importlib.import_module(module_id))
        return resolved[module_id]

    return require


def default_global_namespace(allowed_modules: Iterable[str] = ("math", "json")) -> Mapping[str, Any]:
    """Frozen default namespace: a require() shim for a couple of named modules"""
    return MappingProxyType({"require": build_require(allowed_modules)})


def validate_source_safety(source_text: str) -> ast.Module:
    """
    Parse source text and reject constructs that reach outside the sandbox

    Args:
        source_text: Source to validate

    Returns:
        The parsed module

    Raises:
        CompilationError: If the source does not parse
        UnsafeSourceError: If the source imports, touches dunders or calls blocked names
    """
    try:
        tree = ast.parse(source_text, filename="<wormhole>", mode="exec")
    except SyntaxError as e:
        raise CompilationError(f"Syntax error in source: {e.msg} (line {e.lineno})") from e

    issues = []
    for node in ast.walk(tree):
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            issues.append(f"import statement at line {node.lineno}")
        elif isinstance(node, ast.Name):
            if node.id.startswith("__"):
                issues.append(f"dunder name {node.id!r} at line {node.lineno}")
            elif node.id in BLOCKED_NAMES:
                issues.append(f"blocked name {node.id!r} at line {node.lineno}")
        elif isinstance(node, ast.Attribute):
            if node.attr.startswith("_") or node.attr in BLOCKED_ATTRIBUTES:
                issues.append(f"blocked attribute {node.attr!r} at line {node.lineno}")
        elif isinstance(node, (ast.Global, ast.Nonlocal)):
            if any(name.startswith("__") for name in node.names):
                issues.append(f"dunder declaration at line {node.lineno}")
        elif isinstance(node, ast.MatchClass):
            # Keyword patterns read attributes without an Attribute node
            for attr in node.kwd_attrs:
                if attr.startswith("_") or attr in BLOCKED_ATTRIBUTES:
                    issues.append(f"blocked pattern attribute {attr!r} at line {node.lineno}")
        elif isinstance(node, (ast.MatchAs, ast.MatchStar)):
            if node.name is not None and node.name.startswith("__"):
                issues.append(f"dunder capture {node.name!r} at line {node.lineno}")
        elif isinstance(node, ast.MatchMapping):
            if node.rest is not None and node.rest.startswith("__"):
                issues.append(f"dunder capture {node.rest!r} at line {node.lineno}")

    if issues:
        raise UnsafeSourceError(f"Source rejected by sandbox: {'; '.join(issues)}")
    return tree


class SandboxCompiler:
    """
    Compiles source text against a frozen global namespace.

    The source sees only the curated builtins, the injected bindings and an
    ``exports`` slot; whatever it leaves in ``exports.default`` is the component.
    """

    def __init__(self, global_namespace: Optional[Mapping[str, Any]] = None):
        if global_namespace is None:
            global_namespace = default_global_namespace()
        if not isinstance(global_namespace, MappingProxyType):
            global_namespace = MappingProxyType(dict(global_namespace))
        self.global_namespace = global_namespace

    def _build_globals(self, exports: SimpleNamespace) -> dict:
        namespace = {
            "__builtins__": _safe_builtins(),
            "__name__": SANDBOX_MODULE_NAME,
        }
        namespace.update(self.global_namespace)
        namespace["exports"] = exports
        return namespace

    async def compile(self, source_text: str) -> Callable[..., Any]:
        """
        Compile source text into a component

        Args:
            source_text: Source assigning its artifact to ``exports.default``

        Returns:
            The callable default export

        Raises:
            UnsafeSourceError: Source failed the static checks
            CompilationError: Source failed to parse or raised while executing
            InvalidArtifactError: Default export is not callable
        """
        tree = validate_source_safety(source_text)
        exports = SimpleNamespace(default=None)
        try:
            code = compile(tree, "<wormhole>", "exec")
            exec(code, self._build_globals(exports))
        except DynamicComponentError:
            raise
        except Exception as e:
            raise CompilationError(f"{type(e).__name__}: {e}") from e

        component = exports.default
        if inspect.isawaitable(component):
            component = await component

        if not callable(component):
            raise InvalidArtifactError(
                f"Expected callable, encountered {type(component).__name__}. "
                "Did you forget to assign exports.default?"
            )
        logger.debug(f"Compiled component {getattr(component, '__name__', type(component).__name__)}")
        return component
