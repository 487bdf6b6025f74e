from __future__ import annotations

import ast
import inspect
from pathlib import Path

from storygraph.modules.authoring import router as authoring_router
from storygraph.modules.packaging import router as packaging_router

ROOT = Path(__file__).resolve().parents[1]
CORE_DIR = ROOT / "storygraph" / "modules" / "story_data"
CORE_MODULES = (
    "constants",
    "schemas",
    "tokens",
    "compilers",
    "dice",
    "diagnostics",
    "validation",
    "graph",
    "serializer",
    "pipeline",
)
FORBIDDEN_IMPORT_ROOTS = {"os", "io", "pathlib", "shutil", "csv", "subprocess", "socket", "httpx", "fastapi", "storygraph.config"}


def _imported_names(path: Path) -> set[str]:
    tree = ast.parse(path.read_text(encoding="utf-8"))
    names: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.update(str(alias.name or "") for alias in node.names)
        if isinstance(node, ast.ImportFrom):
            names.add(str(node.module or ""))
    return names


def _is_forbidden(name: str) -> bool:
    return any(name == root or name.startswith(f"{root}.") for root in FORBIDDEN_IMPORT_ROOTS)


def test_core_modules_do_no_io() -> None:
    offenders = {}
    for module_name in CORE_MODULES:
        path = CORE_DIR / f"{module_name}.py"
        bad = sorted(name for name in _imported_names(path) if _is_forbidden(name))
        if bad:
            offenders[module_name] = bad
    assert offenders == {}


def test_core_modules_do_not_import_service_layers() -> None:
    for module_name in CORE_MODULES:
        names = _imported_names(CORE_DIR / f"{module_name}.py")
        assert not any(name.startswith("storygraph.modules.") and ".story_data" not in name for name in names), module_name


def test_routers_are_http_layer_only() -> None:
    for module in (authoring_router, packaging_router):
        tree = ast.parse(inspect.getsource(module))
        class_defs = [node.name for node in tree.body if isinstance(node, ast.ClassDef)]
        assert class_defs == []
        source = inspect.getsource(module)
        assert "serialize_model" not in source
        assert "read_tables" not in source
