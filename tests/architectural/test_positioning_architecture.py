"""Architectural tests for the positioning service.

All checks use static filesystem/AST inspection to avoid import-time side
effects.
"""

from __future__ import annotations

import ast
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import pytest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
PKG_DIR = PROJECT_ROOT / "positioning"
LOGIC_DIR = PKG_DIR / "logic"
ROUTES_DIR = PKG_DIR / "routes"
MIGRATIONS_DIRS = [PROJECT_ROOT / "migrations", PROJECT_ROOT / "sqlite_migrations"]


@dataclass
class ParsedModule:
    path: Path
    tree: ast.AST


def parse_module_safe(path: Path) -> Optional[ParsedModule]:
    try:
        code = path.read_text(encoding="utf-8")
    except OSError:
        return None
    try:
        return ParsedModule(path=path, tree=ast.parse(code, filename=str(path)))
    except SyntaxError:
        return None


def py_files_under(*roots: Path) -> list[Path]:
    files: list[Path] = []
    for root in roots:
        if not root.exists():
            continue
        for p in root.rglob("*.py"):
            if "__pycache__" in p.parts:
                continue
            files.append(p)
    return files


def imported_modules(tree: ast.AST) -> set[str]:
    names: set[str] = set()
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            names.update(alias.name for alias in node.names)
        elif isinstance(node, ast.ImportFrom) and node.module:
            names.add(node.module)
    return names


def test_logic_does_not_depend_on_http_layer() -> None:
    """Position logic stays usable without FastAPI."""
    offenders = []
    for path in py_files_under(LOGIC_DIR):
        pm = parse_module_safe(path)
        assert pm is not None, f"Failed to parse {path}"
        for name in imported_modules(pm.tree):
            if name.split(".")[0] == "fastapi" or name.startswith(("positioning.routes", "positioning.http", "positioning.main")):
                offenders.append(f"{path.name}: {name}")
    assert not offenders, f"logic modules import the HTTP layer: {offenders}"


def test_routes_do_not_issue_sql() -> None:
    """Route handlers go through the repository, never SQLAlchemy directly."""
    offenders = []
    for path in py_files_under(ROUTES_DIR):
        pm = parse_module_safe(path)
        assert pm is not None, f"Failed to parse {path}"
        offenders.extend(f"{path.name}: {n}" for n in imported_modules(pm.tree) if n.split(".")[0] == "sqlalchemy")
    assert not offenders, f"routes import sqlalchemy: {offenders}"


def test_shift_engine_uses_bulk_updates_only() -> None:
    """Shifts are single UPDATE statements: no loops inside shift methods."""
    pm = parse_module_safe(LOGIC_DIR / "position_query.py")
    assert pm is not None
    shift_methods = [
        node
        for node in ast.walk(pm.tree)
        if isinstance(node, ast.FunctionDef) and node.name in {"shift_to_end", "shift_to_start", "_shift"}
    ]
    assert {m.name for m in shift_methods} == {"shift_to_end", "shift_to_start", "_shift"}
    for method in shift_methods:
        loops = [n for n in ast.walk(method) if isinstance(n, (ast.For, ast.While))]
        assert not loops, f"{method.name} must not loop over rows"


def test_lifecycle_listener_exposes_exactly_four_hooks() -> None:
    pm = parse_module_safe(LOGIC_DIR / "observer.py")
    assert pm is not None
    listener = next(
        (n for n in ast.walk(pm.tree) if isinstance(n, ast.ClassDef) and n.name == "LifecycleListener"),
        None,
    )
    assert listener is not None, "observer.py must define LifecycleListener"
    hooks = {n.name for n in listener.body if isinstance(n, ast.FunctionDef)}
    assert hooks == {"saving", "created", "updated", "deleted"}


def test_no_module_level_lock_registry() -> None:
    """Lock/force state lives on PositionControl instances, not module globals."""
    pm = parse_module_safe(LOGIC_DIR / "position_control.py")
    assert pm is not None
    module_assigns = [
        t.id
        for node in pm.tree.body  # type: ignore[attr-defined]
        if isinstance(node, (ast.Assign, ast.AnnAssign))
        for t in (node.targets if isinstance(node, ast.Assign) else [node.target])
        if isinstance(t, ast.Name)
    ]
    mutable = [
        name
        for name in module_assigns
        if not (name.startswith("__") and name.endswith("__")) and name not in {"T", "TypeRef", "logger"}
    ]
    assert not mutable, f"unexpected module-level state: {mutable}"


@pytest.mark.parametrize("migrations_dir", MIGRATIONS_DIRS, ids=lambda p: p.name)
def test_migrations_define_positioned_tables(migrations_dir: Path) -> None:
    sql = "\n".join(p.read_text(encoding="utf-8") for p in sorted(migrations_dir.glob("*.sql")))
    for table in ("categories", "books"):
        assert f"CREATE TABLE IF NOT EXISTS {table}" in sql
    assert "position INTEGER NOT NULL" in sql
