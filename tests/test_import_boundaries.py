"""
Import boundary guard for the layered package.

Rules:
- src/hrpay/domain/ is pure: no sqlmodel, sqlalchemy, fastapi or hrpay infra.
- src/hrpay/services/ must not import fastapi.
- src/hrpay/api/schemas/ are pure Pydantic DTOs: no ORM imports.
"""

import ast
from collections.abc import Callable
from pathlib import Path

REPO_ROOT = Path(__file__).parent.parent
PKG_ROOT = REPO_ROOT / "src" / "hrpay"


def _file_imports_any(path: Path, is_banned: Callable[[str], bool]) -> bool:
    """Parse *path* with AST and return True if any import matches *is_banned*."""
    source = path.read_text(encoding="utf-8")
    try:
        tree = ast.parse(source, filename=str(path))
    except SyntaxError:
        return True

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                if is_banned(alias.name):
                    return True
        elif isinstance(node, ast.ImportFrom):
            if is_banned(node.module or ""):
                return True

    return False


def _repo_relative(path: Path) -> str:
    """Return a POSIX-style path relative to the repo root."""
    return path.relative_to(REPO_ROOT).as_posix()


def _violations(subdir: str, is_banned: Callable[[str], bool]) -> list[str]:
    return [
        _repo_relative(py_file)
        for py_file in sorted((PKG_ROOT / subdir).rglob("*.py"))
        if _file_imports_any(py_file, is_banned)
    ]


def _prefixed(*prefixes: str) -> Callable[[str], bool]:
    return lambda m: any(m == p or m.startswith(p + ".") for p in prefixes)


def test_domain_import_boundaries() -> None:
    """Domain files must not import persistence or web layers."""
    violations = _violations(
        "domain",
        _prefixed("sqlmodel", "sqlalchemy", "fastapi", "hrpay.models", "hrpay.infra", "hrpay.services", "hrpay.api"),
    )
    assert not violations, (
        "Domain files must stay free of ORM / web imports:\n"
        + "\n".join(f"  {v}" for v in violations)
    )


def test_service_import_boundaries() -> None:
    """Service files must not import from fastapi."""
    violations = _violations("services", _prefixed("fastapi"))
    assert not violations, (
        "Service files must not import fastapi:\n"
        + "\n".join(f"  {v}" for v in violations)
    )


def test_schema_import_boundaries() -> None:
    """DTO files must not import the ORM."""
    violations = _violations("api/schemas", _prefixed("sqlmodel", "sqlalchemy", "hrpay.models", "hrpay.infra"))
    assert not violations, (
        "Schema files must not import ORM modules:\n"
        + "\n".join(f"  {v}" for v in violations)
    )
