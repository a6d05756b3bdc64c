"""Policy tests to keep request code aligned with transaction conventions."""

from __future__ import annotations

import ast
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[2]
REQUEST_BOUNDED = (REPO_ROOT / "league" / "routes", REPO_ROOT / "league" / "services")


def _calls(attr_names: set[str]):
    for root in REQUEST_BOUNDED:
        for path in root.rglob("*.py"):
            tree = ast.parse(path.read_text(encoding="utf-8"), filename=str(path))
            for node in ast.walk(tree):
                if (
                    isinstance(node, ast.Call)
                    and isinstance(node.func, ast.Attribute)
                    and node.func.attr in attr_names
                ):
                    yield path, tree, node


def test_request_bounded_code_has_no_explicit_commit_or_rollback() -> None:
    """Request-bounded code should not call commit()/rollback() directly."""
    violations = [
        f"{path.relative_to(REPO_ROOT)}:{node.lineno}"
        for path, _, node in _calls({"commit", "rollback"})
    ]
    assert not violations, (
        "Explicit commit()/rollback() calls found in request-bounded code:\n"
        + "\n".join(sorted(violations))
    )


def test_transactions_are_opened_with_async_with() -> None:
    """Every db.begin() must be the context expression of an ``async with``."""
    violations = []
    for path, tree, node in _calls({"begin"}):
        managed = any(
            isinstance(parent, ast.AsyncWith)
            and any(item.context_expr is node for item in parent.items)
            for parent in ast.walk(tree)
        )
        if not managed:
            violations.append(f"{path.relative_to(REPO_ROOT)}:{node.lineno}")
    assert not violations, "db.begin() used outside async with:\n" + "\n".join(sorted(violations))
