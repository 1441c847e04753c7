from __future__ import annotations

import ast
from pathlib import Path


ROOT = Path(__file__).resolve().parents[1]


def _line_count(path: Path) -> int:
    return len(path.read_text(encoding="utf-8", errors="ignore").splitlines())


def _python_files(root: Path):
    for path in root.rglob("*.py"):
        if "dist" in path.parts or "build" in path.parts:
            continue
        yield path


def _imported_modules(path: Path):
    tree = ast.parse(path.read_text(encoding="utf-8", errors="ignore"))
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name
        elif isinstance(node, ast.ImportFrom):
            yield node.module or ""


def test_no_python_module_exceeds_hard_line_limit():
    offenders = []
    for path in _python_files(ROOT):
        lines = _line_count(path)
        if lines > 600:
            offenders.append((str(path.relative_to(ROOT)), lines))
    assert not offenders, f"Modules exceed hard 600-line limit: {offenders}"


def test_core_layer_does_not_import_infra_layer():
    violations: list[tuple[str, str]] = []
    for path in _python_files(ROOT / "core"):
        for name in _imported_modules(path):
            if name == "infra" or name.startswith("infra."):
                violations.append((str(path.relative_to(ROOT)), name))

    assert not violations, f"Core layer imports infra layer: {violations}"


def test_domain_layer_is_storage_agnostic():
    violations: list[tuple[str, str]] = []
    for path in _python_files(ROOT / "core" / "domain"):
        for name in _imported_modules(path):
            if name.startswith("sqlalchemy"):
                violations.append((str(path.relative_to(ROOT)), name))

    assert not violations, f"Domain layer imports storage libraries: {violations}"


def test_allocation_service_is_the_only_ledger_writer():
    writers = []
    for path in _python_files(ROOT / "core"):
        if "increment_range(" in path.read_text(encoding="utf-8", errors="ignore"):
            writers.append(path.relative_to(ROOT).as_posix())

    assert sorted(writers) == [
        "core/interfaces.py",
        "core/services/capacity/service.py",
    ]
