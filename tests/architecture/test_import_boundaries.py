"""
Import-boundary enforcement.

1. Kernel independence -- payroll_kernel/** may not import any outer layer.
2. Engine purity       -- payroll_engines/** may not import the ORM, kernel
                          models/services, config, modules or batch.
3. Module boundary     -- payroll_modules/** may not import payroll_batch.

All scanning is done via AST; these tests are read-only.
"""

import ast
import glob
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


def _python_files(package: str) -> list[str]:
    return sorted(glob.glob(f"{ROOT / package}/**/*.py", recursive=True))


def _extract_imports(filepath: str) -> list[tuple[int, str]]:
    """Return (line_number, module_string) for every import in *filepath*."""
    tree = ast.parse(Path(filepath).read_text(), filename=filepath)
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    return any(module == p or module.startswith(f"{p}.") for p in prefixes)


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found = []
    for filepath in _python_files(package):
        for lineno, module in _extract_imports(filepath):
            if _matches_any(module, forbidden):
                found.append(f"  {filepath}:{lineno} imports '{module}'")
    return found


class TestKernelIndependence:

    FORBIDDEN_PREFIXES = (
        "payroll_engines",
        "payroll_modules",
        "payroll_batch",
        "payroll_config",
    )

    def test_kernel_has_no_outward_imports(self):
        assert _python_files("payroll_kernel")
        violations = _violations("payroll_kernel", self.FORBIDDEN_PREFIXES)

        assert not violations, "Kernel imports an outer layer:\n" + "\n".join(violations)


class TestEnginePurity:

    FORBIDDEN_PREFIXES = (
        "sqlalchemy",
        "sqlite3",
        "payroll_kernel.models",
        "payroll_kernel.services",
        "payroll_config",
        "payroll_modules",
        "payroll_batch",
    )

    def test_engine_files_have_no_forbidden_imports(self):
        assert _python_files("payroll_engines")
        violations = _violations("payroll_engines", self.FORBIDDEN_PREFIXES)

        assert not violations, "Engine purity violation:\n" + "\n".join(violations)


class TestModuleBoundary:

    def test_modules_do_not_import_batch(self):
        violations = _violations("payroll_modules", ("payroll_batch",))

        assert not violations, "\n".join(violations)
