"""
Import Boundary Tests.

Validates that architectural import rules are followed:
- web/services/* may ONLY import from core/*
- web/* may NOT import utils/ or tracking.services directly
- core/* may NOT import from web/, flask, werkzeug
- tracking/* may NOT import from web/, flask, werkzeug
"""

import ast
from pathlib import Path


def get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent


def get_imports_from_file(filepath: Path) -> list[tuple[str, int]]:
    """
    Extract all import statements from a Python file.

    Returns:
        List of (module_name, line_number) tuples
    """
    imports = []
    try:
        with open(filepath, encoding="utf-8") as f:
            tree = ast.parse(f.read(), filename=str(filepath))
    except SyntaxError:
        return imports

    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                imports.append((alias.name, node.lineno))
        elif isinstance(node, ast.ImportFrom):
            if node.module:
                imports.append((node.module, node.lineno))

    return imports


def check_forbidden_imports(
    imports: list[tuple[str, int]], forbidden_prefixes: list[str]
) -> list[tuple[str, int]]:
    """
    Check for forbidden imports.

    Returns:
        List of (module_name, line_number) for violations
    """
    violations = []
    for module, line in imports:
        for prefix in forbidden_prefixes:
            if module.startswith(prefix):
                violations.append((module, line))
                break
    return violations


def collect_violations(directory: Path, forbidden: list[str], recursive: bool = False) -> list[str]:
    pattern = "**/*.py" if recursive else "*.py"
    all_violations = []
    for py_file in sorted(directory.glob(pattern)):
        imports = get_imports_from_file(py_file)
        for module, line in check_forbidden_imports(imports, forbidden):
            all_violations.append(f"{py_file.relative_to(directory)}:{line} imports {module}")
    return all_violations


class TestWebLayerBoundaries:
    """Tests for web layer import boundaries."""

    def test_services_only_import_from_core(self):
        """web/services/* should only import from core/*."""
        services_dir = get_project_root() / "web" / "services"

        violations = collect_violations(services_dir, ["utils", "tracking", "flask"])

        assert len(violations) == 0, (
            "Services should only import from core/*. Violations:\n"
            + "\n".join(violations)
        )

    def test_web_does_not_reach_into_storage(self):
        """Blueprints and the app factory go through web/services."""
        web_dir = get_project_root() / "web"

        violations = collect_violations(
            web_dir, ["utils", "tracking.services", "tracking.session_manager"], recursive=True
        )

        assert len(violations) == 0, (
            "Web layer must not use storage or services directly. Violations:\n"
            + "\n".join(violations)
        )

    def test_core_does_not_import_web(self):
        """core/* should never import from web/, flask, werkzeug."""
        core_dir = get_project_root() / "core"

        violations = collect_violations(core_dir, ["web", "flask", "werkzeug"])

        assert len(violations) == 0, (
            "Core should never import web layer. Violations:\n"
            + "\n".join(violations)
        )


class TestTrackingArchitecture:
    """Tests for tracking/* architectural boundaries."""

    def test_tracking_does_not_import_web(self):
        """
        tracking/* must not import from web layer.

        The timer and conflict checks are core infrastructure and should be
        web-agnostic.
        """
        tracking_dir = get_project_root() / "tracking"

        violations = collect_violations(
            tracking_dir, ["web", "flask", "werkzeug"], recursive=True
        )

        assert len(violations) == 0, (
            "Tracking must not import web layer. Violations:\n"
            + "\n".join(violations)
        )

    def test_interfaces_do_not_import_implementations(self):
        """tracking/interfaces/* only depend on each other and the stdlib."""
        interfaces_dir = get_project_root() / "tracking" / "interfaces"

        violations = collect_violations(
            interfaces_dir, ["tracking.services", "tracking.session_manager", "utils"]
        )

        assert len(violations) == 0, (
            "Interfaces must not import implementations. Violations:\n"
            + "\n".join(violations)
        )

    def test_tracking_services_do_not_import_each_other(self):
        """Each service only depends on interfaces and shared utilities."""
        services_dir = get_project_root() / "tracking" / "services"
        service_modules = ["persistence_service", "clock_service", "conflict_service"]

        all_violations = []
        for py_file in services_dir.glob("*.py"):
            if py_file.name == "__init__.py":
                continue
            service_name = py_file.stem
            for module, line in get_imports_from_file(py_file):
                for other_service in service_modules:
                    if other_service != service_name and other_service in module:
                        all_violations.append(f"{py_file.name}:{line} imports {module}")

        assert len(all_violations) == 0, (
            "Tracking services should not import each other. Violations:\n"
            + "\n".join(all_violations)
        )


class TestModuleStructure:
    """Tests for module structure integrity."""

    def test_core_modules_exist(self):
        """Verify all required core modules exist."""
        core_dir = get_project_root() / "core"

        required_modules = ["duration_core.py", "tracking_core.py"]

        missing = [m for m in required_modules if not (core_dir / m).exists()]
        assert len(missing) == 0, f"Missing core modules: {missing}"

    def test_tracking_services_exist(self):
        """Verify all required tracking services exist."""
        services_dir = get_project_root() / "tracking" / "services"

        required_modules = [
            "persistence_service.py",
            "clock_service.py",
            "conflict_service.py",
        ]

        missing = [m for m in required_modules if not (services_dir / m).exists()]
        assert len(missing) == 0, f"Missing tracking services: {missing}"
