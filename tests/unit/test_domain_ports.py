"""
Unit tests for domain ports, results and exceptions.

Tests verify:
- Adapters structurally satisfy the port protocols
- Exceptions carry their error kind
- run_operation translates failures into results
- Domain purity (zero framework imports)
"""

import json
import subprocess
from enum import Enum

import pytest

from src.adapters.assets.local import LocalAssetStore
from src.adapters.notify.console import ConsoleViewNotifier
from src.adapters.repository.memory import InMemorySubscriberRepository
from src.adapters.repository.postgres import PostgresSubscriberRepository
from src.domain.exceptions import (
    ChecksumError,
    ConflictError,
    DuplicateError,
    ErrorKind,
    IdentityFormatError,
    NotFoundError,
    NothingToExport,
    RegistrationError,
    UploadError,
    ValidationError,
)
from src.domain.ports import AssetStore, SubscriberRepository, ViewNotifier
from src.domain.results import OperationResult, run_operation


class TestErrorKindEnum:
    def test_error_kind_is_str_enum(self) -> None:
        """ErrorKind uses str mixin for JSON serialization."""
        assert issubclass(ErrorKind, Enum)
        assert issubclass(ErrorKind, str)
        assert json.dumps(ErrorKind.NOT_FOUND) == '"not_found"'

    def test_error_kind_values_unique(self) -> None:
        values = [kind.value for kind in ErrorKind]
        assert len(values) == len(set(values))


class TestDomainExceptions:
    @pytest.mark.parametrize(
        ("exception", "kind"),
        [
            (IdentityFormatError("x"), ErrorKind.FORMAT),
            (ChecksumError("x", expected=1, actual=2), ErrorKind.CHECKSUM),
            (DuplicateError("x"), ErrorKind.DUPLICATE),
            (ValidationError("x", field="name"), ErrorKind.VALIDATION),
            (NotFoundError("x"), ErrorKind.NOT_FOUND),
            (ConflictError("x"), ErrorKind.CONFLICT),
            (UploadError("x"), ErrorKind.UPLOAD),
            (NothingToExport("x"), ErrorKind.NOTHING_TO_EXPORT),
        ],
    )
    def test_exception_kind(self, exception: RegistrationError, kind: ErrorKind) -> None:
        assert isinstance(exception, RegistrationError)
        assert exception.kind == kind

    def test_validation_error_keeps_field(self) -> None:
        assert ValidationError("Invalid email", field="email").field == "email"


class TestRunOperation:
    def test_success(self) -> None:
        assert run_operation("noop", lambda: 42) == OperationResult(success=True, value=42)

    def test_domain_error(self) -> None:
        def fail() -> None:
            raise NotFoundError("Event not found")

        result = run_operation("list_subscribers", fail)

        assert result == OperationResult(success=False, error=ErrorKind.NOT_FOUND, message="Event not found")

    def test_unexpected_error_is_internal(self) -> None:
        def fail() -> None:
            raise RuntimeError("boom")

        result = run_operation("export_to_delimited_text", fail)

        assert result.error == ErrorKind.INTERNAL
        assert result.message == "Failed to export to delimited text"
        assert "boom" not in result.message


class TestPortConformance:
    """Adapters implement the protocols by structural subtyping."""

    @pytest.mark.parametrize("adapter", [InMemorySubscriberRepository, PostgresSubscriberRepository])
    def test_repositories_define_every_port_method(self, adapter: type) -> None:
        for name in (m for m in vars(SubscriberRepository) if not m.startswith("_")):
            assert callable(getattr(adapter, name, None)), f"{adapter.__name__} lacks {name}"

    def test_asset_store(self) -> None:
        for name in ("upload", "delete"):
            assert hasattr(AssetStore, name)
            assert callable(getattr(LocalAssetStore, name))

    def test_view_notifier(self) -> None:
        assert hasattr(ViewNotifier, "notify")
        assert callable(ConsoleViewNotifier.notify)


class TestDomainPurity:
    """Tests for domain purity - zero framework imports."""

    @pytest.mark.parametrize("pattern", ["from fastapi", "import fastapi", "from pydantic", "import pydantic"])
    def test_no_web_framework_imports_in_domain(self, pattern: str) -> None:
        result = subprocess.run(["grep", "-r", pattern, "src/domain/"], capture_output=True, text=True)
        assert result.returncode != 0, f"Framework import found: {result.stdout}"

    @pytest.mark.parametrize("pattern", ["from psycopg", "import psycopg"])
    def test_no_psycopg_imports_in_domain(self, pattern: str) -> None:
        result = subprocess.run(["grep", "-r", pattern, "src/domain/"], capture_output=True, text=True)
        assert result.returncode != 0, f"psycopg import found: {result.stdout}"

    def test_no_adapter_imports_in_domain(self) -> None:
        result = subprocess.run(["grep", "-r", "src.adapters", "src/domain/"], capture_output=True, text=True)
        assert result.returncode != 0, f"Adapter import found: {result.stdout}"
