"""Per-test state threaded through the orchestrator."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from sqlfixture.db.base import DatabaseConnection
from sqlfixture.db.connection import ConnectionRegistry
from sqlfixture.exceptions import SQLFixtureError
from sqlfixture.fixtures.declarations import ScopedDeclarations


class OrchestratorState(str, Enum):
    """Lifecycle states of one test."""
    IDLE = "IDLE"
    SETUP = "SETUP"
    TEST_BODY = "TEST_BODY"
    VERIFY = "VERIFY"
    EXPORT = "EXPORT"
    TEARDOWN = "TEARDOWN"
    CLOSED = "CLOSED"


@dataclass
class FixtureContext:
    """Everything the orchestrator knows about the test being run.

    Attributes:
        test_name: Name of the test function; default export file name.
        namespace_dir: Directory resources are resolved against first.
        namespace: Dotted namespace of the test (module path), drives the
            export layout when an export directory is configured.
        suite_scope: Declarations of the module and class.
        case_scope: Declarations of the test function.
        test_failure: Exception raised by the test body, if any.
        registry: Connections of this test, created at setup.
        state: Current lifecycle state.
    """
    test_name: str
    namespace_dir: Optional[Path] = None
    namespace: str = ""
    suite_scope: ScopedDeclarations = field(default_factory=ScopedDeclarations)
    case_scope: ScopedDeclarations = field(default_factory=ScopedDeclarations)
    test_failure: Optional[BaseException] = None
    registry: Optional[ConnectionRegistry] = None
    state: OrchestratorState = OrchestratorState.IDLE

    @property
    def namespace_path(self) -> Path:
        if not self.namespace:
            return Path()
        return Path(*[part for part in self.namespace.split('.') if part])

    @property
    def closed(self) -> bool:
        return self.state == OrchestratorState.CLOSED

    def record_failure(self, error: BaseException) -> None:
        """Remember the first failure of the test."""
        if self.test_failure is None:
            self.test_failure = error

    def connection(self, name: Optional[str] = None) -> DatabaseConnection:
        """Live connection ``name`` (default when blank) of this test."""
        if self.registry is None:
            raise SQLFixtureError(f"Test '{self.test_name}' has no open connections")
        return self.registry.get(name)
