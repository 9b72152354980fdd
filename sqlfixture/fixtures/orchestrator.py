"""Fixture lifecycle around one test: setup, verify, export, teardown, close.

The orchestrator holds only durable, read-only collaborators. Everything
that belongs to a single test lives in the :class:`FixtureContext` passed to
:meth:`FixtureOrchestrator.before_test` and
:meth:`FixtureOrchestrator.after_test`.
"""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Dict, Generator, Optional, Union

from sqlfixture.config.models import SQLFixtureConfig
from sqlfixture.db.connection import ConnectionManager, ConnectionRegistry
from sqlfixture.db.operations import DatabaseOperation
from sqlfixture.dataset.composer import DatasetComposer
from sqlfixture.dataset.models import Dataset
from sqlfixture.dataset.resources import ResourceLocator
from sqlfixture.exceptions import (
    DatabaseError,
    SQLFixtureError,
    TeardownError,
    UnsupportedOperationError,
)
from sqlfixture.fixtures.assertions import AssertionEngine, FailureHandler, create_failure_handler
from sqlfixture.fixtures.context import FixtureContext, OrchestratorState
from sqlfixture.fixtures.declarations import FixtureDeclaration, MergedDeclarationSet
from sqlfixture.fixtures.export import Exporter
from sqlfixture.fixtures.resolver import ConfigurationResolver

logger = logging.getLogger(__name__)

FixtureHandler = Callable[[FixtureContext, FixtureDeclaration, object], None]


class FixtureOrchestrator:
    """Drives the database fixture lifecycle of tests."""

    def __init__(
        self,
        provider: ConnectionManager,
        resolver: Optional[ConfigurationResolver] = None,
        composer: Optional[DatasetComposer] = None,
        assertion_engine: Optional[AssertionEngine] = None,
        exporter: Optional[Exporter] = None,
        failure_handler: Union[str, Callable[[], FailureHandler], None] = "default",
        default_connection: Optional[str] = None,
        allowed_connections=(),
        default_export_format: str = "xml",
    ) -> None:
        self.provider = provider
        self.resolver = resolver or ConfigurationResolver()
        self.composer = composer or DatasetComposer()
        self.assertion_engine = assertion_engine or AssertionEngine()
        self.exporter = exporter or Exporter()
        self.failure_handler = failure_handler
        self.default_connection = default_connection
        self.allowed_connections = list(allowed_connections)
        self.default_export_format = default_export_format

        self.operation_handlers: Dict[DatabaseOperation, FixtureHandler] = {
            DatabaseOperation.NONE: self._no_op,
            DatabaseOperation.SQL: self._execute_sql,
            DatabaseOperation.TRUNCATE_TABLE: self._truncate_tables,
            DatabaseOperation.UPDATE: self._apply_dataset,
            DatabaseOperation.INSERT: self._apply_dataset,
            DatabaseOperation.REFRESH: self._apply_dataset,
            DatabaseOperation.DELETE: self._apply_dataset,
            DatabaseOperation.DELETE_ALL: self._apply_dataset,
            DatabaseOperation.CLEAN_INSERT: self._apply_dataset,
        }

    @classmethod
    def from_config(
        cls,
        config: SQLFixtureConfig,
        root_dir: Optional[Union[str, Path]] = None,
        export_dir: Optional[Union[str, Path]] = None,
    ) -> "FixtureOrchestrator":
        """Build an orchestrator from a loaded configuration.

        Args:
            config: Validated configuration.
            root_dir: Base directory for relative resource and export paths.
            export_dir: Export root overriding the configured one.
        """
        settings = config.fixture_settings
        root = Path(root_dir) if root_dir else Path.cwd()
        locator = ResourceLocator(settings.resource_paths, root)

        output_dir = export_dir or settings.export.output_dir
        if output_dir and not Path(output_dir).is_absolute():
            output_dir = root / output_dir

        return cls(
            ConnectionManager(config),
            resolver=ConfigurationResolver(
                default_codec=settings.default_codec,
                locator=locator,
                replace_null_token=settings.replace_null_token,
                column_filters=settings.column_filters,
            ),
            exporter=Exporter(output_dir),
            failure_handler=settings.failure_handler,
            allowed_connections=settings.connections,
            default_export_format=settings.export.default_format,
        )

    @property
    def locator(self) -> ResourceLocator:
        return self.resolver.locator

    def before_test(self, context: FixtureContext) -> None:
        """Open the connection registry of the test and run its setup.

        Raises:
            SQLFixtureError: If the context was already started, or setup fails.
        """
        if context.state != OrchestratorState.IDLE:
            raise SQLFixtureError(
                f"Fixture lifecycle of '{context.test_name}' already started ({context.state.value})"
            )
        context.registry = ConnectionRegistry(
            self.provider, self.default_connection, self.allowed_connections
        )
        context.state = OrchestratorState.SETUP
        self._run_fixtures(context, self.resolver.setups(context), "Setup")
        context.state = OrchestratorState.TEST_BODY

    def after_test(self, context: FixtureContext) -> None:
        """Verify, export, tear down and close; calling it again is a no-op.

        Verification and export only run when the test did not fail. Teardown
        always runs; its failure is only logged when the test or the
        verification already failed. Connections are always closed.
        """
        if context.closed:
            return

        error: Optional[Exception] = None
        try:
            try:
                if context.test_failure is None:
                    self._verify(context)
                    self._export(context)
                else:
                    logger.debug(
                        f"Skipping expectations and exports of '{context.test_name}' "
                        f"due to test failure {type(context.test_failure).__name__}"
                    )
            except Exception as e:
                error = e

            try:
                self._teardown(context, error)
            except TeardownError as e:
                error = e
        finally:
            self._close(context, error)

        if error is not None:
            raise error

    @contextmanager
    def fixture_lifecycle(self, context: FixtureContext) -> Generator[FixtureContext, None, None]:
        """Run the whole lifecycle around the body of a ``with`` block."""
        try:
            self.before_test(context)
        except Exception as e:
            context.record_failure(e)
            self.after_test(context)
            raise

        try:
            yield context
        except Exception as e:
            context.record_failure(e)
            self.after_test(context)
            raise

        self.after_test(context)

    def close(self) -> None:
        """Dispose of the pooled connections of the provider."""
        self.provider.close_all_connections()

    def _run_fixtures(self, context: FixtureContext, declarations: MergedDeclarationSet, phase: str) -> None:
        for declaration in declarations:
            handler = self.operation_handlers.get(declaration.operation)
            if handler is None:
                raise UnsupportedOperationError(declaration.operation)
            connection = context.connection(declaration.connection)
            logger.debug(
                f"Executing {phase} of '{context.test_name}' using {declaration.operation.value} "
                f"on {list(declaration.locations)} ({connection.name})"
            )
            handler(context, declaration, connection)

    def _compose(self, context: FixtureContext, declaration: FixtureDeclaration, connection) -> Dataset:
        return self.composer.compose(
            declaration.locations,
            self.resolver.codec_for(declaration),
            connection,
            context.namespace_dir,
            declaration.dataset_id,
        )

    def _no_op(self, context: FixtureContext, declaration: FixtureDeclaration, connection) -> None:
        pass

    def _execute_sql(self, context: FixtureContext, declaration: FixtureDeclaration, connection) -> None:
        """Each value is a SQL file (test-relative, then search paths) or literal SQL."""
        for value in declaration.locations:
            path = self.locator.resolve(context.namespace_dir, value)
            if path is not None:
                logger.debug(f"Executing SQL script {path}")
                connection.execute_sql(path.read_text(encoding='utf-8'))
            else:
                connection.execute_sql(value)

    def _truncate_tables(self, context: FixtureContext, declaration: FixtureDeclaration, connection) -> None:
        """Each value is a dataset whose tables are truncated, or a literal table name."""
        codec = self.resolver.codec_for(declaration)
        for value in declaration.locations:
            if codec.resolve(context.namespace_dir, value) is None:
                connection.truncate_table(value)
            else:
                dataset = self.composer.compose(
                    [value], codec, connection, context.namespace_dir, declaration.dataset_id
                )
                connection.execute(DatabaseOperation.TRUNCATE_TABLE, dataset)

    def _apply_dataset(self, context: FixtureContext, declaration: FixtureDeclaration, connection) -> None:
        connection.execute(declaration.operation, self._compose(context, declaration, connection))

    def _verify(self, context: FixtureContext) -> None:
        context.state = OrchestratorState.VERIFY
        expectations = self.resolver.expectations(context)
        if not len(expectations):
            return

        modifier = self.resolver.modifier_chain(expectations)
        handler = create_failure_handler(self.failure_handler)
        for declaration in expectations:
            expected = self.composer.load(
                self.resolver.codec_for(declaration),
                context.namespace_dir,
                declaration.location,
                declaration.dataset_id,
                modifier,
            )
            self.assertion_engine.verify(
                declaration,
                expected,
                context.connection(declaration.connection),
                self.resolver.column_filters_for(declaration),
                handler,
            )
        handler.finish()

    def _export(self, context: FixtureContext) -> None:
        context.state = OrchestratorState.EXPORT
        for group in self.resolver.export_groups(context):
            self.exporter.export(group, context.connection(group.connection), context)

    def _teardown(self, context: FixtureContext, error: Optional[Exception]) -> None:
        """Run teardown declarations.

        Raises:
            TeardownError: If teardown fails and nothing failed before.
        """
        context.state = OrchestratorState.TEARDOWN
        try:
            self._run_fixtures(context, self.resolver.teardowns(context), "Teardown")
        except Exception as e:
            if context.test_failure is not None or error is not None:
                logger.warning(
                    f"Unable to raise database teardown error of '{context.test_name}' "
                    f"due to existing test error: {e}"
                )
                return
            raise TeardownError(
                f"Database teardown of '{context.test_name}' failed: {e}", context.test_name
            ) from e

    def _close(self, context: FixtureContext, error: Optional[Exception]) -> None:
        context.state = OrchestratorState.CLOSED
        if context.registry is None:
            return
        try:
            context.registry.close_all()
        except DatabaseError as e:
            if context.test_failure is None and error is None:
                raise
            logger.warning(f"Unable to close connections of '{context.test_name}': {e}")
