"""pytest integration.

Enable it from a ``conftest.py``::

    pytest_plugins = ["sqlfixture.pytest_plugin"]

and declare the database fixtures of a test with markers::

    pytestmark = pytest.mark.database_setup("sampleData.xml")

    @pytest.mark.expected_database("expectedData.xml", table="person")
    def test_remove(person_service):
        person_service.remove(1)

Module and class markers form the suite scope, function markers the case
scope. Decorators are applied in source order, top to bottom; a module
``pytestmark`` list is applied in list order.
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pytest

from sqlfixture.config.models import SQLFixtureConfig
from sqlfixture.config.parser import ConfigParser
from sqlfixture.exceptions import ConfigurationError, SQLFixtureError
from sqlfixture.fixtures.config_loader import load_declarations
from sqlfixture.fixtures.context import FixtureContext, OrchestratorState
from sqlfixture.fixtures.declarations import (
    ExpectationDeclaration,
    ExportDeclaration,
    FixtureDeclaration,
    ScopedDeclarations,
)
from sqlfixture.fixtures.orchestrator import FixtureOrchestrator

logger = logging.getLogger(__name__)

MARKERS = {
    "database_setup": (
        "database_setup(*locations, operation='CLEAN_INSERT', connection='', codec=None, "
        "dataset_id=None): bring the database into a known state before the test"
    ),
    "database_teardown": (
        "database_teardown(*locations, operation='CLEAN_INSERT', connection='', codec=None, "
        "dataset_id=None): reset the database after the test"
    ),
    "expected_database": (
        "expected_database(location='', table=None, query=None, connection='', "
        "assertion_mode='DEFAULT', column_filters=(), ignore_columns=(), override=False, "
        "modifiers=(), codec=None, dataset_id=None): verify the database after the test"
    ),
    "export_database": (
        "export_database(table_name, query='', file_name=None, format=None, connection='', "
        "xml_element=False, sort_columns=False, replacements=()): write a table to a file after the test"
    ),
    "sqlfixture_declarations": (
        "sqlfixture_declarations(path): load suite and case declarations from a YAML file"
    ),
}

_state_key = pytest.StashKey[Tuple[FixtureOrchestrator, FixtureContext]]()


def pytest_addoption(parser):
    group = parser.getgroup("sqlfixture", "database fixtures")
    group.addoption(
        "--sqlfixture-config",
        action="store",
        dest="sqlfixture_config",
        default=None,
        help="Path to the sqlfixture YAML configuration file",
    )
    parser.addini("sqlfixture_config", help="Path to the sqlfixture YAML configuration file", default="")


def pytest_configure(config):
    for description in MARKERS.values():
        config.addinivalue_line("markers", description)


def _build(factory, mark, *args, **kwargs):
    try:
        return factory(*args, **kwargs)
    except TypeError as e:
        raise ConfigurationError(f"Invalid @{mark.name} marker: {e}") from e


def _fixture_declaration(mark) -> FixtureDeclaration:
    kwargs = dict(mark.kwargs)
    locations = tuple(mark.args) or kwargs.pop("locations", ())
    kwargs.pop("locations", None)
    return _build(FixtureDeclaration, mark, locations=locations, **kwargs)


def _expectation_declaration(mark) -> ExpectationDeclaration:
    kwargs = dict(mark.kwargs)
    if mark.args:
        kwargs["location"] = mark.args[0]
    return _build(ExpectationDeclaration, mark, **kwargs)


def _export_declaration(mark, default_format: str) -> ExportDeclaration:
    kwargs = dict(mark.kwargs)
    if mark.args:
        kwargs["table_name"] = mark.args[0]
    if not kwargs.get("format"):
        kwargs["format"] = default_format
    return _build(ExportDeclaration, mark, **kwargs)


def _declarations_from_marks(marks: Iterable, default_format: str) -> ScopedDeclarations:
    scoped = ScopedDeclarations()
    for mark in marks:
        if mark.name == "database_setup":
            scoped.setups.append(_fixture_declaration(mark))
        elif mark.name == "database_teardown":
            scoped.teardowns.append(_fixture_declaration(mark))
        elif mark.name == "expected_database":
            scoped.expectations.append(_expectation_declaration(mark))
        elif mark.name == "export_database":
            scoped.exports.append(_export_declaration(mark, default_format))
    return scoped


def _class_marks(cls: type) -> List:
    """Marks declared on ``cls`` and its bases, base classes first."""
    marks = []
    for klass in reversed(cls.__mro__):
        declared = klass.__dict__.get("pytestmark", [])
        if not isinstance(declared, list):
            declared = [declared]
        if not any(isinstance(mark, pytest.MarkDecorator) for mark in declared):
            # decorators store their marks bottom-up
            declared = list(reversed(declared))
        marks.extend(getattr(mark, "mark", mark) for mark in declared)
    return marks


def _source_order(node) -> List:
    if isinstance(node, pytest.Module):
        return list(node.own_markers)
    if isinstance(node, pytest.Class):
        return _class_marks(node.obj)
    return list(reversed(node.own_markers))


def _suite_nodes(item) -> List:
    return [node for node in item.listchain() if isinstance(node, (pytest.Module, pytest.Class))]


def _uses_sqlfixture(item, fixturenames: Iterable[str]) -> bool:
    if "sqlfixture_context" in fixturenames:
        return True
    return any(item.get_closest_marker(name) is not None for name in MARKERS)


def build_context(item, default_format: str = "xml") -> FixtureContext:
    """Create the fixture context of a collected test item."""
    test_name = getattr(item, "originalname", None) or item.name
    namespace_dir = Path(str(item.path)).parent
    module = getattr(item, "module", None)
    namespace = module.__name__.rpartition(".")[0] if module is not None else ""

    suite = ScopedDeclarations()
    case = ScopedDeclarations()
    for node in _suite_nodes(item):
        marks = _source_order(node)
        for mark in marks:
            if mark.name == "sqlfixture_declarations":
                path = Path(mark.args[0] if mark.args else mark.kwargs["path"])
                if not path.is_absolute():
                    path = namespace_dir / path
                declarations = load_declarations(path, default_format)
                suite = suite.extend(declarations.suite)
                case = case.extend(declarations.for_case(test_name))
        suite = suite.extend(_declarations_from_marks(marks, default_format))
    case = case.extend(_declarations_from_marks(_source_order(item), default_format))

    return FixtureContext(
        test_name=test_name,
        namespace_dir=namespace_dir,
        namespace=namespace,
        suite_scope=suite,
        case_scope=case,
    )


@pytest.fixture(scope="session")
def sqlfixture_config(pytestconfig) -> SQLFixtureConfig:
    """Configuration loaded from ``--sqlfixture-config``, the ini option or a default location."""
    path: Optional[str] = pytestconfig.getoption("sqlfixture_config") or pytestconfig.getini("sqlfixture_config")
    config_path = None
    if path:
        config_path = Path(path)
        if not config_path.is_absolute():
            config_path = pytestconfig.rootpath / config_path
    return ConfigParser().load_config(config_path)


@pytest.fixture(scope="session")
def sqlfixture_orchestrator(pytestconfig, sqlfixture_config):
    """Session-wide orchestrator; override it in a conftest to customise it."""
    orchestrator = FixtureOrchestrator.from_config(sqlfixture_config, root_dir=pytestconfig.rootpath)
    yield orchestrator
    orchestrator.close()


@pytest.fixture(autouse=True)
def _sqlfixture_lifecycle(request):
    item = request.node
    if not _uses_sqlfixture(item, request.fixturenames):
        yield None
        return

    orchestrator: FixtureOrchestrator = request.getfixturevalue("sqlfixture_orchestrator")
    context = build_context(item, orchestrator.default_export_format)
    item.stash[_state_key] = (orchestrator, context)

    try:
        orchestrator.before_test(context)
    except Exception as e:
        context.record_failure(e)
        orchestrator.after_test(context)
        raise

    yield context

    if not context.closed:
        # setup of another fixture failed, the test body never ran
        context.record_failure(SQLFixtureError(f"Test body of '{context.test_name}' did not run"))
        orchestrator.after_test(context)


@pytest.fixture
def sqlfixture_context(_sqlfixture_lifecycle) -> FixtureContext:
    """Fixture context of the running test, with its open connections."""
    return _sqlfixture_lifecycle


@pytest.hookimpl(wrapper=True)
def pytest_runtest_call(item):
    state = item.stash.get(_state_key, None)
    if state is None or state[1].state != OrchestratorState.TEST_BODY:
        return (yield)

    orchestrator, context = state
    try:
        result = yield
    except BaseException as e:
        context.record_failure(e)
        orchestrator.after_test(context)
        raise
    orchestrator.after_test(context)
    return result
