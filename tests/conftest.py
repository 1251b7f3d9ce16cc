import os
import sys
from collections.abc import Generator, Iterator

# CRITICAL: Clear environment variables BEFORE importing the package
# This ensures the settings singleton is initialized with default values
_INDIRECTOR_ENV_PREFIX = "INDIRECTOR_"
for _var_name in [name for name in os.environ if name.startswith(_INDIRECTOR_ENV_PREFIX)]:
    del os.environ[_var_name]

import pytest
from loguru import logger
from pytest import LogCaptureFixture

import fixture_termini
from indirector import Indirection, Registry, Terminus
from indirector.autoload import ModuleAutoloader

FIXTURE_TERMINI_PACKAGE = "fixture_termini"


@pytest.fixture
def caplog(caplog: LogCaptureFixture) -> Generator[LogCaptureFixture, None, None]:
    """Fixture to capture log messages during tests.

    See https://loguru.readthedocs.io/en/stable/resources/migration.html#migration-caplog for more information.
    """
    handler_id = logger.add(caplog.handler, format="{message}")
    yield caplog
    logger.remove(handler_id)


@pytest.fixture(scope="session", autouse=True)
def setup_logging() -> None:
    """Set up logging for tests."""
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG",
        format="{time:YYYY-MM-DD HH:mm:ss} | {name}:{function}:{line} | {level} | {message}",
    )


@pytest.fixture
def registry() -> Iterator[Registry]:
    """Return an isolated registry whose termini are autoloaded from the `fixture_termini` test package.

    Plugin modules imported during the test are forgotten afterwards, so the next test imports (and registers) them
    again.
    """
    test_registry = Registry(
        autoloader_factory=lambda terminus_type: ModuleAutoloader(f"{FIXTURE_TERMINI_PACKAGE}.{terminus_type}"),
    )
    fixture_termini.active_registry = test_registry

    yield test_registry

    fixture_termini.active_registry = None
    for module_name in [name for name in sys.modules if name.startswith(f"{FIXTURE_TERMINI_PACKAGE}.")]:
        del sys.modules[module_name]


@pytest.fixture
def my_stuff(registry: Registry) -> Indirection:
    """Return the `my_stuff` indirection, whose model is the marker `"yay"`."""
    return Indirection("my_stuff", "yay", registry=registry)


@pytest.fixture
def abstract_terminus(registry: Registry, my_stuff: Indirection) -> type[Terminus]:
    """Return the abstract terminus type of `my_stuff`."""

    class MyStuff(Terminus, registry=registry):
        pass

    return MyStuff


@pytest.fixture
def terminus_class(abstract_terminus: type[Terminus]) -> type[Terminus]:
    """Return a concrete terminus named `test` serving `my_stuff`, which implements no operations."""

    class Test(abstract_terminus):  # type: ignore[misc,valid-type]
        pass

    return Test
