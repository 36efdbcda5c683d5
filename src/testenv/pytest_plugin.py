"""pytest harness that wraps an e2e session in a single sandbox.

Enable it from a conftest with ``pytest_plugins = ["src.testenv.pytest_plugin"]``.
"""

from __future__ import annotations

from typing import Any, Iterator

import pytest

from src.common.names import random_dns_name

from .config import TestEnvConfig
from .testenv import TestEnv

SUITE_NAME_KEY = pytest.StashKey[str]()


def pytest_addoption(parser: Any) -> None:
    group = parser.getgroup("testenv", "operator sandbox")
    group.addoption("--operator-image", default=None, help="operator image to use")
    group.addoption("--splunk-image", default=None, help="splunk enterprise (splunkd) image to use")
    group.addoption("--spark-image", default=None, help="spark image to use")
    group.addoption(
        "--skip-teardown",
        action="store_true",
        default=None,
        help="Skip tearing down the test env after use",
    )


@pytest.hookimpl(tryfirst=True)
def pytest_configure(config: Any) -> None:
    suite_name = "e2e-suite-" + random_dns_name(6)
    config.stash[SUITE_NAME_KEY] = suite_name
    if getattr(config.option, "xmlpath", None) is None and not hasattr(config, "workerinput"):
        config.option.xmlpath = f"{suite_name}_junit.xml"


def config_from_options(config: Any) -> TestEnvConfig:
    return TestEnvConfig.from_env().with_overrides(
        operator_image=config.getoption("operator_image"),
        splunk_image=config.getoption("splunk_image"),
        spark_image=config.getoption("spark_image"),
        skip_teardown=config.getoption("skip_teardown"),
    )


@pytest.fixture(scope="session")
def testenv_config(pytestconfig: Any) -> TestEnvConfig:
    return config_from_options(pytestconfig)


@pytest.fixture(scope="session")
def testenv(pytestconfig: Any, testenv_config: TestEnvConfig) -> Iterator[TestEnv]:
    env = TestEnv(pytestconfig.stash[SUITE_NAME_KEY], testenv_config)
    try:
        env.setup()
        yield env
    finally:
        env.teardown()
