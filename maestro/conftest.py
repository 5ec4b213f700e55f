import logging

import pytest

from maestro import Config, configure, project_root

TEST_CONFIG = Config(
  logging=Config.Logging(level=logging.DEBUG, log_dir=project_root() / "test_logs"),
  emulation=Config.Emulation(),
)


@pytest.fixture(autouse=True)
def maestro_test_config():
  """ Every test runs with debug logs written under `test_logs/` and default emulation limits. """
  configure(TEST_CONFIG)
  yield
