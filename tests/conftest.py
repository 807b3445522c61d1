import io
import json
from typing import List

import pytest

from autoneg_controller.core.logger import setup_logger


ENV_VARS = ("PORT", "K_SERVICE", "K_REVISION", "AUTONEG_REGION", "AUTONEG_LABEL_SELECTOR")


class TTYStringIO(io.StringIO):
    def isatty(self) -> bool:
        return True


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep a stray .env in the repo from leaking into tests
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def log_stream() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def logger(log_stream):
    return setup_logger("autoneg_controller.tests", level="debug", service_name="test-service", stream=log_stream)


def read_records(stream: io.StringIO) -> List[dict]:
    return [json.loads(line) for line in stream.getvalue().splitlines() if line.strip()]
