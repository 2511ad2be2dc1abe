import logging

import numpy as np
import pytest

from fogview.utils.log_util import describe, level_from_name, log_io


@pytest.mark.parametrize("value, expected", [
    ("debug", logging.DEBUG),
    (" Warning ", logging.WARNING),
    ("30", 30),
    (logging.ERROR, logging.ERROR),
    ("verbose", logging.INFO),
    (None, logging.INFO),
    (True, logging.INFO),
])
def test_level_from_name(value, expected):
    assert level_from_name(value) == expected


def test_describe_summarizes_arrays():
    assert describe(np.zeros((8, 8, 8), dtype=np.uint8)) == "<ndarray shape=(8, 8, 8) dtype=uint8>"
    assert describe("x" * 200).endswith("...")


def test_log_io_traces_calls(caplog):
    @log_io(level=logging.DEBUG, mask=("secret",))
    def add(a, b, secret=None):
        return a + b

    with caplog.at_level(logging.DEBUG, logger="fogview"):
        assert add(1, 2, secret="token") == 3

    messages = [r.getMessage() for r in caplog.records]
    assert any("add(a=1, b=2, secret=***)" in m for m in messages)
    assert any("= 3" in m for m in messages)
    assert not any("token" in m for m in messages)


def test_log_io_logs_and_reraises(caplog):
    @log_io()
    def fail():
        raise ValueError("bad")

    with caplog.at_level(logging.DEBUG, logger="fogview"):
        with pytest.raises(ValueError):
            fail()
    assert any("Exception in" in r.getMessage() for r in caplog.records)
