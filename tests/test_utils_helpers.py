import io
import logging

import pytest

from chessmind import utils
from chessmind.utils.logger import Logger, funclogger, get_logger, set_level, set_stream
from chessmind.utils.mean import mean
from chessmind.utils.to_int import to_int


@pytest.fixture
def restore_chessmind_levels():
    names = ["chessmind", "chessmind.test", "chessmind.test.child"]
    levels = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)


def test_to_int_coerces_values() -> None:
    assert to_int(7) == 7
    assert to_int(" -42 ") == -42
    assert to_int("nope") is None
    assert to_int(3.14) is None
    assert to_int(True) is None


def test_mean_of_empty_sequence_is_zero() -> None:
    assert mean([]) == 0.0
    assert mean([1, 2, 6]) == 3.0


def test_get_logger_configures_default_handler() -> None:
    logger = logging.getLogger("chessmind.test.fresh")
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)

    configured = get_logger("chessmind.test.fresh")

    assert configured.level == logging.INFO
    assert configured.handlers
    assert configured.propagate is False


def test_get_logger_defaults_to_package_logger() -> None:
    assert get_logger().name == "chessmind"


def test_funclogger_decorator_returns_value() -> None:
    @funclogger
    def add(left: int, right: int, *, extra: int = 0) -> int:
        return left + right + extra

    assert add(2, 3, extra=1) == 6


@pytest.mark.usefixtures("restore_chessmind_levels")
def test_set_level_accepts_names_and_reaches_children() -> None:
    get_logger("chessmind.test.child")

    set_level("warning", logger_names=["chessmind.test"])

    assert logging.getLogger("chessmind.test").level == logging.WARNING
    assert logging.getLogger("chessmind.test.child").level == logging.WARNING


def test_set_level_rejects_unknown_names() -> None:
    with pytest.raises(ValueError):
        set_level("chatty")


def test_set_stream_redirects_shared_handler() -> None:
    logger = get_logger("chessmind.test.stream")
    logger.setLevel(logging.INFO)
    buffer = io.StringIO()
    original = set_stream(buffer)
    try:
        logger.info("engine ready")
    finally:
        set_stream(original)

    assert "engine ready" in buffer.getvalue()


def test_logger_factory_returns_configured_logger() -> None:
    logger = Logger("chessmind.test.factory")
    assert logger.name == "chessmind.test.factory"
    assert logger.handlers


def test_utils_all_exports_are_resolvable() -> None:
    for name in utils.__all__:
        assert getattr(utils, name)
