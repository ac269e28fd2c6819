########################################################################################
##
##                                  TESTS FOR
##                                'utils/logger.py'
##
########################################################################################

# IMPORTS ==============================================================================

import io
import logging

import pytest

from dpsdfit.utils.logger import LoggerManager


# ═══════════════════════════════════════════════════════════════════════════
# Fixtures
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def manager():
    mgr = LoggerManager()
    yield mgr
    mgr.reset()


# ═══════════════════════════════════════════════════════════════════════════
# LoggerManager
# ═══════════════════════════════════════════════════════════════════════════

class TestLoggerManager:

    def test_singleton(self):
        assert LoggerManager() is LoggerManager()

    def test_root_has_null_handler(self, manager):
        assert any(isinstance(h, logging.NullHandler) for h in manager.root.handlers)

    def test_get_logger_module_name(self, manager):
        log = manager.get_logger("dpsdfit.opt.multistart")
        assert log.name == "dpsdfit.opt.multistart"

    def test_get_logger_foreign_name_is_nested(self, manager):
        log = manager.get_logger("myscript")
        assert log.name == "dpsdfit.myscript"

    def test_configure_writes_to_stream(self, manager):
        stream = io.StringIO()
        manager.configure(level="INFO", stream=stream, fmt="%(levelname)s %(message)s")
        manager.get_logger("dpsdfit.test").info("hello")
        assert stream.getvalue() == "INFO hello\n"

    def test_configure_replaces_handler(self, manager):
        first, second = io.StringIO(), io.StringIO()
        manager.configure(stream=first)
        manager.configure(stream=second)
        manager.get_logger("dpsdfit.test").warning("once")
        assert first.getvalue() == ""
        assert "once" in second.getvalue()

    def test_level_filters(self, manager):
        stream = io.StringIO()
        manager.configure(level="WARNING", stream=stream)
        manager.get_logger("dpsdfit.test").info("hidden")
        assert stream.getvalue() == ""

    def test_reset(self, manager):
        manager.configure(stream=io.StringIO(), level="DEBUG")
        manager.reset()
        assert manager.root.level == logging.NOTSET
        assert not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.NullHandler)
                       for h in manager.root.handlers)
