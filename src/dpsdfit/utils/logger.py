#########################################################################################
##
##                                 LOGGING MANAGER
##                                (utils/logger.py)
##
#########################################################################################

# IMPORTS ===============================================================================

import logging
import sys
import threading


# CONSTANTS =============================================================================

ROOT_LOGGER_NAME = "dpsdfit"
DEFAULT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


# CLASS =================================================================================

class LoggerManager:
    """Process-wide manager for the ``dpsdfit`` logger hierarchy.

    All package loggers are children of the ``"dpsdfit"`` logger. A
    ``NullHandler`` is attached on first use so that library calls stay
    silent until :meth:`configure` is called (or the application configures
    the standard ``logging`` module itself).

    Example
    -------
    .. code-block:: python

        from dpsdfit import LoggerManager

        LoggerManager().configure(level="DEBUG")
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        with cls._lock:
            if cls._instance is None:
                inst = super().__new__(cls)
                inst._root = logging.getLogger(ROOT_LOGGER_NAME)
                inst._root.addHandler(logging.NullHandler())
                inst._handler = None
                cls._instance = inst
        return cls._instance


    @property
    def root(self) -> logging.Logger:
        return self._root


    def get_logger(self, name: str) -> logging.Logger:
        """Return a logger below the package root.

        Module names already starting with ``dpsdfit`` are used as-is.
        """
        if name == ROOT_LOGGER_NAME or name.startswith(ROOT_LOGGER_NAME + "."):
            return logging.getLogger(name)
        return self._root.getChild(name)


    def configure(self, level="INFO", stream=None, fmt: str = DEFAULT_FORMAT) -> logging.Logger:
        """Attach a single stream handler to the package root logger.

        Calling this again replaces the previously attached handler.
        """
        if self._handler is not None:
            self._root.removeHandler(self._handler)

        handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
        handler.setFormatter(logging.Formatter(fmt))
        self._root.addHandler(handler)
        self._handler = handler
        self.set_level(level)
        return self._root


    def set_level(self, level) -> None:
        self._root.setLevel(level)


    def reset(self) -> None:
        """Detach the handler added by :meth:`configure` and clear the level."""
        if self._handler is not None:
            self._root.removeHandler(self._handler)
            self._handler = None
        self._root.setLevel(logging.NOTSET)
