#########################################################################################
##
##                                   EXCEPTIONS
##                                  (errors.py)
##
#########################################################################################


class DPSDFitError(Exception):
    """Base class for errors raised by dpsdfit."""


class InputMismatchError(DPSDFitError, ValueError):
    """False-alarm and hit rate sequences do not have the same length."""

    def __init__(self, n_false_alarms: int, n_hit: int):
        self.n_false_alarms = int(n_false_alarms)
        self.n_hit = int(n_hit)
        super().__init__(
            "Vectors containing hit and false alarm rates do not have the same "
            f"length (false_alarms: {self.n_false_alarms}, hit: {self.n_hit})"
        )


class NoSuccessfulFitError(DPSDFitError, RuntimeError):
    """Every multi-start attempt failed, so there is no minimum to report."""

    def __init__(self, n_attempts: int, last_message: str | None = None):
        self.n_attempts = int(n_attempts)
        self.last_message = last_message
        msg = f"no successful fit: all {self.n_attempts} attempts failed"
        if last_message:
            msg += f" (last error: {last_message})"
        super().__init__(msg)
