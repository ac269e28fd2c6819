#########################################################################################
##
##                              PROGRESS OBSERVERS
##                             (utils/progress.py)
##
#########################################################################################

# IMPORTS ===============================================================================

import sys


# CLASSES ===============================================================================

class ProgressBar:
    """Text progress bar, redrawn once per completed attempt.

    Call signature is ``bar(completed, total)``, matching the ``progress``
    argument of :meth:`SourceROCEstimator.fit`.

    Parameters
    ----------
    width : int
        Number of characters between the bar delimiters.
    stream : file-like, optional
        Output stream, defaults to ``sys.stderr``.
    """

    def __init__(self, width: int = 50, stream=None):
        self.width = int(width)
        self.stream = stream


    def __call__(self, completed: int, total: int) -> None:
        stream = self.stream if self.stream is not None else sys.stderr
        filled = int(self.width * completed // total) if total > 0 else self.width
        bar = "=" * filled + " " * (self.width - filled)
        stream.write(f"\rProgress: |{bar}|")
        if completed >= total:
            stream.write("\n")
        stream.flush()


class ProgressRecorder:
    """Headless observer that stores every ``(completed, total)`` call."""

    def __init__(self):
        self.calls = []


    def __call__(self, completed: int, total: int) -> None:
        self.calls.append((int(completed), int(total)))


    @property
    def fraction(self) -> float:
        """Fraction of attempts completed at the last call."""
        if not self.calls:
            return 0.0
        completed, total = self.calls[-1]
        return completed / total
