#########################################################################################
##
##                            SOURCE ROC DATA CONTAINER
##                              (opt/source_roc_data.py)
##
#########################################################################################

# IMPORTS ===============================================================================

from __future__ import annotations

import warnings

import numpy as np

from ..errors import InputMismatchError
from ..models.evaluator import predict_rates


# CLASS =================================================================================

class SourceROCData:

    """Observed cumulative source ROC container.

    Stores the cumulative source false alarm and hit rates, one entry per
    confidence criterion. Both arrays are read-only once constructed.

    Parameters
    ----------
    false_alarms : array_like
        Cumulative source false alarm rates, shape (k,).
    hit : array_like
        Cumulative source hit rates, shape (k,).
    name : str, optional
        Data set name for display and plotting.

    Raises
    ------
    InputMismatchError
        If the two sequences differ in length.
    ValueError
        If the data is empty, not 1D, or contains non-finite values.

    Notes
    -----
    Rates outside [0, 1] or sequences that are not nondecreasing are
    accepted with a ``UserWarning``.
    """

    def __init__(self, false_alarms, hit, name: str = "source ROC"):
        fa = np.array(false_alarms, dtype=float)
        h = np.array(hit, dtype=float)

        if fa.ndim != 1 or h.ndim != 1:
            raise ValueError("SourceROCData supports 1D rate sequences only")
        if fa.size != h.size:
            raise InputMismatchError(fa.size, h.size)
        if fa.size == 0:
            raise ValueError("SourceROCData requires at least 1 criterion")
        if not (np.all(np.isfinite(fa)) and np.all(np.isfinite(h))):
            raise ValueError("SourceROCData requires finite rates")

        for label, arr in (("false_alarms", fa), ("hit", h)):
            if np.any(arr < 0.0) or np.any(arr > 1.0):
                warnings.warn(
                    f"{label}: rates outside [0, 1]",
                    UserWarning,
                    stacklevel=2,
                )
            if np.any(np.diff(arr) < 0.0):
                warnings.warn(
                    f"{label}: cumulative rates are not nondecreasing",
                    UserWarning,
                    stacklevel=2,
                )

        fa.setflags(write=False)
        h.setflags(write=False)

        self.false_alarms = fa
        self.hit = h
        self.name = str(name)


    @property
    def n_criteria(self) -> int:
        """Number of criteria (data points per sequence)."""
        return self.false_alarms.size


    @property
    def length(self) -> int:
        return self.n_criteria


    def __repr__(self) -> str:
        return (
            f"SourceROCData(name={self.name!r}, n_criteria={self.n_criteria}, "
            f"false_alarms={self.false_alarms.tolist()}, hit={self.hit.tolist()})"
        )


    def plot(self, ax=None, fit=None, *, n_curve: int = 200):
        """Plot the observed ROC points, optionally with a fitted model curve.

        Parameters
        ----------
        ax : matplotlib.axes.Axes, optional
            Target axes; a new figure is created when omitted.
        fit : SourceFitResult, optional
            Fit whose model ROC is drawn through the criterion range.
        n_curve : int
            Number of points on the model curve.

        Returns
        -------
        matplotlib.axes.Axes
        """
        import matplotlib.pyplot as plt  # lazy import

        if ax is None:
            _, ax = plt.subplots(figsize=(5, 5))

        ax.plot(self.false_alarms, self.hit, "o", label=self.name)

        if fit is not None:
            params = fit.parameters
            lo = min(params.criteria) - 3.0
            hi = max(params.criteria) + 3.0
            curve = type(params)(
                recollection_target=params.recollection_target,
                recollection_lure=params.recollection_lure,
                familiarity=params.familiarity,
                sd_target=params.sd_target,
                criteria=np.linspace(lo, hi, n_curve),
            )
            fa_curve, hit_curve = predict_rates(curve)
            ax.plot(fa_curve, hit_curve, "-", label=f"DPSD ({fit.variant.name})")

        ax.plot([0, 1], [0, 1], ":", color="gray", linewidth=1.0)
        ax.set_xlim(0, 1)
        ax.set_ylim(0, 1)
        ax.set_xlabel("Cumulative source false alarm rate")
        ax.set_ylabel("Cumulative source hit rate")
        ax.set_title(f"Source ROC: {self.name}")
        ax.legend()
        ax.grid(True)
        return ax
