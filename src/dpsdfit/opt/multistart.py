#########################################################################################
##
##                   MULTI-START DPSD SOURCE ROC ESTIMATION (BFGS)
##                               (opt/multistart.py)
##
#########################################################################################

# IMPORTS ===============================================================================

from __future__ import annotations

import os
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np
import pandas as pd
import scipy.optimize as sci_opt

from ..errors import NoSuccessfulFitError
from ..models.evaluator import SourceROCModel
from ..models.variants import ModelVariant, NaturalParameters
from ..utils.logger import LoggerManager
from .source_roc_data import SourceROCData


logger = LoggerManager().get_logger(__name__)


# CONSTANTS =============================================================================

DEFAULT_ITERATIONS = 200

# run until convergence, not until the iteration budget is exhausted
BFGS_MAXITER = 10_000_000
BFGS_GTOL = 1e-10


__all__ = [
    "AttemptRecord",
    "SourceFitResult",
    "SourceROCEstimator",
    "bfgs_minimizer",
    "fit_dpsd_roc_source",
]


# LOCAL MINIMIZER =======================================================================

def bfgs_minimizer(
    objective: Callable[[np.ndarray], float],
    x0: np.ndarray,
    jac: Callable[[np.ndarray], np.ndarray] | None = None,
) -> sci_opt.OptimizeResult:
    """Default local minimizer: ``scipy.optimize.minimize`` with BFGS.

    Any replacement must accept ``(objective, x0, jac)`` and return an object
    exposing ``.x`` and ``.fun``, or raise on failure.
    """
    return sci_opt.minimize(
        objective,
        x0=np.asarray(x0, dtype=float),
        jac=jac,
        method="BFGS",
        options={"maxiter": BFGS_MAXITER, "gtol": BFGS_GTOL},
    )


# ATTEMPT RECORD ========================================================================

@dataclass
class AttemptRecord:
    """Outcome of one randomized-start local minimization.

    ``x`` and ``sse`` are ``None`` for failed attempts.
    """

    index: int
    x0: np.ndarray | None
    x: np.ndarray | None = None
    sse: float | None = None
    success: bool = False
    message: str = ""


def _attempt_seeds(seed: Any, iterations: int) -> list[np.random.SeedSequence]:
    """Child seed sequences ``0 .. iterations-1`` of *seed*.

    Children are built from the entropy and spawn key directly, so a
    ``SeedSequence`` passed by the caller is never advanced and attempt *i*
    depends only on ``(seed, i)``.
    """
    base = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
    return [
        np.random.SeedSequence(
            base.entropy,
            spawn_key=(*base.spawn_key, i),
            pool_size=base.pool_size,
        )
        for i in range(iterations)
    ]


def _run_attempt(
    model: SourceROCModel,
    minimizer: Callable,
    index: int,
    seed_seq: np.random.SeedSequence,
) -> AttemptRecord:
    """Sample a start for attempt *index* and run the local minimizer from it."""
    rng = np.random.default_rng(seed_seq)
    x0 = model.variant.sample_start(rng, model.n_criteria)

    try:
        res = minimizer(model.sse, x0, model.gradient)
        x = np.asarray(res.x, dtype=float).reshape(-1)
        sse = float(res.fun)
    except Exception as exc:
        return AttemptRecord(index=index, x0=x0, message=f"{type(exc).__name__}: {exc}")

    if x.size != model.n_params:
        return AttemptRecord(
            index=index,
            x0=x0,
            message=f"minimizer returned {x.size} parameters, expected {model.n_params}",
        )
    if not (np.isfinite(sse) and np.all(np.isfinite(x))):
        return AttemptRecord(index=index, x0=x0, message="non-finite objective or parameters")

    return AttemptRecord(
        index=index,
        x0=x0,
        x=x,
        sse=sse,
        success=True,
        message=str(getattr(res, "message", "")),
    )


# FIT RESULT ============================================================================

@dataclass(frozen=True, eq=False)
class SourceFitResult:
    """Best-fitting DPSD source model parameters across all attempts.

    Attributes
    ----------
    variant : ModelVariant
        Parameterization that was fitted.
    parameters : NaturalParameters
        Natural-space parameters of the minimum-SSE attempt.
    sse : float
        Minimum sum of squared errors.
    x : np.ndarray
        Optimizer-space vector of the minimum-SSE attempt.
    n_attempts : int
        Number of attempts run.
    n_failed : int
        Number of attempts discarded as failed.
    best_index : int
        Attempt index that produced the minimum.
    """

    variant: ModelVariant
    parameters: NaturalParameters
    sse: float
    x: np.ndarray = field(repr=False)
    n_attempts: int
    n_failed: int
    best_index: int


    @property
    def recollection_target(self) -> float:
        return self.parameters.recollection_target


    @property
    def recollection_lure(self) -> float:
        return self.parameters.recollection_lure


    @property
    def familiarity(self) -> float:
        return self.parameters.familiarity


    @property
    def sd_target(self) -> float:
        return self.parameters.sd_target


    @property
    def criteria(self) -> tuple:
        return self.parameters.criteria


    def to_frame(self) -> pd.DataFrame:
        """Single-row table: ``recollection_target ... c1..ck, SSE``."""
        row = self.parameters.as_dict()
        row["SSE"] = float(self.sse)
        return pd.DataFrame([row])


    def display(self) -> None:
        """Print a summary table of the fitted parameters."""
        print("=" * 60)
        print("DPSD Source ROC Fit")
        print("=" * 60)
        print(f"  variant: {self.variant.name}")
        print(f"  attempts: {self.n_attempts}  (failed: {self.n_failed}, best: #{self.best_index})")
        print("-" * 40)
        for name, val in self.parameters.as_dict().items():
            print(f"  {name:32s}  = {val:.6g}")
        print("-" * 40)
        print(f"  {'SSE':32s}  = {self.sse:.6g}")
        print("=" * 60)


    def __repr__(self) -> str:
        p = self.parameters
        return (
            f"SourceFitResult({self.variant.name}, sse={self.sse:.4g}, "
            f"rt={p.recollection_target:.4g}, rl={p.recollection_lure:.4g}, "
            f"d={p.familiarity:.4g}, sd={p.sd_target:.4g}, "
            f"criteria={list(p.criteria)})"
        )


# ESTIMATOR =============================================================================

class SourceROCEstimator:
    """Multi-start least-squares estimation of DPSD source model parameters.

    Each attempt draws a random starting point for the active variant, runs a
    local quasi-Newton minimization of the total squared difference between
    observed and predicted cumulative hit and false alarm rates, and the
    attempt with the lowest error wins.

    Parameters
    ----------
    false_alarms : array_like
        Cumulative source false alarm rates.
    hit : array_like
        Cumulative source hit rates (same length).
    equal_variance : bool
        Fix the target standard deviation at 1 (``True``) or estimate it.
    equal_recollection : bool
        Share one recollection parameter between target and lure sources
        (``True``) or estimate both.
    minimizer : callable, optional
        Local minimizer ``(objective, x0, jac) -> result`` with ``.x`` and
        ``.fun``; defaults to :func:`bfgs_minimizer`. Must be picklable when
        ``n_workers > 1``.
    name : str, optional
        Data set name.

    Raises
    ------
    InputMismatchError
        If *false_alarms* and *hit* differ in length.

    Example
    -------
    .. code-block:: python

        est = SourceROCEstimator([0.1, 0.3, 0.6], [0.4, 0.7, 0.9])
        result = est.fit(iterations=200, seed=1)
        result.display()
        df = result.to_frame()
    """

    def __init__(
        self,
        false_alarms,
        hit,
        *,
        equal_variance: bool = True,
        equal_recollection: bool = False,
        minimizer: Callable | None = None,
        name: str = "source ROC",
    ):
        self.data = SourceROCData(false_alarms, hit, name=name)
        self.variant = ModelVariant.from_flags(equal_variance, equal_recollection)
        self.model = SourceROCModel(self.data.false_alarms, self.data.hit, self.variant)
        self.minimizer = minimizer if minimizer is not None else bfgs_minimizer


    @staticmethod
    def _resolve_workers(n_workers: int | None, iterations: int) -> int:
        if n_workers is None or n_workers == 0:
            n_workers = os.cpu_count() or 1
        n_workers = int(n_workers)
        if n_workers < 0:
            raise ValueError(f"n_workers must be >= 0, got {n_workers}")
        return max(1, min(n_workers, iterations))


    def _run_sequential(self, seeds, progress) -> list[AttemptRecord]:
        records = []
        total = len(seeds)
        for idx, seed_seq in enumerate(seeds):
            records.append(_run_attempt(self.model, self.minimizer, idx, seed_seq))
            if progress is not None:
                progress(idx + 1, total)
        return records


    def _run_parallel(self, seeds, n_workers, progress) -> list[AttemptRecord]:
        records = []
        total = len(seeds)
        with ProcessPoolExecutor(max_workers=n_workers) as executor:
            futures = {
                executor.submit(_run_attempt, self.model, self.minimizer, idx, seed_seq): idx
                for idx, seed_seq in enumerate(seeds)
            }
            for done, future in enumerate(as_completed(futures), start=1):
                idx = futures[future]
                try:
                    records.append(future.result())
                except Exception as exc:
                    records.append(
                        AttemptRecord(index=idx, x0=None, message=f"{type(exc).__name__}: {exc}")
                    )
                if progress is not None:
                    progress(done, total)

        records.sort(key=lambda r: r.index)
        return records


    def fit(
        self,
        iterations: int = DEFAULT_ITERATIONS,
        *,
        seed: Any = None,
        n_workers: int | None = 1,
        progress: Callable[[int, int], None] | None = None,
    ) -> SourceFitResult:
        """Run the multi-start search and return the minimum-SSE fit.

        Parameters
        ----------
        iterations : int
            Number of randomized-start attempts. High values help avoid
            local minima.
        seed : int or np.random.SeedSequence, optional
            Global seed; attempt *i* uses the *i*-th spawned child sequence,
            so results do not depend on execution order or worker count.
        n_workers : int, optional
            Worker processes. ``1`` (default) runs in-process, ``0`` or
            ``None`` uses all CPUs.
        progress : callable, optional
            Observer called as ``progress(completed, total)`` after every
            attempt, e.g. :class:`~dpsdfit.utils.progress.ProgressBar`.

        Returns
        -------
        SourceFitResult

        Raises
        ------
        NoSuccessfulFitError
            If every attempt failed.
        """
        iterations = int(iterations)
        if iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {iterations}")
        n_workers = self._resolve_workers(n_workers, iterations)

        seeds = _attempt_seeds(seed, iterations)

        logger.info(
            "fitting %s (%d criteria) with %d attempts on %d worker(s)",
            self.variant.name, self.data.n_criteria, iterations, n_workers,
        )

        if n_workers == 1:
            records = self._run_sequential(seeds, progress)
        else:
            records = self._run_parallel(seeds, n_workers, progress)

        for rec in records:
            if rec.success:
                logger.debug("attempt %d: sse=%.6g (%s)", rec.index, rec.sse, rec.message)
            else:
                logger.warning("attempt %d failed: %s", rec.index, rec.message)

        successful = [r for r in records if r.success]
        if not successful:
            raise NoSuccessfulFitError(iterations, records[-1].message)

        # min() keeps the first of equal values, i.e. the lowest attempt index
        best = min(successful, key=lambda r: r.sse)

        x_best = best.x.copy()
        x_best.setflags(write=False)

        result = SourceFitResult(
            variant=self.variant,
            parameters=self.variant.decode(x_best, self.data.n_criteria),
            sse=float(best.sse),
            x=x_best,
            n_attempts=iterations,
            n_failed=iterations - len(successful),
            best_index=best.index,
        )
        logger.info(
            "best SSE %.6g from attempt %d (%d of %d attempts failed)",
            result.sse, result.best_index, result.n_failed, iterations,
        )
        return result


# ENTRY POINT ===========================================================================

def fit_dpsd_roc_source(
    false_alarms,
    hit,
    iterations: int = DEFAULT_ITERATIONS,
    equal_variance: bool = True,
    equal_recollection: bool = False,
    *,
    seed: Any = None,
    n_workers: int | None = 1,
    progress: Callable[[int, int], None] | None = None,
    minimizer: Callable | None = None,
) -> pd.DataFrame:
    """Estimate recollection and familiarity from source ROC data.

    Fits the Dual Process Signal Detection model to cumulative source hit and
    false alarm rates by minimizing the total squared prediction error with
    BFGS from ``iterations`` random starting points.

    Returns
    -------
    pandas.DataFrame
        One row with columns ``recollection_target``, ``recollection_lure``,
        ``familiarity``, ``sd_target``, ``c1..ck`` and ``SSE``.
    """
    est = SourceROCEstimator(
        false_alarms,
        hit,
        equal_variance=equal_variance,
        equal_recollection=equal_recollection,
        minimizer=minimizer,
    )
    return est.fit(iterations, seed=seed, n_workers=n_workers, progress=progress).to_frame()
