#########################################################################################
##
##                       DPSD SOURCE MODEL EVALUATOR (SSE OBJECTIVE)
##                              (models/evaluator.py)
##
#########################################################################################

# IMPORTS ===============================================================================

from __future__ import annotations

import numpy as np
from scipy.special import ndtr

from ..utils.logger import LoggerManager
from .variants import LOG_CLAMP, ModelVariant, NaturalParameters


logger = LoggerManager().get_logger(__name__)


# CONSTANTS =============================================================================

_INV_SQRT_2PI = 1.0 / np.sqrt(2.0 * np.pi)


# HELPERS ===============================================================================

def _normal_pdf(z):
    return _INV_SQRT_2PI * np.exp(-0.5 * z * z)


def _rates(rt, rl, d, sd, criteria):
    """Predicted cumulative (false alarm, hit) rates and standardized criteria."""
    u = (criteria + 0.5 * d) / sd
    v = criteria - 0.5 * d
    hit = (1.0 - rt) * ndtr(u) + rt
    fa = (1.0 - rl) * ndtr(v)
    return fa, hit, u, v


# PUBLIC API ============================================================================

def predict_rates(params: NaturalParameters) -> tuple[np.ndarray, np.ndarray]:
    """Model-implied cumulative false alarm and hit rates.

    hit(c) = (1 - rt) * Phi(c; -d'/2, sd_target) + rt
    fa(c)  = (1 - rl) * Phi(c; +d'/2, 1)

    Returns
    -------
    (false_alarms, hit) : tuple of np.ndarray
    """
    criteria = np.asarray(params.criteria, dtype=float)
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        fa, hit, _, _ = _rates(
            params.recollection_target,
            params.recollection_lure,
            params.familiarity,
            params.sd_target,
            criteria,
        )
    return fa, hit


def evaluate(x, false_alarms, hit, variant: ModelVariant) -> float:
    """Total squared prediction error of internal vector *x* for *variant*.

    Non-finite results are reported as ``inf`` so that callers can compare
    objective values safely.
    """
    fa_obs = np.asarray(false_alarms, dtype=float)
    hit_obs = np.asarray(hit, dtype=float)
    rt, rl, d, sd, crit = variant.decode_arrays(x, fa_obs.size)

    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        fa_pred, hit_pred, _, _ = _rates(rt, rl, d, sd, crit)
        total = float(np.sum((hit_obs - hit_pred) ** 2) + np.sum((fa_obs - fa_pred) ** 2))

    return total if np.isfinite(total) else np.inf


# MODEL =================================================================================

class SourceROCModel:
    """Observed source ROC data bound to one model variant.

    Provides the objective (:meth:`sse`) and its analytic gradient in
    optimizer space for the local minimizer. Instances hold read-only data
    only, so they can be shared across worker processes.

    Parameters
    ----------
    false_alarms : array_like
        Observed cumulative source false alarm rates.
    hit : array_like
        Observed cumulative source hit rates.
    variant : ModelVariant
        Active parameterization.
    """

    def __init__(self, false_alarms, hit, variant: ModelVariant):
        self.false_alarms = np.asarray(false_alarms, dtype=float)
        self.hit = np.asarray(hit, dtype=float)
        self.variant = variant


    @property
    def n_criteria(self) -> int:
        return self.false_alarms.size


    @property
    def n_params(self) -> int:
        return self.variant.n_params(self.n_criteria)


    def predict(self, x) -> tuple[np.ndarray, np.ndarray]:
        """Predicted (false_alarms, hit) for internal vector *x*."""
        return predict_rates(self.variant.decode(x, self.n_criteria))


    def sse(self, x) -> float:
        return evaluate(x, self.false_alarms, self.hit, self.variant)


    __call__ = sse


    def gradient(self, x) -> np.ndarray:
        """Gradient of :meth:`sse` with respect to the internal vector."""
        x = np.asarray(x, dtype=float).reshape(-1)
        variant = self.variant
        rt, rl, d, sd, crit = variant.decode_arrays(x, self.n_criteria)

        with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
            fa_pred, hit_pred, u, v = _rates(rt, rl, d, sd, crit)
            e_hit = 2.0 * (hit_pred - self.hit)
            e_fa = 2.0 * (fa_pred - self.false_alarms)

            phi_u = _normal_pdf(u)
            phi_v = _normal_pdf(v)
            # phi(u) * u -> 0 as |u| -> inf
            phi_u_u = np.where(np.isfinite(u), phi_u * u, 0.0)

            g_rt = np.sum(e_hit * (1.0 - ndtr(u))) * rt * (1.0 - rt)
            g_rl = np.sum(e_fa * -ndtr(v)) * rl * (1.0 - rl)
            g_d = (np.sum(e_hit * (1.0 - rt) * phi_u * (0.5 / sd))
                   + np.sum(e_fa * (1.0 - rl) * phi_v * -0.5)) * d
            g_c = e_hit * (1.0 - rt) * phi_u / sd + e_fa * (1.0 - rl) * phi_v

        grad = []
        if variant.equal_recollection:
            grad.append(g_rt + g_rl)
        else:
            grad.extend([g_rt, g_rl])

        i_d = 1 if variant.equal_recollection else 2
        grad.append(g_d if abs(x[i_d]) < LOG_CLAMP else 0.0)

        if not variant.equal_variance:
            g_sd = np.sum(e_hit * (1.0 - rt) * -phi_u_u)
            grad.append(g_sd if abs(x[i_d + 1]) < LOG_CLAMP else 0.0)

        out = np.concatenate([np.asarray(grad, dtype=float), np.asarray(g_c, dtype=float)])
        bad = ~np.isfinite(out)
        if not bad.any():
            return out

        # non-finite predictions: the objective is inf here, keep the raw gradient
        if not (np.all(np.isfinite(hit_pred)) and np.all(np.isfinite(fa_pred))):
            return out

        logger.debug(
            "%s: replacing %d non-finite gradient entries with 0 at x=%s",
            variant.name, int(bad.sum()), x,
        )
        return np.where(bad, 0.0, out)
