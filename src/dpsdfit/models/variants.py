#########################################################################################
##
##                          DPSD SOURCE MODEL VARIANTS
##                              (models/variants.py)
##
#########################################################################################

# IMPORTS ===============================================================================

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import numpy as np
from scipy.special import expit, logit
from scipy.stats import truncnorm


# CONSTANTS =============================================================================

# log-space coordinates are clamped before exp() so decodes stay finite
LOG_CLAMP = 700.0

RECOLLECTION_START_RANGE = (0.2, 0.7)
CRITERION_START_RANGE = (-5.0, 5.0)


# TRANSFORMS ============================================================================

def to_probability(z):
    """Logistic transform ``exp(z) / (1 + exp(z))``, overflow-safe."""
    return expit(z)


def to_positive(z):
    """Exponential transform with the argument clamped to ``±LOG_CLAMP``."""
    return np.exp(np.clip(z, -LOG_CLAMP, LOG_CLAMP))


def sample_truncated_normal(rng: np.random.Generator, mean: float, sd: float, lower: float = 0.0) -> float:
    """Draw one value from ``N(mean, sd)`` truncated below at *lower*."""
    a = (lower - mean) / sd
    return float(truncnorm.rvs(a, np.inf, loc=mean, scale=sd, random_state=rng))


# NATURAL PARAMETERS ====================================================================

@dataclass(frozen=True)
class NaturalParameters:
    """DPSD source model parameters in their natural (bounded) space.

    Parameters
    ----------
    recollection_target : float
        Probability of recollecting a target-source item, in [0, 1].
    recollection_lure : float
        Probability of recollecting a lure-source item, in [0, 1].
    familiarity : float
        Distance (d') between the target and lure familiarity distributions, > 0.
    sd_target : float
        Standard deviation of the target distribution, > 0 (1 under equal variance).
    criteria : tuple[float, ...]
        Response criteria, one per cumulative rate.
    """

    recollection_target: float
    recollection_lure: float
    familiarity: float
    sd_target: float
    criteria: tuple


    def __post_init__(self) -> None:
        object.__setattr__(self, "criteria", tuple(float(c) for c in self.criteria))


    @property
    def n_criteria(self) -> int:
        return len(self.criteria)


    def as_dict(self) -> dict:
        """Labelled columns ``recollection_target ... c1..ck``."""
        out = {
            "recollection_target": float(self.recollection_target),
            "recollection_lure": float(self.recollection_lure),
            "familiarity": float(self.familiarity),
            "sd_target": float(self.sd_target),
        }
        for i, c in enumerate(self.criteria, start=1):
            out[f"c{i}"] = c
        return out


# VARIANTS ==============================================================================

class ModelVariant(Enum):
    """The four parameterizations of the DPSD source model.

    Each member carries its two configuration flags and the (mean, sd) of the
    truncated-normal distributions used to draw familiarity and target
    standard deviation starting values. ``sd_start`` is ``None`` when the
    target standard deviation is fixed at 1.

    The internal (optimizer-space) vector layout is::

        [logit(rt), logit(rl)?, log(d'), log(sd_target)?, c1 ... ck]

    where ``logit(rl)`` is present only with separate recollection and
    ``log(sd_target)`` only with free variance.
    """

    SEPARATE_RECOLLECTION_EQUAL_VAR = (True, False, (0.4, 0.1), None)
    SEPARATE_RECOLLECTION_FREE_VAR = (False, False, (0.4, 0.4), (1.0, 0.5))
    EQUAL_RECOLLECTION_EQUAL_VAR = (True, True, (0.4, 0.1), None)
    EQUAL_RECOLLECTION_FREE_VAR = (False, True, (0.4, 0.4), (1.0, 0.4))

    def __init__(self, equal_variance, equal_recollection, familiarity_start, sd_start):
        self.equal_variance = equal_variance
        self.equal_recollection = equal_recollection
        self.familiarity_start = familiarity_start
        self.sd_start = sd_start


    @classmethod
    def from_flags(cls, equal_variance: bool = True, equal_recollection: bool = False) -> "ModelVariant":
        """Select the variant matching the two configuration flags."""
        for variant in cls:
            if variant.equal_variance == bool(equal_variance) and \
                    variant.equal_recollection == bool(equal_recollection):
                return variant
        raise ValueError(
            f"no variant for equal_variance={equal_variance}, "
            f"equal_recollection={equal_recollection}"
        )


    # LAYOUT ----------------------------------------------------------------------------

    @property
    def n_model_params(self) -> int:
        """Number of non-criterion entries at the head of the internal vector."""
        return 2 + (not self.equal_recollection) + (not self.equal_variance)


    def n_params(self, n_criteria: int) -> int:
        return self.n_model_params + int(n_criteria)


    def parameter_names(self, n_criteria: int) -> list[str]:
        names = ["logit_recollection_target"]
        if not self.equal_recollection:
            names.append("logit_recollection_lure")
        names.append("log_familiarity")
        if not self.equal_variance:
            names.append("log_sd_target")
        names.extend(f"c{i}" for i in range(1, int(n_criteria) + 1))
        return names


    def _check_length(self, x: np.ndarray, n_criteria: int) -> None:
        expected = self.n_params(n_criteria)
        if x.size != expected:
            raise ValueError(
                f"{self.name}: expected internal vector of length {expected}, got {x.size}"
            )


    # DECODE / ENCODE -------------------------------------------------------------------

    def decode_arrays(self, x: np.ndarray, n_criteria: int):
        """Split *x* into ``(rt, rl, d, sd, criteria)`` in natural space.

        Returns plain floats plus a criteria array; used on the hot path of
        the objective where building a dataclass is wasted work.
        """
        x = np.asarray(x, dtype=float).reshape(-1)
        self._check_length(x, n_criteria)

        i = 0
        rt = to_probability(x[i])
        i += 1
        if self.equal_recollection:
            rl = rt
        else:
            rl = to_probability(x[i])
            i += 1
        d = to_positive(x[i])
        i += 1
        if self.equal_variance:
            sd = 1.0
        else:
            sd = to_positive(x[i])
            i += 1
        return float(rt), float(rl), float(d), float(sd), x[i:]


    def decode(self, x, n_criteria: int) -> NaturalParameters:
        """Map an internal vector to :class:`NaturalParameters`."""
        rt, rl, d, sd, crit = self.decode_arrays(x, n_criteria)
        return NaturalParameters(
            recollection_target=rt,
            recollection_lure=rl,
            familiarity=d,
            sd_target=sd,
            criteria=tuple(crit),
        )


    def encode(self, params: NaturalParameters) -> np.ndarray:
        """Map :class:`NaturalParameters` to the internal vector of this variant.

        Under equal recollection only ``recollection_target`` is used; under
        equal variance ``sd_target`` is ignored.
        """
        head = [logit(params.recollection_target)]
        if not self.equal_recollection:
            head.append(logit(params.recollection_lure))
        head.append(np.log(params.familiarity))
        if not self.equal_variance:
            head.append(np.log(params.sd_target))
        return np.concatenate([np.asarray(head, dtype=float),
                               np.asarray(params.criteria, dtype=float)])


    # STARTING VALUES -------------------------------------------------------------------

    def sample_start(self, rng: np.random.Generator, n_criteria: int) -> np.ndarray:
        """Draw a random internal starting vector for one multi-start attempt.

        One recollection rate is drawn and used for the target and (when
        estimated separately) the lure slot alike.
        """
        r_start = rng.uniform(*RECOLLECTION_START_RANGE)
        z_r = np.log(r_start / (1.0 - r_start))

        head = [z_r]
        if not self.equal_recollection:
            head.append(z_r)

        head.append(np.log(sample_truncated_normal(rng, *self.familiarity_start)))
        if not self.equal_variance:
            head.append(np.log(sample_truncated_normal(rng, *self.sd_start)))

        criteria = rng.uniform(*CRITERION_START_RANGE, size=int(n_criteria))
        return np.concatenate([np.asarray(head, dtype=float), criteria])
