#########################################################################################
##
##                       MULTI-START ESTIMATION PUBLIC API
##                               (opt/__init__.py)
##
#########################################################################################

from .multistart import (
    AttemptRecord,
    SourceFitResult,
    SourceROCEstimator,
    bfgs_minimizer,
    fit_dpsd_roc_source,
)
from .source_roc_data import SourceROCData
