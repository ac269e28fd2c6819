#########################################################################################
##
##               dpsdfit example: recollection and familiarity from source ROC
##
##  Model:   Dual Process Signal Detection (DPSD) for source memory
##  Fit:     recollection (target / lure), familiarity d', criteria
##
##  Compares the equal-variance / separate-recollection default with the
##  free-variance variant on the same cumulative rates.
##
#########################################################################################

# IMPORTS ===============================================================================

import matplotlib.pyplot as plt

from dpsdfit import (
    LoggerManager,
    ProgressBar,
    SourceROCEstimator,
    fit_dpsd_roc_source,
)


# DATA ==================================================================================

# cumulative source false alarm and hit rates, strictest criterion first
false_alarms = [0.05, 0.12, 0.25, 0.41, 0.63]
hit = [0.31, 0.48, 0.64, 0.78, 0.90]


# Run Example ===========================================================================

if __name__ == '__main__':

    LoggerManager().configure(level="INFO")

    # Table output, as a single call
    table = fit_dpsd_roc_source(false_alarms, hit, iterations=200, seed=1)
    print(table.T)

    # Estimator API: free target variance, parallel attempts
    est = SourceROCEstimator(false_alarms, hit, equal_variance=False, name="study 1")
    result = est.fit(200, seed=1, n_workers=0, progress=ProgressBar())
    result.display()

    est.data.plot(fit=result)
    plt.show()
