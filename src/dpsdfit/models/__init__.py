#########################################################################################
##
##                          DPSD SOURCE MODEL PUBLIC API
##                              (models/__init__.py)
##
#########################################################################################

from .variants import ModelVariant, NaturalParameters
from .evaluator import SourceROCModel, evaluate, predict_rates
