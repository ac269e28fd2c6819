from importlib import metadata

try:
    __version__ = metadata.version("dpsdfit")
except Exception:
    __version__ = "unknown"

from .errors import DPSDFitError, InputMismatchError, NoSuccessfulFitError
from .models import ModelVariant, NaturalParameters, SourceROCModel, evaluate, predict_rates
from .opt import SourceROCData, SourceROCEstimator, SourceFitResult, fit_dpsd_roc_source
from .utils.logger import LoggerManager
from .utils.progress import ProgressBar, ProgressRecorder
