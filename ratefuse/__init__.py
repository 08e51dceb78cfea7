from ratefuse.conf import JobConf
from ratefuse.classifier import RecordClassifier
from ratefuse.predictor import RatingPredictor
from ratefuse.aggregator import RatingAggregator, PredictionParser
from ratefuse.job import PredictorJob, AggregatorJob, run_pipeline
from ratefuse.utils import RatefuseError, ParseError, ConfigurationError

__version__ = '0.1.0'
