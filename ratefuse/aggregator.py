from ratefuse.accumulator import Counters
from ratefuse.record import PredictedRating, UtilityScore
from ratefuse.transform import inv_norm_std_dev, median
from ratefuse.utils import ParseError, ConfigurationError
from ratefuse.utils.log import get_logger

logger = get_logger(__name__)

COUNTER_GROUP = 'Aggregator'

CORR_LENGTH_WEIGHTED = 'corr_length'
STD_DEV_WEIGHTED = 'std_dev'
PLAIN = 'plain'


class PredictionParser(object):
    """ Stage 2 mapper: a predictor output row back to ((user, item), PredictedRating).
    """

    def __init__(self, conf):
        self.field_delim = conf.field_delim

    def parse(self, line, name=None):
        line = line.rstrip('\r\n')
        if not line.strip():
            return None
        items = line.split(self.field_delim)
        if len(items) != 6:
            raise ParseError("predicted rating needs 6 fields, got %d" % len(items),
                             name, line)
        user_id, item_id = items[0].strip(), items[1].strip()
        if not user_id or not item_id:
            raise ParseError("empty user or item id", name, line)
        try:
            values = [int(v) for v in items[2:]]
        except ValueError:
            raise ParseError("non numeric predicted rating field", name, line)
        p = PredictedRating(user_id, item_id, *values)
        return (user_id, item_id), p


class AverageState(object):
    __slots__ = ('total', 'weight', 'count', 'max_rating')

    def __init__(self, max_rating):
        self.total = 0
        self.weight = 0
        self.count = 0
        self.max_rating = max_rating


class RatingAggregator(object):
    """ Stage 2 reducer, fuses all predictions of one (user, item).

        rating.aggregator.average selects a weighted average, otherwise the
        median. The average weight is the first enabled of
        corr.length.weighted.average (co-rating count),
        input.rating.stdDev.weighted.average (inverse std dev of the source
        rating) and a plain average.
    """

    def __init__(self, conf):
        self.use_average = conf.rating_aggregator_average
        if conf.corr_length_weighted_average:
            self.weighting = CORR_LENGTH_WEIGHTED
        elif conf.input_rating_std_dev_weighted_average:
            self.weighting = STD_DEV_WEIGHTED
        else:
            self.weighting = PLAIN
        self.scale = conf.correlation_scale
        self.max_rating = conf.max_rating

    def reduce(self, key, predictions, counters=None):
        if counters is None:
            counters = Counters()

        user_id, item_id = key
        if self.use_average:
            state = self.accumulate(predictions)
            if state.weight == 0:
                logger.warning("user %s item %s: total weight is zero over %d predictions, skipped",
                               user_id, item_id, state.count)
                counters.incr(COUNTER_GROUP, 'Zero weight')
                return
            score = (state.total * self.scale) // state.weight
            count = state.count
        else:
            ratings = [p.rating for p in predictions]
            score = median(ratings) * self.scale
            count = len(ratings)

        counters.incr(COUNTER_GROUP, 'Utility score')
        yield UtilityScore(user_id, item_id, score, count)

    def accumulate(self, predictions):
        state = AverageState(self.max_rating)
        for p in predictions:
            if p.rating > state.max_rating:
                state.max_rating = p.rating
            w = self.weight(p, state.max_rating)
            state.total += p.rating * w
            state.weight += w
            state.count += 1
        return state

    def weight(self, prediction, max_rating):
        if self.weighting == CORR_LENGTH_WEIGHTED:
            return prediction.weight
        if self.weighting == STD_DEV_WEIGHTED:
            if not prediction.has_std_dev:
                raise ConfigurationError(
                    "No rating std dev found: std dev weighted average requested "
                    "but user %s item %s has none" % (prediction.user_id, prediction.item_id))
            return inv_norm_std_dev(prediction.std_dev, max_rating)
        return 1
