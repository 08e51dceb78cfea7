from ratefuse.accumulator import Counters
from ratefuse.record import CORRELATION, STAT, RATING, NO_STD_DEV, PredictedRating
from ratefuse.transform import modify_correlation
from ratefuse.utils.log import get_logger

logger = get_logger(__name__)

COUNTER_GROUP = 'Predictor'

COLLECTING = 'collecting'
EMITTING = 'emitting'


class ItemGroupState(object):
    """ Everything known about one item while its group streams by.

        COLLECTING holds until the first rating, then EMITTING. Correlations
        and the stat are expected only while COLLECTING; one that shows up
        later is still kept, but the ratings already consumed never see it.
    """
    __slots__ = ('correlations', 'std_dev', 'phase', 'late_records')

    def __init__(self):
        self.correlations = []
        self.std_dev = NO_STD_DEV
        self.phase = COLLECTING
        self.late_records = 0


class RatingPredictor(object):
    """ Stage 1 reducer.

        Input is the group of one item, ordered correlations, stat, ratings.
        Every rating of the item is propagated through every correlation of
        the item to the correlated item.
    """

    def __init__(self, conf):
        self.linear = conf.correlation_linear
        self.scale = conf.correlation_linear_scale
        self.max_rating = conf.max_rating
        self.modifier = conf.correlation_modifier

    def reduce(self, item_id, records, counters=None):
        if counters is None:
            counters = Counters()

        state = ItemGroupState()
        for record in records:
            tag = record.tag
            if tag == RATING:
                state.phase = EMITTING
                for p in self.predict(record, state, counters):
                    yield p
                continue

            if state.phase == EMITTING:
                self._late_record(item_id, record, state, counters)
            if tag == CORRELATION:
                state.correlations.append(record)
                counters.incr(COUNTER_GROUP, 'Rating correlation')
            elif tag == STAT:
                state.std_dev = record.std_dev
            else:
                raise ValueError("unknown record %r for item %s" % (record, item_id))

        if state.late_records:
            logger.debug("item %s: %d records after the first rating",
                         item_id, state.late_records)

    def predict(self, rating, state, counters):
        # no correlation, nothing to propagate
        for corr in state.correlations:
            counters.incr(COUNTER_GROUP, 'User rating')
            coeff = modify_correlation(corr.correlation, self.scale, self.modifier)
            predicted = self.predicted_rating(rating.rating, coeff)
            if predicted > 0:
                counters.incr(COUNTER_GROUP, 'Rating correlation')
                yield PredictedRating(rating.user_id, corr.other_item, predicted,
                                      corr.weight, coeff, state.std_dev)

    def predicted_rating(self, rating, coeff):
        if self.linear:
            return (rating * coeff) // self.max_rating
        return (rating * self.scale + coeff) // self.max_rating

    def _late_record(self, item_id, record, state, counters):
        if not state.late_records:
            logger.warning("item %s: %s record after ratings, ratings before it "
                           "are not predicted with it", item_id, type(record).__name__)
        state.late_records += 1
        counters.incr(COUNTER_GROUP, 'Out of order record')
