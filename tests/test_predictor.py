import sys
import os
import unittest
import logging

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from ratefuse.accumulator import Counters
from ratefuse.conf import JobConf
from ratefuse.predictor import RatingPredictor, ItemGroupState, COLLECTING
from ratefuse.record import Correlation, Stat, Rating, PredictedRating, NO_STD_DEV

logging.getLogger('ratefuse').setLevel(logging.ERROR)


class TestRatingPredictor(unittest.TestCase):

    def predict(self, records, conf=None, counters=None):
        predictor = RatingPredictor(conf or JobConf())
        return list(predictor.reduce('A', records, counters))

    def test_exact_formula(self):
        res = self.predict([Correlation('B', 500, 10), Rating('u1', 40)])
        self.assertEqual(res, [PredictedRating('u1', 'B', 200, 10, 500, NO_STD_DEV)])

    def test_every_correlation_every_rating(self):
        res = self.predict([
            Correlation('B', 500, 10),
            Correlation('C', 800, 5),
            Stat(12),
            Rating('u1', 40),
            Rating('u2', 80),
        ])
        self.assertEqual(res, [
            PredictedRating('u1', 'B', 200, 10, 500, 12),
            PredictedRating('u1', 'C', 320, 5, 800, 12),
            PredictedRating('u2', 'B', 400, 10, 500, 12),
            PredictedRating('u2', 'C', 640, 5, 800, 12),
        ])

    def test_no_correlation_no_prediction(self):
        self.assertEqual(self.predict([Stat(3), Rating('u1', 40), Rating('u2', 50)]), [])

    def test_only_correlations(self):
        self.assertEqual(self.predict([Correlation('B', 500, 10)]), [])

    def test_non_positive_dropped(self):
        res = self.predict([
            Correlation('B', -500, 10),
            Correlation('C', 0, 10),
            Correlation('D', 2, 10),
            Correlation('E', 3, 10),
            Rating('u1', 40),
        ])
        # 40 * 2 // 100 == 0, 40 * 3 // 100 == 1
        self.assertEqual(res, [PredictedRating('u1', 'E', 1, 10, 3, NO_STD_DEV)])

    def test_non_linear(self):
        conf = JobConf(correlation_linear=False)
        res = self.predict([Correlation('B', -200, 4), Rating('u1', 3)], conf)
        # (3 * 1000 - 200) // 100
        self.assertEqual(res, [PredictedRating('u1', 'B', 28, 4, -200, NO_STD_DEV)])

    def test_modifier_applied(self):
        conf = JobConf(correlation_modifier=2.0)
        res = self.predict([Correlation('B', 500, 10), Rating('u1', 40)], conf)
        self.assertEqual(res, [PredictedRating('u1', 'B', 100, 10, 250, NO_STD_DEV)])

    def test_monotonic(self):
        predictor = RatingPredictor(JobConf())
        prev = None
        for rating in range(0, 101, 7):
            p = predictor.predicted_rating(rating, 450)
            if prev is not None:
                self.assertTrue(p >= prev)
            prev = p
        prev = None
        for corr in range(1, 1001, 37):
            p = predictor.predicted_rating(60, corr)
            if prev is not None:
                self.assertTrue(p >= prev)
            prev = p

    def test_late_correlation_misses_earlier_rating(self):
        counters = Counters()
        res = self.predict([Rating('u1', 40), Correlation('B', 500, 10)], counters=counters)
        self.assertEqual(res, [])
        self.assertEqual(counters.get('Predictor', 'Out of order record'), 1)

    def test_late_correlation_seen_by_later_rating(self):
        res = self.predict([
            Correlation('B', 500, 10),
            Rating('u1', 40),
            Correlation('C', 800, 5),
            Rating('u2', 50),
        ])
        self.assertEqual(res, [
            PredictedRating('u1', 'B', 200, 10, 500, NO_STD_DEV),
            PredictedRating('u2', 'B', 250, 10, 500, NO_STD_DEV),
            PredictedRating('u2', 'C', 400, 5, 800, NO_STD_DEV),
        ])

    def test_state_fresh_per_group(self):
        predictor = RatingPredictor(JobConf())
        first = list(predictor.reduce('A', [Correlation('B', 500, 10), Stat(7), Rating('u1', 40)]))
        second = list(predictor.reduce('C', [Rating('u1', 40)]))
        self.assertEqual(len(first), 1)
        self.assertEqual(second, [])

    def test_counters(self):
        counters = Counters()
        self.predict([Correlation('B', 500, 10), Correlation('C', -5, 1), Rating('u1', 40)],
                     counters=counters)
        self.assertEqual(counters.get('Predictor', 'User rating'), 2)
        # two collected, one emitted
        self.assertEqual(counters.get('Predictor', 'Rating correlation'), 3)

    def test_initial_state(self):
        state = ItemGroupState()
        self.assertEqual(state.phase, COLLECTING)
        self.assertEqual(state.correlations, [])
        self.assertEqual(state.std_dev, NO_STD_DEV)


if __name__ == "__main__":
    unittest.main()
