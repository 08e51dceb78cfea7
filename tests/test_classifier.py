import sys
import os
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from ratefuse.conf import JobConf
from ratefuse.classifier import (
    RecordClassifier, source_kind,
    RATING_SOURCE, STAT_SOURCE, CORRELATION_SOURCE,
)
from ratefuse.record import Correlation, Stat, Rating, CORRELATION, STAT, RATING
from ratefuse.utils import ParseError


class TestSourceKind(unittest.TestCase):

    def test_prefix(self):
        conf = JobConf()
        self.assertEqual(source_kind('/data/in/rating-001.txt', conf), RATING_SOURCE)
        self.assertEqual(source_kind('/data/in/stat.txt', conf), STAT_SOURCE)
        self.assertEqual(source_kind('/data/in/part-00000', conf), CORRELATION_SOURCE)
        # only the base name counts
        self.assertEqual(source_kind('/rating/corr.txt', conf), CORRELATION_SOURCE)

    def test_custom_prefix(self):
        conf = JobConf(rating_file_prefix='r_', rating_stat_file_prefix='s_')
        self.assertEqual(source_kind('r_1', conf), RATING_SOURCE)
        self.assertEqual(source_kind('s_1', conf), STAT_SOURCE)
        self.assertEqual(source_kind('rating.txt', conf), CORRELATION_SOURCE)


class TestClassify(unittest.TestCase):

    def setUp(self):
        self.classifier = RecordClassifier(JobConf())

    def classify(self, line, source):
        return list(self.classifier.classify(line, source))

    def test_rating_line(self):
        recs = self.classify('u1,A:40,B:60\n', RATING_SOURCE)
        self.assertEqual([r.key for r in recs], [('A', RATING), ('B', RATING)])
        self.assertEqual([r.payload for r in recs], [Rating('u1', 40), Rating('u1', 60)])

    def test_rating_line_without_ratings(self):
        self.assertEqual(self.classify('u1', RATING_SOURCE), [])

    def test_stat_line(self):
        recs = self.classify('A,55,12', STAT_SOURCE)
        self.assertEqual(len(recs), 1)
        self.assertEqual(recs[0].key, ('A', STAT))
        self.assertEqual(recs[0].payload, Stat(12))
        self.assertEqual(recs[0].type_tag, STAT)

    def test_correlation_both_directions(self):
        recs = self.classify('A,B,500,10', CORRELATION_SOURCE)
        self.assertEqual(len(recs), 2)
        by_key = dict((r.key, r.payload) for r in recs)
        self.assertEqual(by_key[('A', CORRELATION)], Correlation('B', 500, 10))
        self.assertEqual(by_key[('B', CORRELATION)], Correlation('A', 500, 10))

    def test_distance_correlation_negated(self):
        classifier = RecordClassifier(JobConf(correlation_linear=False))
        recs = list(classifier.classify('A,B,300,7', CORRELATION_SOURCE))
        self.assertEqual([r.payload.correlation for r in recs], [-300, -300])
        recs = list(classifier.classify('A,B,-300,7', CORRELATION_SOURCE))
        self.assertEqual([r.payload.correlation for r in recs], [300, 300])

    def test_tags_order_correlation_first(self):
        self.assertTrue(Correlation.TAG < Stat.TAG < Rating.TAG)
        self.assertEqual(Correlation('B', 1, 1).tag, CORRELATION)

    def test_blank_line(self):
        self.assertEqual(self.classify('\n', RATING_SOURCE), [])
        self.assertEqual(self.classify('   ', CORRELATION_SOURCE), [])

    def test_custom_delims(self):
        classifier = RecordClassifier(JobConf(field_delim='\t', sub_field_delim='='))
        recs = list(classifier.classify('u1\tA=4', RATING_SOURCE))
        self.assertEqual(recs[0].payload, Rating('u1', 4))

    def test_bad_lines(self):
        bad = [
            ('u1,A40', RATING_SOURCE),
            ('u1,A:4:5', RATING_SOURCE),
            ('u1,A:x', RATING_SOURCE),
            (',A:4', RATING_SOURCE),
            ('A,1', STAT_SOURCE),
            ('A,1,std', STAT_SOURCE),
            ('A,B,500', CORRELATION_SOURCE),
            ('A,B,0.5,10', CORRELATION_SOURCE),
            ('A,,500,10', CORRELATION_SOURCE),
        ]
        for line, source in bad:
            self.assertRaises(ParseError, self.classify, line, source)

    def test_parse_error_message(self):
        try:
            list(self.classifier.classify('A,B,x,1', CORRELATION_SOURCE, 'corr.txt'))
        except ParseError as e:
            self.assertEqual(e.source, 'corr.txt')
            self.assertEqual(e.line, 'A,B,x,1')
            self.assertTrue('corr.txt' in str(e))
        else:
            self.fail('ParseError not raised')


if __name__ == "__main__":
    unittest.main()
