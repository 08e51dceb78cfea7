import sys
import os
import pickle
import tempfile
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from ratefuse.conf import JobConf, load_properties
from ratefuse.utils import ConfigurationError


class TestJobConf(unittest.TestCase):

    def test_defaults(self):
        conf = JobConf()
        self.assertEqual(conf.field_delim, ',')
        self.assertEqual(conf.sub_field_delim, ':')
        self.assertEqual(conf.rating_file_prefix, 'rating')
        self.assertEqual(conf.rating_stat_file_prefix, 'stat')
        self.assertTrue(conf.correlation_linear)
        self.assertEqual(conf.correlation_linear_scale, 1000)
        self.assertEqual(conf.correlation_scale, 1000)
        self.assertEqual(conf.correlation_modifier, 1.0)
        self.assertEqual(conf.max_rating, 100)
        self.assertTrue(conf.corr_length_weighted_average)
        self.assertTrue(conf.input_rating_std_dev_weighted_average)
        self.assertTrue(conf.rating_aggregator_average)
        self.assertEqual(conf.num_reducer, 1)
        self.assertFalse(conf.skip_bad_records)

    def test_from_properties(self):
        conf = JobConf.from_properties({
            'field.delim': '\t',
            'correlation.linear': 'false',
            'max.rating': '5',
            'correlation.modifier': '2',
            'input.rating.stdDev.weighted.average': 'TRUE',
        })
        self.assertEqual(conf.field_delim, '\t')
        self.assertFalse(conf.correlation_linear)
        self.assertEqual(conf.max_rating, 5)
        self.assertEqual(conf.correlation_modifier, 2.0)
        self.assertTrue(conf.input_rating_std_dev_weighted_average)
        self.assertEqual(conf.get('max.rating'), 5)

    def test_bad_values(self):
        for props in ({'max.rating': 'ten'}, {'correlation.linear': 'yes'},
                      {'num.reducer': '0'}, {'max.rating': '0'},
                      {'correlation.scale': '-1'}, {'field.delim': ''},
                      {'max.rating': 1.5}):
            self.assertRaises(ConfigurationError, JobConf.from_properties, props)

    def test_bad_modifier(self):
        for value in ('0', '-1', 'nan', 'inf', '-inf'):
            self.assertRaises(ConfigurationError, JobConf.from_properties,
                              {'correlation.modifier': value})
        self.assertRaises(ConfigurationError, JobConf().dup, correlation_modifier=-0.5)
        self.assertEqual(JobConf(correlation_modifier='0.5').correlation_modifier, 0.5)

    def test_unknown(self):
        self.assertRaises(ConfigurationError, JobConf.from_properties, {'max.ratings': '1'})
        self.assertRaises(ConfigurationError, JobConf, max_ratings=1)
        self.assertRaises(ConfigurationError, JobConf().get, 'nope')
        self.assertRaises(TypeError, JobConf, {'max.rating': 1})

    def test_read_only(self):
        conf = JobConf()
        self.assertRaises(AttributeError, setattr, conf, 'max_rating', 5)
        conf2 = conf.dup(max_rating=5)
        self.assertEqual(conf.max_rating, 100)
        self.assertEqual(conf2.max_rating, 5)
        self.assertNotEqual(conf, conf2)
        self.assertEqual(conf, JobConf())

    def test_base(self):
        base = JobConf(max_rating=5)
        conf = JobConf.from_properties({'num.reducer': '3'}, base)
        self.assertEqual((conf.max_rating, conf.num_reducer), (5, 3))

    def test_pickle(self):
        conf = JobConf(max_rating=5, correlation_linear=False)
        self.assertEqual(pickle.loads(pickle.dumps(conf, -1)), conf)

    def test_properties_roundtrip(self):
        conf = JobConf(max_rating=5)
        self.assertEqual(conf.to_properties()['max.rating'], 5)
        self.assertEqual(JobConf.from_properties(conf.to_properties()), conf)


class TestLoadProperties(unittest.TestCase):

    def test_load(self):
        with tempfile.NamedTemporaryFile('w', suffix='.properties', delete=False) as f:
            f.write("# job\nmax.rating = 5\n\nfield.delim=;\ncorrelation.linear=false\n")
        try:
            props = load_properties(f.name)
        finally:
            os.remove(f.name)
        self.assertEqual(props, {'max.rating': '5', 'field.delim': ';',
                                 'correlation.linear': 'false'})

    def test_bad_line(self):
        with tempfile.NamedTemporaryFile('w', delete=False) as f:
            f.write("max.rating\n")
        try:
            self.assertRaises(ConfigurationError, load_properties, f.name)
        finally:
            os.remove(f.name)


if __name__ == "__main__":
    unittest.main()
