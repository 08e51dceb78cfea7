import os
import math
from ratefuse.utils import ConfigurationError
from ratefuse.utils.log import get_logger

# override configs use python file at path given by env var $RATEFUSE_CONF, see the end of this file

logger = get_logger(__name__)

# workdir for shuffle spill files
RATEFUSE_WORK_DIR = '/tmp/ratefuse'
if os.path.exists('/dev/shm'):
    RATEFUSE_WORK_DIR = '/dev/shm/ratefuse'

# records per msgpack batch in spill files
SPILL_BATCH_SIZE = 4096

PART_FILE_FORMAT = 'part-%05d'

_named_only_start = object()


class JobConf(object):
    """ Options recognized by the predictor and aggregator jobs.

        KEYS maps the dotted property names used on the command line and in
        properties files to attribute names and defaults. A value read from
        text is coerced to the type of its default.
    """
    KEYS = {
        'field.delim': ('field_delim', ','),
        'sub.field.delim': ('sub_field_delim', ':'),
        'rating.file.prefix': ('rating_file_prefix', 'rating'),
        'rating.stat.file.prefix': ('rating_stat_file_prefix', 'stat'),
        'correlation.linear': ('correlation_linear', True),
        'correlation.linear.scale': ('correlation_linear_scale', 1000),
        'correlation.scale': ('correlation_scale', 1000),
        'correlation.modifier': ('correlation_modifier', 1.0),
        'max.rating': ('max_rating', 100),
        'corr.length.weighted.average': ('corr_length_weighted_average', True),
        'input.rating.stdDev.weighted.average': ('input_rating_std_dev_weighted_average', True),
        'rating.aggregator.average': ('rating_aggregator_average', True),
        'num.reducer': ('num_reducer', 1),
        'skip.bad.records': ('skip_bad_records', False),
        'shuffle.spill.records': ('shuffle_spill_records', 500000),
        'shuffle.memory.mb': ('shuffle_memory_mb', 1024),
    }
    ATTRS = dict(KEYS.values())
    NAMES = dict((attr, key) for key, (attr, _) in KEYS.items())

    def __init__(self, _dummy=_named_only_start, **kwargs):
        if _dummy is not _named_only_start:
            raise TypeError("JobConf only takes named arguments")

        for attr, default in self.ATTRS.items():
            object.__setattr__(self, attr, default)
        for attr, value in kwargs.items():
            if attr not in self.ATTRS:
                raise ConfigurationError("unknown option %r, valid options: %s"
                                         % (attr, ', '.join(sorted(self.ATTRS))))
            object.__setattr__(self, attr, coerce_value(attr, value))

        if self.num_reducer < 1:
            raise ConfigurationError("num.reducer must be positive: %d" % self.num_reducer)
        if self.max_rating <= 0:
            raise ConfigurationError("max.rating must be positive: %d" % self.max_rating)
        for attr in ('correlation_linear_scale', 'correlation_scale', 'shuffle_spill_records'):
            if getattr(self, attr) <= 0:
                raise ConfigurationError("%s must be positive: %d"
                                         % (self.NAMES[attr], getattr(self, attr)))
        # a zero correlation has no value under a negative power
        if not math.isfinite(self.correlation_modifier) or self.correlation_modifier <= 0:
            raise ConfigurationError("correlation.modifier must be a positive number: %r"
                                     % self.correlation_modifier)

    def __setattr__(self, name, value):
        raise AttributeError("JobConf is read only, use dup() to change %r" % (name,))

    def __getstate__(self):
        return self.to_dict()

    def __setstate__(self, state):
        for attr, value in state.items():
            object.__setattr__(self, attr, value)

    def __eq__(self, other):
        return isinstance(other, JobConf) and self.to_dict() == other.to_dict()

    def __ne__(self, other):
        return not self.__eq__(other)

    def to_dict(self):
        return dict((attr, getattr(self, attr)) for attr in self.ATTRS)

    def to_properties(self):
        return dict((self.NAMES[attr], v) for attr, v in self.to_dict().items())

    def __repr__(self):
        return "JobConf_%r" % (self.to_properties(),)

    def get(self, key):
        if key not in self.KEYS:
            raise ConfigurationError("unknown option %r" % (key,))
        return getattr(self, self.KEYS[key][0])

    def dup(self, **kwargs):
        d = self.to_dict()
        d.update(kwargs)
        return JobConf(**d)

    @classmethod
    def from_properties(cls, props, base=None):
        """ Build a JobConf from {'field.delim': ',', ...}; values may be strings.
        """
        kwargs = {}
        for key, value in props.items():
            key = key.strip()
            if key not in cls.KEYS:
                raise ConfigurationError("unknown option %r, valid options: %s"
                                         % (key, ', '.join(sorted(cls.KEYS))))
            kwargs[cls.KEYS[key][0]] = value
        if base is None:
            return JobConf(**kwargs)
        return base.dup(**kwargs)


def coerce_value(attr, value):
    default = JobConf.ATTRS[attr]
    name = JobConf.NAMES[attr]
    if isinstance(default, bool):
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in ('true', 'false'):
            return value.strip().lower() == 'true'
        raise ConfigurationError("option %s expects true/false, got %r" % (name, value))

    if isinstance(default, str):
        if not isinstance(value, str) or not value:
            raise ConfigurationError("option %s expects a non empty string, got %r" % (name, value))
        return value

    try:
        if isinstance(default, int):
            if isinstance(value, float):
                raise ValueError(value)
            return int(value)
        return float(value)
    except (TypeError, ValueError):
        raise ConfigurationError("option %s expects %s, got %r"
                                 % (name, type(default).__name__, value))


def load_properties(path):
    """ Read `key=value` lines, `#` starts a comment.
    """
    props = {}
    with open(path) as f:
        for n, line in enumerate(f, 1):
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            if '=' not in line:
                raise ConfigurationError("%s:%d: expect key=value, got %r" % (path, n, line))
            k, v = line.split('=', 1)
            props[k.strip()] = v.strip()
    return props


def load_conf(path):
    if not os.path.exists(path):
        logger.debug("conf %s do not exists, use default config", path)
        return

    try:
        with open(path) as f:
            data = f.read()
            exec(data, globals(), globals())
    except Exception as e:
        logger.error("error while load conf from %s: %s", path, e)
        raise


load_conf(os.environ.get('RATEFUSE_CONF', '/etc/ratefuse.conf'))
