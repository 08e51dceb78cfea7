import os

from ratefuse.record import (
    UserRating, ItemCorrelation, ItemRatingStat,
    Correlation, Stat, Rating, GroupedRecord,
)
from ratefuse.utils import ParseError
from ratefuse.utils.log import get_logger

logger = get_logger(__name__)

RATING_SOURCE = 'rating'
STAT_SOURCE = 'stat'
CORRELATION_SOURCE = 'correlation'


def source_kind(path, conf):
    """ Which input a file holds, told apart by its base name only.
    """
    name = os.path.basename(path)
    if name.startswith(conf.rating_file_prefix):
        return RATING_SOURCE
    if name.startswith(conf.rating_stat_file_prefix):
        return STAT_SOURCE
    return CORRELATION_SOURCE


def parse_int(s, what, source, line):
    try:
        return int(s)
    except ValueError:
        raise ParseError("bad %s %r" % (what, s), source, line)


def field(s, what, source, line):
    s = s.strip()
    if not s:
        raise ParseError("empty %s" % what, source, line)
    return s


class RecordClassifier(object):
    """ Stage 1 mapper: turns raw lines into GroupedRecords keyed by item.
    """

    def __init__(self, conf):
        self.conf = conf
        self.field_delim = conf.field_delim
        self.sub_field_delim = conf.sub_field_delim
        self.linear = conf.correlation_linear

    def classify(self, line, source, name=None):
        """ Yield the GroupedRecords of one line, `source` is one of
            RATING_SOURCE, STAT_SOURCE, CORRELATION_SOURCE.
        """
        line = line.rstrip('\r\n')
        if not line.strip():
            return

        if source == RATING_SOURCE:
            for r in self.parse_ratings(line, name):
                yield GroupedRecord(r.item_id, Rating(r.user_id, r.rating))
        elif source == STAT_SOURCE:
            s = self.parse_stat(line, name)
            yield GroupedRecord(s.item_id, Stat(s.std_dev))
        elif source == CORRELATION_SOURCE:
            c = self.parse_correlation(line, name)
            corr = c.correlation if self.linear else -c.correlation
            # both ends need the other one as a prediction target
            yield GroupedRecord(c.item_a, Correlation(c.item_b, corr, c.weight))
            yield GroupedRecord(c.item_b, Correlation(c.item_a, corr, c.weight))
        else:
            raise ValueError("unknown source %r" % (source,))

    def parse_ratings(self, line, name=None):
        items = line.split(self.field_delim)
        user_id = field(items[0], 'user id', name, line)
        ratings = []
        for item in items[1:]:
            sub = item.split(self.sub_field_delim)
            if len(sub) != 2:
                raise ParseError("expect item%srating, got %r" % (self.sub_field_delim, item),
                                 name, line)
            item_id = field(sub[0], 'item id', name, line)
            ratings.append(UserRating(user_id, item_id, parse_int(sub[1], 'rating', name, line)))
        return ratings

    def parse_stat(self, line, name=None):
        items = line.split(self.field_delim)
        if len(items) < 3:
            raise ParseError("stat needs 3 fields, got %d" % len(items), name, line)
        return ItemRatingStat(field(items[0], 'item id', name, line),
                              parse_int(items[2], 'std dev', name, line))

    def parse_correlation(self, line, name=None):
        items = line.split(self.field_delim)
        if len(items) < 4:
            raise ParseError("correlation needs 4 fields, got %d" % len(items), name, line)
        return ItemCorrelation(field(items[0], 'item id', name, line),
                               field(items[1], 'item id', name, line),
                               parse_int(items[2], 'correlation', name, line),
                               parse_int(items[3], 'weight', name, line))
