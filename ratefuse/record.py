"""Value records flowing between the jobs.

Stage 1 groups by item id. Every record keyed by an item is one of the three
variants `Correlation`, `Stat` and `Rating`; the secondary key used to order a
group is the variant's `tag`, so correlations and stats always come before
the ratings that need them.
"""
from collections import namedtuple

UserRating = namedtuple('UserRating', 'user_id item_id rating')
ItemCorrelation = namedtuple('ItemCorrelation', 'item_a item_b correlation weight')
ItemRatingStat = namedtuple('ItemRatingStat', 'item_id std_dev')

CORRELATION = 0
STAT = 1
RATING = 2


class Correlation(namedtuple('Correlation', 'other_item correlation weight')):
    __slots__ = ()
    TAG = CORRELATION

    @property
    def tag(self):
        return self.TAG


class Stat(namedtuple('Stat', 'std_dev')):
    __slots__ = ()
    TAG = STAT

    @property
    def tag(self):
        return self.TAG


class Rating(namedtuple('Rating', 'user_id rating')):
    __slots__ = ()
    TAG = RATING

    @property
    def tag(self):
        return self.TAG


class GroupedRecord(namedtuple('GroupedRecord', 'base_key payload')):
    """What the stage 1 reducer sees for one item."""
    __slots__ = ()

    @property
    def type_tag(self):
        return self.payload.tag

    @property
    def key(self):
        return self.base_key, self.payload.tag


NO_STD_DEV = -1


class PredictedRating(namedtuple('PredictedRating',
                                 'user_id item_id rating weight correlation std_dev')):
    __slots__ = ()

    @property
    def has_std_dev(self):
        return self.std_dev >= 0

    def to_fields(self):
        return (self.user_id, self.item_id, self.rating, self.weight,
                self.correlation, self.std_dev)


class UtilityScore(namedtuple('UtilityScore', 'user_id item_id score count')):
    __slots__ = ()

    def to_fields(self):
        return self.user_id, self.item_id, self.score, self.count


def format_row(fields, delim=','):
    return delim.join(str(f) for f in fields)
