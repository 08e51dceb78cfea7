import weakref
from collections import deque
from ratefuse.utils.log import get_logger

logger = get_logger(__name__)


def list_value(x):
    return x[0], list(x[1])


def group_by_simple(it, base_key=None):
    """ Reference grouping: materialize every group.
    """
    key = None
    values = []
    i = -1
    for i, (k, v) in enumerate(it):
        if base_key is not None:
            k = base_key(k)
        if i == 0:
            key = k
            values = [v]
        elif k == key:
            values.append(v)
        else:
            yield key, values
            key = k
            values = [v]
    if i >= 0:
        yield key, values


class GroupBySubIter(object):

    def __init__(self, key, next_value_func):
        self._key = key
        self._next_value_func = next_value_func
        self._values = None
        self._finished = False

    def __iter__(self):
        next_value_func = self._next_value_func
        key = self._key
        while True:
            if self._values is not None:
                if self._values:
                    yield self._values.popleft()
                    continue
                break

            kv = next_value_func(key)
            if kv is None:
                break
            yield kv[1]
        self._finished = True

    def get_all_values(self):
        if self._finished:
            return False
        key = self._key
        next_value_func = self._next_value_func
        values = self._values = deque()
        while True:
            kv = next_value_func(key)
            if kv is None:
                break
            values.append(kv[1])
        self._finished = True
        return len(values)


class GroupByNestedIter(object):
    """ Group a stream of (key, value) sorted on base_key(key) without
        materializing the groups.

        Yields (base, values_iterator). Values a consumer did not read before
        asking for the next group are cached for it, with a warning.
    """
    NO_CACHE = False

    def __init__(self, it, base_key=None, owner_info=None):
        self._it = iter(it)
        self._base_key = base_key
        self._started = False
        self._prev_key = None
        self._prev_sub_it = None
        self._next_item = None
        self.owner_info = owner_info
        self.is_cached = False

    def _fetch(self):
        try:
            k, v = next(self._it)
        except StopIteration:
            self._next_item = None
            return
        if self._base_key is not None:
            k = self._base_key(k)
        self._next_item = (k, v)

    def _next_value_for_key(self, k):
        """return None when meet a diff key or the end
           else return and then update _next_item
        """
        if self._next_item is None:
            return

        k_, v_ = self._next_item
        if k == k_:
            self._fetch()
            return k_, v_
        return

    def _skip_key(self, key):
        while self._next_value_for_key(key) is not None:
            pass

    def __iter__(self):
        return self

    def __next__(self):
        if not self._started:
            self._started = True
            self._fetch()
        elif self._prev_sub_it is not None:
            prev_sub_it = self._prev_sub_it()
            if prev_sub_it is not None:
                if prev_sub_it.get_all_values() and not self.is_cached:
                    self.is_cached = True
                    msg = "GroupByNestedIter caching values. owner: %s" % (self.owner_info,)
                    if GroupByNestedIter.NO_CACHE:  # for test
                        raise Exception(msg)
                    else:
                        logger.warning(msg)
            self._skip_key(self._prev_key)

        if self._next_item is None:
            raise StopIteration

        key = self._next_item[0]
        sub_it = GroupBySubIter(key, self._next_value_for_key)
        self._prev_key, self._prev_sub_it = key, weakref.ref(sub_it)
        return key, iter(sub_it)
