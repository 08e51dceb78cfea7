from operator import itemgetter

from ratefuse.utils import portable_hash

# stage 1 keys are (item, tag): partition and group on the item only
item_base_key = itemgetter(0)


def whole_key(key):
    return key


class Partitioner:
    @property
    def numPartitions(self):
        raise NotImplementedError

    def getPartition(self, key):
        raise NotImplementedError


class HashPartitioner(Partitioner):
    def __init__(self, partitions, base_key=whole_key):
        self.partitions = max(1, int(partitions))
        self.base_key = base_key

    @property
    def numPartitions(self):
        return self.partitions

    def getPartition(self, key):
        return portable_hash(self.base_key(key)) % self.partitions
