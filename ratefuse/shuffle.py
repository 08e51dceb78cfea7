"""Local grouped stream provider.

Records are partitioned on their base key, sorted on the full key inside a
partition and handed to the reducer one base key group at a time. Sorting is
stable, so records with equal keys keep their arrival order, also across
spilled runs.
"""
import os
import heapq
import struct
import uuid
import shutil
from operator import itemgetter

import msgpack
import psutil

import ratefuse.conf
from ratefuse.record import Correlation, Stat, Rating, PredictedRating
from ratefuse.utils import compress, decompress, mkdir_p
from ratefuse.utils.log import get_logger
from ratefuse.utils.nested_groupby import GroupByNestedIter

logger = get_logger(__name__)

# value classes that survive a spill, by position
RECORD_TYPES = [Correlation, Stat, Rating, PredictedRating]
RECORD_CODES = dict((cls, i) for i, cls in enumerate(RECORD_TYPES))

MEMORY_CHECK_INTERVAL = 10000

_key = itemgetter(0)


def encode_item(item):
    key, value = item
    return key, RECORD_CODES[type(value)], tuple(value)


def decode_item(item):
    key, code, fields = item
    return key, RECORD_TYPES[code](*fields)


def pack_header(length):
    return struct.pack("I", length)


def unpack_header(head):
    if len(head) != 4:
        raise IOError("bad spill header length %d" % (len(head),))
    length, = struct.unpack("I", head)
    return length


def dump_run(items, path, batch_size=None):
    """ Write sorted (key, value) pairs as zlib compressed msgpack batches.
    """
    batch_size = batch_size or ratefuse.conf.SPILL_BATCH_SIZE
    size = 0
    with open(path, 'wb') as f:
        for i in range(0, len(items), batch_size):
            batch = [encode_item(it) for it in items[i:i + batch_size]]
            buf = compress(msgpack.packb(batch, use_bin_type=True))
            f.write(pack_header(len(buf)))
            f.write(buf)
            size += len(buf) + 4
    return size


def load_run(path):
    with open(path, 'rb') as f:
        while True:
            head = f.read(4)
            if not head:
                return
            length = unpack_header(head)
            buf = f.read(length)
            if len(buf) < length:
                raise IOError("length not match: expected %d, but got %d" % (length, len(buf)))
            for item in msgpack.unpackb(decompress(buf), use_list=False, raw=False):
                yield decode_item(item)


def merge_runs(run_paths, in_memory=()):
    """ All runs of one partition as one sorted stream; earlier runs win ties.
    """
    iters = [load_run(p) for p in run_paths]
    if in_memory:
        iters.append(iter(in_memory))
    if len(iters) == 1:
        return iters[0]
    return heapq.merge(*iters, key=_key)


def partition_groups(run_paths, in_memory, base_key, owner_info=None):
    """ (base, values) groups of one partition, in base key order.
    """
    return GroupByNestedIter(merge_runs(run_paths, in_memory),
                             base_key=base_key, owner_info=owner_info)


class LocalShuffle(object):
    """ Buffer mapper output per partition, spill sorted runs when a buffer
        grows past spill_records or the process rss past memory_mb.
    """

    def __init__(self, partitioner, spill_records=500000, memory_mb=1024,
                 work_dir=None, name='shuffle'):
        self.partitioner = partitioner
        self.spill_records = spill_records
        self.memory_limit = int(memory_mb) << 20
        self.name = name
        n = partitioner.numPartitions
        self.buckets = [[] for _ in range(n)]
        self.runs = [[] for _ in range(n)]
        self.dir = os.path.join(work_dir or ratefuse.conf.RATEFUSE_WORK_DIR,
                                '%s-%s' % (name, uuid.uuid4().hex))
        self.num_records = 0
        self.num_spills = 0
        self.process = psutil.Process()

    @property
    def numPartitions(self):
        return len(self.buckets)

    def add(self, key, value):
        pid = self.partitioner.getPartition(key)
        bucket = self.buckets[pid]
        bucket.append((key, value))
        self.num_records += 1
        if len(bucket) >= self.spill_records:
            self.spill(pid)
        elif self.num_records % MEMORY_CHECK_INTERVAL == 0:
            self.check_memory()

    def extend(self, items):
        for key, value in items:
            self.add(key, value)

    def check_memory(self):
        rss = self.process.memory_info().rss
        if rss > self.memory_limit:
            logger.info("%s: rss %d MB over %d MB, spill all partitions",
                        self.name, rss >> 20, self.memory_limit >> 20)
            self.spill_all()
            # rss rarely shrinks after a spill
            rss = self.process.memory_info().rss
            if rss > self.memory_limit:
                new_limit = int(max(self.memory_limit, rss) * 1.1)
                logger.info("%s: after spill rss = %d MB, enlarge memory limit %d -> %d MB",
                            self.name, rss >> 20, self.memory_limit >> 20, new_limit >> 20)
                self.memory_limit = new_limit

    def spill(self, pid):
        bucket = self.buckets[pid]
        if not bucket:
            return
        bucket.sort(key=_key)
        mkdir_p(self.dir)
        path = os.path.join(self.dir, '%d-%d.run' % (pid, len(self.runs[pid])))
        size = dump_run(bucket, path)
        self.runs[pid].append(path)
        self.buckets[pid] = []
        self.num_spills += 1
        logger.debug("%s: spilled %d records of partition %d to %s (%d bytes)",
                     self.name, len(bucket), pid, path, size)

    def spill_all(self):
        for pid in range(len(self.buckets)):
            self.spill(pid)

    def sorted_bucket(self, pid):
        bucket = self.buckets[pid]
        bucket.sort(key=_key)
        return bucket

    def groups(self, pid):
        return partition_groups(self.runs[pid], self.sorted_bucket(pid),
                                self.partitioner.base_key,
                                owner_info='%s partition %d' % (self.name, pid))

    def close(self):
        self.buckets = [[] for _ in self.buckets]
        self.runs = [[] for _ in self.runs]
        if os.path.exists(self.dir):
            shutil.rmtree(self.dir, ignore_errors=True)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
