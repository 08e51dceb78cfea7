import os
import time

from ratefuse.accumulator import Counters
from ratefuse.record import format_row
from ratefuse.shuffle import partition_groups
from ratefuse.utils import atomic_file
from ratefuse.utils.log import get_logger

logger = get_logger(__name__)


class ReduceTask(object):
    """ Reduce every group of one partition into one part file.

        Picklable as long as in_memory is empty, which is how the process
        pool gets it: everything spilled, only run paths travel.
    """

    def __init__(self, job_name, partition, reducer, base_key, run_paths, in_memory,
                 output_path, field_delim):
        self.id = '%s_%d' % (job_name, partition)
        self.partition = partition
        self.reducer = reducer
        self.base_key = base_key
        self.run_paths = run_paths
        self.in_memory = in_memory
        self.output_path = output_path
        self.field_delim = field_delim

    def __repr__(self):
        return '<task %s>' % (self.id,)

    def run(self):
        start = time.time()
        counters = Counters()
        groups = partition_groups(self.run_paths, self.in_memory, self.base_key,
                                  owner_info=self.id)
        num_groups = num_rows = 0
        with atomic_file(self.output_path, mode='w') as f:
            for key, values in groups:
                num_groups += 1
                for rec in self.reducer.reduce(key, values, counters):
                    f.write(format_row(rec.to_fields(), self.field_delim))
                    f.write('\n')
                    num_rows += 1

        logger.debug("task %s: %d groups -> %d rows in %s (%.1fs)", self.id, num_groups,
                     num_rows, os.path.basename(self.output_path), time.time() - start)
        return self.partition, num_rows, counters.values()


def run_task(task):
    logger.debug('Running task %r', task)
    try:
        return task.run()
    except Exception:
        logger.error('error in task %s', task)
        raise
