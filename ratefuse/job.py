import os
import time
import signal
import multiprocessing

import ratefuse.conf as conf
from ratefuse.accumulator import Counters
from ratefuse.aggregator import PredictionParser, RatingAggregator
from ratefuse.classifier import RecordClassifier, source_kind
from ratefuse.dependency import HashPartitioner, item_base_key, whole_key
from ratefuse.predictor import RatingPredictor
from ratefuse.shuffle import LocalShuffle
from ratefuse.task import ReduceTask, run_task
from ratefuse.utils import ParseError, mkdir_p
from ratefuse.utils.log import get_logger

logger = get_logger(__name__)

PREDICTED_DIR = '_predicted'


def list_inputs(paths):
    """ Files under paths, hidden and `_` prefixed names skipped, sorted.
    """
    if isinstance(paths, str):
        paths = [paths]

    files = []
    for path in paths:
        path = os.path.realpath(path)
        if not os.path.exists(path):
            raise IOError("input %s does not exist" % path)
        if not os.path.isdir(path):
            files.append(path)
            continue
        for root, dirs, names in os.walk(path, followlinks=True):
            for n in sorted(names):
                if not n.startswith(('.', '_')):
                    files.append(os.path.join(root, n))
            dirs.sort()
            for d in dirs[:]:
                if d.startswith(('.', '_')):
                    dirs.remove(d)
    return files


def prepare_output(path):
    mkdir_p(path)
    for n in os.listdir(path):
        if n.startswith('part-'):
            os.remove(os.path.join(path, n))


def _pool_initializer():
    # workers leave SIGINT to the parent, which tears the pool down
    signal.signal(signal.SIGINT, signal.SIG_IGN)


class Job(object):
    """ map every input line, group through a LocalShuffle, reduce every
        partition into output/part-NNNNN.
    """
    name = None

    def __init__(self, jobconf, work_dir=None):
        self.conf = jobconf
        self.work_dir = work_dir

    def base_key(self):
        raise NotImplementedError

    def reducer(self):
        raise NotImplementedError

    def map_line(self, line, path):
        raise NotImplementedError

    def map_file(self, path, counters):
        skip = self.conf.skip_bad_records
        with open(path, 'rb') as f:
            for raw in f:
                try:
                    try:
                        line = raw.decode('utf-8')
                    except UnicodeDecodeError as e:
                        raise ParseError("not utf-8 (%s)" % e.reason, path, raw)
                    for kv in self.map_line(line, path):
                        yield kv
                except ParseError as e:
                    if not skip:
                        raise
                    logger.warning("skip bad record: %s", e)
                    counters.incr('Classifier', 'Bad record')

    def run(self, inputs, output, parallel=0):
        start = time.time()
        counters = Counters()
        files = list_inputs(inputs)
        if not files:
            logger.warning("%s: no input files in %s", self.name, inputs)
        logger.info("%s: %d input files -> %s, %r", self.name, len(files), output, self.conf)

        partitioner = HashPartitioner(self.conf.num_reducer, self.base_key())
        prepare_output(output)
        with LocalShuffle(partitioner, self.conf.shuffle_spill_records,
                          self.conf.shuffle_memory_mb, self.work_dir, self.name) as shuffle:
            for path in files:
                shuffle.extend(self.map_file(path, counters))
            logger.info("%s: shuffled %d records, %d spills", self.name,
                        shuffle.num_records, shuffle.num_spills)

            if parallel > 1 and shuffle.numPartitions > 1:
                shuffle.spill_all()
            tasks = [self.make_task(shuffle, pid, output)
                     for pid in range(shuffle.numPartitions)]
            num_rows = 0
            for _, rows, values in self.run_tasks(tasks, parallel):
                num_rows += rows
                counters.merge(values)

        logger.info("%s finished in %.1f seconds, %d rows written",
                    self.name, time.time() - start, num_rows)
        counters.report(logger)
        return counters

    def make_task(self, shuffle, pid, output):
        return ReduceTask(self.name, pid, self.reducer(), shuffle.partitioner.base_key,
                          list(shuffle.runs[pid]), shuffle.sorted_bucket(pid),
                          os.path.join(output, conf.PART_FILE_FORMAT % pid),
                          self.conf.field_delim)

    def run_tasks(self, tasks, parallel):
        if parallel <= 1 or len(tasks) <= 1:
            for task in tasks:
                yield run_task(task)
            return

        pool = multiprocessing.Pool(min(parallel, len(tasks)), initializer=_pool_initializer)
        try:
            for result in pool.imap_unordered(run_task, tasks):
                yield result
            pool.close()
        except BaseException:
            pool.terminate()
            raise
        finally:
            pool.join()


class PredictorJob(Job):
    name = 'predictor'

    def __init__(self, jobconf, work_dir=None):
        Job.__init__(self, jobconf, work_dir)
        self.classifier = RecordClassifier(jobconf)

    def base_key(self):
        return item_base_key

    def reducer(self):
        return RatingPredictor(self.conf)

    def map_line(self, line, path):
        kind = source_kind(path, self.conf)
        for rec in self.classifier.classify(line, kind, path):
            yield rec.key, rec.payload


class AggregatorJob(Job):
    name = 'aggregator'

    def __init__(self, jobconf, work_dir=None):
        Job.__init__(self, jobconf, work_dir)
        self.parser = PredictionParser(jobconf)

    def base_key(self):
        return whole_key

    def reducer(self):
        return RatingAggregator(self.conf)

    def map_line(self, line, path):
        kv = self.parser.parse(line, path)
        if kv is not None:
            yield kv


def run_pipeline(jobconf, inputs, output, parallel=0, work_dir=None):
    """ predictor then aggregator, stage 1 output kept in output/_predicted.
    """
    predicted = os.path.join(output, PREDICTED_DIR)
    counters = PredictorJob(jobconf, work_dir).run(inputs, predicted, parallel)
    counters.merge(AggregatorJob(jobconf, work_dir).run([predicted], output, parallel))
    return counters
