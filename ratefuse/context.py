import sys
import logging
import optparse

from ratefuse.conf import JobConf, load_properties
from ratefuse.job import PredictorJob, AggregatorJob, run_pipeline
from ratefuse.utils import RatefuseError, ConfigurationError
from ratefuse.utils.log import init_ratefuse_logger, get_logger

logger = get_logger(__name__)

COMMANDS = {
    'predict': 'predicted ratings from ratings, stats and correlations',
    'aggregate': 'utility scores from predicted ratings',
    'pipeline': 'predict then aggregate, predictions kept in OUTPUT/_predicted',
}

USAGE = """Usage: %prog [options] COMMAND INPUT... OUTPUT

Commands:
""" + '\n'.join('  %-10s %s' % kv for kv in sorted(COMMANDS.items()))


def _add_define(option, opt_str, value, parser):
    if '=' not in value:
        raise optparse.OptionValueError("%s expects key=value, got %r" % (opt_str, value))
    k, v = value.split('=', 1)
    parser.values.defines.append((k.strip(), v.strip()))


def make_parser():
    parser = optparse.OptionParser(usage=USAGE)
    parser.set_defaults(defines=[])

    group = optparse.OptionGroup(parser, "Job Options")
    group.add_option("-D", "--define", type="string", action="callback",
                     callback=_add_define, metavar="KEY=VALUE",
                     help="set a job option, e.g. -D max.rating=5 (repeatable)")
    group.add_option("-C", "--conf", type="string", default=None,
                     help="properties file with key=value lines, -D wins over it")
    group.add_option("-p", "--parallel", type="int", default=0,
                     help="number of processes reducing partitions")
    group.add_option("--work-dir", type="string", default=None,
                     help="dir for shuffle spill files")
    parser.add_option_group(group)

    parser.add_option("--color", action="store_true")
    parser.add_option("--no-color", action="store_false", dest='color')
    parser.add_option("-q", "--quiet", action="store_true")
    parser.add_option("-v", "--verbose", action="store_true")
    return parser


def parse_options(argv=None):
    parser = make_parser()
    options, args = parser.parse_args(argv)
    if len(args) < 3 or args[0] not in COMMANDS:
        parser.error("expect COMMAND INPUT... OUTPUT, COMMAND in %s"
                     % ', '.join(sorted(COMMANDS)))

    options.logLevel = (options.quiet and logging.ERROR
                        or options.verbose and logging.DEBUG or logging.INFO)
    return options, args[0], args[1:-1], args[-1]


def make_jobconf(options):
    props = {}
    if options.conf:
        props.update(load_properties(options.conf))
    props.update(dict(options.defines))
    return JobConf.from_properties(props)


def main(argv=None):
    options, command, inputs, output = parse_options(argv)
    init_ratefuse_logger(options.logLevel, use_color=options.color)

    try:
        jobconf = make_jobconf(options)
        if command == 'predict':
            PredictorJob(jobconf, options.work_dir).run(inputs, output, options.parallel)
        elif command == 'aggregate':
            AggregatorJob(jobconf, options.work_dir).run(inputs, output, options.parallel)
        else:
            run_pipeline(jobconf, inputs, output, options.parallel, options.work_dir)
    except ConfigurationError as e:
        logger.error("bad configuration: %s", e)
        return 1
    except (RatefuseError, IOError) as e:
        logger.error("%s failed: %s", command, e)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
