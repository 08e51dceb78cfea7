from operator import add


class AccumulatorParam:
    def __init__(self, zero, addInPlace):
        self.zero = zero
        self.addInPlace = addInPlace


numAcc = AccumulatorParam(0, add)


class Accumulator:
    def __init__(self, initialValue=0, param=numAcc):
        if param is None:
            param = numAcc
        self.param = param
        self.value = initialValue

    def add(self, v):
        self.value = self.param.addInPlace(self.value, v)

    def __repr__(self):
        return 'Accumulator(%r)' % (self.value,)


class Counters:
    """ Job counters grouped like "Predictor" / "User rating".

        Every reducer invocation writes into the Counters of its partition;
        the job merges the per partition values when the partitions finish,
        so a Counters object can cross a process boundary as a plain dict.
    """

    def __init__(self, values=None):
        self.accums = {}
        if values:
            self.merge(values)

    def incr(self, group, name, n=1):
        key = (group, name)
        acc = self.accums.get(key)
        if acc is None:
            acc = self.accums[key] = Accumulator(0)
        acc.add(n)

    def get(self, group, name):
        acc = self.accums.get((group, name))
        return acc.value if acc is not None else 0

    def values(self):
        return dict((key, acc.value) for key, acc in self.accums.items())

    def merge(self, values):
        if isinstance(values, Counters):
            values = values.values()
        for (group, name), v in values.items():
            self.incr(group, name, v)

    def __getstate__(self):
        return self.values()

    def __setstate__(self, state):
        self.accums = {}
        self.merge(state)

    def report(self, logger):
        for (group, name), v in sorted(self.values().items()):
            logger.info("counter %s / %s = %d", group, name, v)
