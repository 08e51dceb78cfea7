import math

from ratefuse.utils import ConfigurationError


def round_half_away(x):
    r = int(math.floor(abs(x) + 0.5))
    return -r if x < 0 else r


def modify_correlation(corr, scale, exponent):
    """ Reshape a scaled correlation: scale * (corr / scale) ** exponent.

        exponent 1 returns corr untouched. A negative correlation only has a
        real power for an integral exponent; anything else is a
        ConfigurationError (e.g. distance metrics, which are negated, combined
        with a fractional correlation.modifier).
    """
    if exponent == 1:
        return corr

    ratio = float(corr) / scale
    if ratio < 0 and exponent != int(exponent):
        raise ConfigurationError(
            "correlation.modifier %r is undefined for negative correlation %d"
            % (exponent, corr))
    return round_half_away(scale * ratio ** exponent)


def inv_norm_std_dev(std_dev, max_rating):
    # smaller dispersion of the source rating gets the bigger weight
    return max(1, max_rating // 4 - std_dev)


def median(values):
    """ Integer median, the mean of the two middle values is floored.

        >>> median([10, 21])
        15
    """
    values = sorted(values)
    n = len(values)
    if n == 1:
        return values[0]
    if n % 2 == 1:
        return values[n // 2]
    return (values[n // 2 - 1] + values[n // 2]) // 2
