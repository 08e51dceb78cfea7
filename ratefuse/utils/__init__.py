# utils
import os
import errno
import uuid
import time
import tempfile
import zlib
from contextlib import contextmanager


class RatefuseError(Exception):
    pass


class ParseError(RatefuseError):
    """A malformed input line. Carries where it came from."""

    def __init__(self, msg, source=None, line=None):
        RatefuseError.__init__(self, msg)
        self.source = source
        self.line = line

    def __str__(self):
        msg = RatefuseError.__str__(self)
        if self.source is not None:
            msg = '%s (source: %s)' % (msg, self.source)
        if self.line is not None:
            msg = '%s: %r' % (msg, self.line)
        return msg


class ConfigurationError(RatefuseError):
    pass


def compress(s):
    return zlib.compress(s, 1)


decompress = zlib.decompress


# hash(str) is salted per process, partitions must not depend on it
def portable_hash(value):
    if isinstance(value, tuple):
        h = 0x345678
        for v in value:
            h = ((h * 1000003) ^ portable_hash(v)) & 0xffffffff
        return h
    if not isinstance(value, bytes):
        value = str(value).encode('utf-8')
    return zlib.crc32(value) & 0xffffffff


def mkdir_p(path):
    """like `mkdir -p`"""
    try:
        os.makedirs(path)
    except OSError as exc:
        if exc.errno == errno.EEXIST and os.path.isdir(path):
            pass
        else:
            raise


@contextmanager
def atomic_file(filename, mode='w+b', bufsize=-1):
    path, name = os.path.split(filename)
    path = path or None
    prefix = '.%s.' % (name,) if name else '.'
    suffix = '.%s.tmp' % (uuid.uuid4().hex,)
    tempname = None
    try:
        if path:
            try:
                mkdir_p(path)
            except (IOError, OSError):
                time.sleep(1)
                mkdir_p(path)

        with tempfile.NamedTemporaryFile(
                mode=mode, suffix=suffix, prefix=prefix,
                dir=path, delete=False, buffering=bufsize) as f:
            tempname = f.name
            yield f

        os.chmod(tempname, 0o644)
        os.rename(tempname, filename)
        tempname = None
    finally:
        try:
            if tempname:
                os.remove(tempname)
        except OSError:
            pass
