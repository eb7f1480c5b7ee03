"""Indented, optionally timed log output for helix computations and the
command line driver.

Log messages go to a stream (stdout by default); warnings about degenerate
geometry go to stderr. Nesting depth can be limited with `max_log_indent`.

---

Copyright 2018 Edwin Steiner

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met:

1. Redistributions of source code must retain the above copyright notice, this
list of conditions and the following disclaimer.

2. Redistributions in binary form must reproduce the above copyright notice,
this list of conditions and the following disclaimer in the documentation
and/or other materials provided with the distribution.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND
ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED
WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
"""

import sys
from time import process_time

class Logger:
    """Keeps track of the log indentation and prints messages."""
    class LogIndenter:
        """Adds one level of indentation to the messages logged inside it."""
        def __init__(self, logger):
            self._logger = logger
        def __enter__(self):
            self._logger._indent += 1
            return self._logger
        def __exit__(self, *args):
            self._logger._indent -= 1

    class LogTimer(LogIndenter):
        """Indented section which reports the process time spent in it.
        After the section, `elapsed` holds that time in seconds.
        """
        def __init__(self, logger, caption):
            super(Logger.LogTimer, self).__init__(logger)
            self.caption = caption
            self.elapsed = None
            self._started = None
        def __enter__(self):
            self._logger.log(self.caption, ":")
            self._started = process_time()
            super(Logger.LogTimer, self).__enter__()
            return self
        def __exit__(self, *args):
            super(Logger.LogTimer, self).__exit__(*args)
            self.elapsed = process_time() - self._started
            self._logger.log("done %s: %.3fs" % (self.caption, self.elapsed))

    def __init__(self, max_log_indent=None, stream=None):
        """
        Args:
            max_log_indent (None or int): maximum log indent level to show.
                A negative value silences the log (warnings are still shown).
            stream (None or file-like): where to write log messages,
                default is sys.stdout at the time of logging.
        """
        self._indent = 0
        self._max_log_indent = max_log_indent
        self._stream = stream
        self._indenter = self.LogIndenter(self)

    @property
    def indent(self):
        """Context manager which indents the messages logged inside it."""
        return self._indenter

    @property
    def indent_level(self):
        return self._indent

    def timed(self, caption):
        """Context manager which indents and times a section, see `LogTimer`."""
        return self.LogTimer(self, caption)

    def isLogging(self):
        """Return True if a message logged now would be shown."""
        return self._max_log_indent is None or self._indent <= self._max_log_indent

    def log(self, *args, sep='', end='\n', flush=False):
        """Print a message at the current indentation unless it is nested too deep."""
        if self.isLogging():
            stream = self._stream if self._stream is not None else sys.stdout
            print("    " * self._indent, *args, sep=sep, end=end, file=stream, flush=flush)

    def warn(self, *args, sep=''):
        """Print a warning to stderr regardless of the indent limit."""
        print("    " * self._indent, "WARNING ", *args, sep=sep, file=sys.stderr)
