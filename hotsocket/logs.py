import datetime
import io
import logging
from os import PathLike
from typing import Optional

__all__ = ['Logger']


class Logger(logging.Logger):
    """
    The logger implementation for the whole project.

    The :class:`Logger` is a subclass of :class:`logging.Logger` which is
    implemented by Vinay Sajip. This :class:`Logger` rewrites various logging
    methods to prefix every record with a timestamp and an ANSI color, and
    adds :meth:`get_logger` and :meth:`redirect_to_file` to make it more
    object-oriented.

    The current :class:`Logger` is actually a dummy Logger and only provides the
    logging interface for users. The real :class:`Logger` is its attribute
    :obj:`_logger`.

    Attributes:
        _logger: The real :class:`logging.Logger` which is appended to the
            Logger chain. See the `logging document`_ and `HOW-TO`_ for more
            details.

            .. _`logging document`: https://docs.python.org/3/library/logging.html
            .. _`HOW-TO`: https://docs.python.org/3/howto/logging.html

    """

    def __init__(self, logger: logging.Logger):
        super().__init__(logger.name)
        self._logger = logger

    @staticmethod
    def redirect_to_file(filename: PathLike,
                         mode: str = 'a',
                         logger: Optional['Logger'] = None) -> logging.Handler:
        """
        Redirect the output stream of :class:`Logger` to a file.

        The method :meth:`redirect_to_file` behaves like the function
        :func:`logging.basicConfig` in :mod:`logging`. Users can redirect the
        logging information to given file like this::

            Logger.redirect_to_file('foo.log')

        Args:
            filename(PathLike): The path of the redirected file.
            mode(str): The mode for opening the file. See the `offical document`_.

                .. _`offical document`: https://docs.python.org/3/library/functions.html#open
            logger(Optional[Logger]): The :class:`Logger` needs to redirect
                the output. If not provided, all :class:`Logger` will be
                redirected.

        Returns:
            logging.Handler: the attached handler, so callers can detach it.

        """
        encoding = None
        errors = 'backslashreplace'
        if 'b' in mode:
            errors = None
        else:
            encoding = io.text_encoding(encoding)
        h = logging.FileHandler(filename, mode,
                                encoding=encoding, errors=errors)
        fmt = logging.Formatter(logging.BASIC_FORMAT, None, '%')
        h.setFormatter(fmt)
        if not logger:
            logging.root.addHandler(h)
        else:
            logger._logger.addHandler(h)
        return h

    @classmethod
    def get_logger(cls, name=None) -> 'Logger':
        """
        Get the :class:`Logger` object with given name. If not provided, it will
        return the default :class:`Logger`.

        It behaves like the function :func:`logging.getLogger`.

        Args:
            name: The name of the :class:`Logger`. If it exists in the inner dict,
                it will returns directly. Otherwise, it will be initialized.

        Returns:
            Logger: The :class:`Logger` object.
        """
        # Real Logger must be wrapped so that it can invoke the methods bellow.
        return cls(logging.getLogger(name))

    @staticmethod
    def _decorate(msg, color: int) -> str:
        return f'\033[{color}m[{datetime.datetime.now().strftime("%Y-%m-%d %H:%M:%S")}]{msg}\033[0m'

    def setLevel(self, level):
        self._logger.setLevel(level)

    def isEnabledFor(self, level):
        return self._logger.isEnabledFor(level)

    # Modify the methods in the logging package.

    def debug(self, msg, *args, **kwargs):
        """
        Log 'msg % args' with severity 'DEBUG'.

        logger.debug("Houston, we have a %s", "thorny problem", exc_info=1)
        """
        _logger = self._logger
        if _logger.isEnabledFor(logging.DEBUG):
            _logger._log(logging.DEBUG, self._decorate(msg, 38), args, **kwargs)

    def info(self, msg, *args, **kwargs):
        """
        Log 'msg % args' with severity 'INFO'.
        """
        _logger = self._logger
        if _logger.isEnabledFor(logging.INFO):
            _logger._log(logging.INFO, self._decorate(msg, 38), args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        """
        Log 'msg % args' with severity 'WARNING'.
        """
        _logger = self._logger
        if _logger.isEnabledFor(logging.WARNING):
            _logger._log(logging.WARNING, self._decorate(msg, 33), args, **kwargs)

    def error(self, msg, *args, **kwargs):
        """
        Log 'msg % args' with severity 'ERROR'.

        To pass exception information, use the keyword argument exc_info with
        a true value, e.g.

        logger.error("Houston, we have a %s", "major problem", exc_info=1)
        """
        _logger = self._logger
        if _logger.isEnabledFor(logging.ERROR):
            _logger._log(logging.ERROR, self._decorate(msg, 31), args, **kwargs)

    def exception(self, msg, *args, exc_info=True, **kwargs):
        """
        Convenience method for logging an ERROR with exception information.
        """
        self.error(msg, *args, exc_info=exc_info, **kwargs)

    def critical(self, msg, *args, **kwargs):
        """
        Log 'msg % args' with severity 'CRITICAL'.
        """
        _logger = self._logger
        if _logger.isEnabledFor(logging.CRITICAL):
            _logger._log(logging.CRITICAL, self._decorate(msg, 31), args, **kwargs)

    def fatal(self, msg, *args, **kwargs):
        """
        Don't use this method, use critical() instead.
        """
        self.critical(msg, *args, **kwargs)

    def log(self, level, msg, *args, **kwargs):
        """
        Log 'msg % args' with the integer severity 'level'.
        """
        _logger = self._logger
        if not isinstance(level, int):
            raise TypeError("level must be an integer")

        if _logger.isEnabledFor(level):
            _logger._log(level, self._decorate(msg, 38), args, **kwargs)
