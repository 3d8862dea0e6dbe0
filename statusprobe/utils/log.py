import json
import logging
import datetime


class StructuredLogger:
    """Emit one JSON object per log line.

    Every call takes an event name (dotted, e.g. `probe.failed`) plus arbitrary
    keyword fields, which end up as top-level keys of the JSON record.
    """

    def __init__(self, logger_name='StructuredLogger', level=logging.INFO):
        self.logger = logging.getLogger(logger_name)
        self.logger.setLevel(level)
        self.logger.propagate = False

        # guard against duplicate handlers when the module is reloaded (tests)
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter('%(message)s'))
            self.logger.addHandler(handler)

    def set_level(self, level):
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"unknown log level: {level}")
        self.logger.setLevel(level)

    def _log(self, level, message, **kwargs):
        if not self.logger.isEnabledFor(getattr(logging, level.upper())):
            return
        log_entry = {
            'timestamp': datetime.datetime.now().isoformat(),
            'level': level.upper(),
            'message': message,
            **kwargs
        }
        json_log = json.dumps(log_entry, default=str)
        getattr(self.logger, level)(json_log)

    def info(self, message, **kwargs):
        self._log('info', message, **kwargs)

    def warning(self, message, **kwargs):
        self._log('warning', message, **kwargs)

    def error(self, message, **kwargs):
        self._log('error', message, **kwargs)

    def debug(self, message, **kwargs):
        self._log('debug', message, **kwargs)

    def exception(self, message, exc: BaseException, **kwargs):
        self._log('error', message, exc_type=type(exc).__name__, error=str(exc), **kwargs)


app_logger = StructuredLogger('StatusProbeLogger')
