"""
JSON line formatters for app and audit records
"""
import json
import logging
from datetime import datetime, timezone

# Settings
from app.config.settings import QuoteConfigs
configs = QuoteConfigs()

# extra attribute -> default, copied onto every entry when present on the record
APP_FIELDS = {
    'request_id': '',
    'request_method': '',
    'request_path': '',
    'promotion_code': '',
    'line_count': 0,
    'app_version': '',
}

AUDIT_FIELDS = {
    'request_id': '',
    'request_method': '',
    'request_path': '',
    'status_code': 0,
    'duration': 0.0,
    'hostname': '',
    'app_name': '',
    'version': '',
    'exception': '',
}


def _dump(value) -> str:
    return json.dumps(value, ensure_ascii=False, default=str)


class QuoteJSONFormatter(logging.Formatter):
    """Serializes a record as one JSON object per line."""

    fields = APP_FIELDS
    include_message = True

    def format(self, record):
        entry = {
            'timestamp': datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'location': f"{record.module}.{record.funcName}:{record.lineno}",
            'environment': configs.APPLICATION_ENVIRONMENT,
            'service': configs.APP_NAME,
        }
        if self.include_message:
            entry['message'] = record.getMessage()
        if record.exc_info:
            entry['exception'] = repr(record.exc_info[1])
        for field, default in self.fields.items():
            entry[field] = getattr(record, field, default)
        self.extend(entry, record)
        return _dump(entry)

    def extend(self, entry, record):
        pass


class AppLogsJSONFormatter(QuoteJSONFormatter):
    pass


class AuditLogsJSONFormatter(QuoteJSONFormatter):
    """Audit records carry request/response bodies in extras instead of a message."""

    fields = AUDIT_FIELDS
    include_message = False

    def extend(self, entry, record):
        for body in ('request', 'response'):
            value = getattr(record, body, None)
            entry[body] = _dump(value) if value else ''
