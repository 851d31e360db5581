"""
Logging Handlers for the POS quote service

Records are buffered per stream and shipped to Kinesis Firehose in batches
when FIREHOSE_ENABLED; otherwise every logger writes JSON lines to LOG_DIR.
"""
import logging
import os
import sys
import time
from logging.handlers import MemoryHandler

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from app.logging.config import LoggingConfig
from app.logging.formatters import AppLogsJSONFormatter, AuditLogsJSONFormatter

STREAM_DEFAULTS = {
    'app': 'pos-quote-app-logs',
    'audit_all': 'pos-quote-audit-logs',
    'audit_get': 'pos-quote-audit-get-logs',
}


class FirehoseShipper:
    """Sends one batch of formatted records to a delivery stream."""

    def __init__(self, stream_name: str):
        self.stream_name = stream_name
        self.retry_count = max(1, LoggingConfig.FIREHOSE_RETRY_COUNT)
        self.retry_delay = LoggingConfig.FIREHOSE_RETRY_DELAY
        self.client = boto3.client(
            "firehose",
            region_name=LoggingConfig.FIREHOSE_REGION_NAME,
            aws_access_key_id=LoggingConfig.FIREHOSE_ACCESS_KEY_ID,
            aws_secret_access_key=LoggingConfig.FIREHOSE_SECRET_ACCESS_KEY,
            config=Config(connect_timeout=10, read_timeout=30, retries={"max_attempts": 2}),
        )

    def ship(self, payloads) -> bool:
        records = [{"Data": (payload + "\n").encode("utf-8")} for payload in payloads]
        for attempt in range(self.retry_count):
            try:
                response = self.client.put_record_batch(DeliveryStreamName=self.stream_name, Records=records)
            except (BotoCoreError, ClientError) as e:
                # logging must not log about itself
                sys.stderr.write(f"firehose_put_failed | stream={self.stream_name} attempt={attempt + 1} error={e}\n")
            else:
                if response.get("FailedPutCount", 0) == 0:
                    return True
            if attempt < self.retry_count - 1:
                time.sleep(self.retry_delay * (2 ** attempt))
        return False


class FirehoseBufferHandler(MemoryHandler):
    """Buffers records until capacity or LOG_BUFFER_TIMEOUT, then ships them."""

    def __init__(self, stream_name: str, capacity: int, formatter: logging.Formatter):
        super().__init__(capacity=capacity)
        self.shipper = FirehoseShipper(stream_name)
        self.buffer_timeout = LoggingConfig.LOG_BUFFER_TIMEOUT
        self.last_flush = time.time()
        self.setFormatter(formatter)

    def shouldFlush(self, record):
        return super().shouldFlush(record) or time.time() - self.last_flush >= self.buffer_timeout

    def flush(self):
        self.acquire()
        try:
            if self.buffer:
                self.shipper.ship([self.format(record) for record in self.buffer])
                self.buffer.clear()
            self.last_flush = time.time()
        finally:
            self.release()


_handlers = {}


def _firehose_handler(key: str, stream_name: str, capacity: int, formatter: logging.Formatter):
    if key not in _handlers:
        _handlers[key] = FirehoseBufferHandler(stream_name or STREAM_DEFAULTS[key], capacity, formatter)
    return _handlers[key]


def get_local_file_handler(name: str = 'app', audit: bool = False):
    os.makedirs(LoggingConfig.LOG_DIR, exist_ok=True)
    handler = logging.FileHandler(os.path.join(LoggingConfig.LOG_DIR, f'{name}.log'))
    handler.setFormatter(AuditLogsJSONFormatter() if audit else AppLogsJSONFormatter())
    return handler


def get_app_handler():
    if LoggingConfig.FIREHOSE_ENABLED:
        return _firehose_handler('app', LoggingConfig.APP_LOGS_STREAM_NAME, LoggingConfig.APP_LOGS_CAPACITY, AppLogsJSONFormatter())
    return get_local_file_handler('app')


def get_audit_handler(method: str = ''):
    if not LoggingConfig.FIREHOSE_ENABLED:
        return get_local_file_handler('audit_logs_backup', audit=True)
    if method.upper() == 'GET':
        return _firehose_handler('audit_get', LoggingConfig.AUDIT_LOGS_GET_STREAM_NAME, LoggingConfig.AUDIT_LOGS_CAPACITY, AuditLogsJSONFormatter())
    return _firehose_handler('audit_all', LoggingConfig.AUDIT_LOGS_STREAM_NAME, LoggingConfig.AUDIT_LOGS_CAPACITY, AuditLogsJSONFormatter())
