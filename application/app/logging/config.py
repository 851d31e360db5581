"""
Logging settings for the quote service, read once from QuoteConfigs.
"""
from app.config.settings import QuoteConfigs
configs = QuoteConfigs()


class LoggingConfig:
    FIREHOSE_ENABLED = configs.FIREHOSE_ENABLED
    AUDIT_LOGGING_ENABLED = configs.AUDIT_LOGGING_ENABLED
    CAPTURE_RESPONSE_BODY = configs.CAPTURE_RESPONSE_BODY
    LOG_DIR = configs.LOG_DIR

    APP_LOGS_STREAM_NAME = configs.APP_LOGS_STREAM_NAME
    AUDIT_LOGS_STREAM_NAME = configs.AUDIT_LOGS_STREAM_NAME
    AUDIT_LOGS_GET_STREAM_NAME = configs.AUDIT_LOGS_GET_STREAM_NAME

    # records held per stream before a batch is shipped
    APP_LOGS_CAPACITY = configs.APP_LOGS_CAPACITY
    AUDIT_LOGS_CAPACITY = configs.AUDIT_LOGS_CAPACITY
    LOG_BUFFER_TIMEOUT = configs.LOG_BUFFER_TIMEOUT

    FIREHOSE_REGION_NAME = configs.FIREHOSE_REGION_NAME
    FIREHOSE_ACCESS_KEY_ID = configs.FIREHOSE_ACCESS_KEY_ID
    FIREHOSE_SECRET_ACCESS_KEY = configs.FIREHOSE_SECRET_ACCESS_KEY
    FIREHOSE_RETRY_COUNT = configs.FIREHOSE_RETRY_COUNT
    FIREHOSE_RETRY_DELAY = configs.FIREHOSE_RETRY_DELAY

    @classmethod
    def problems(cls) -> list:
        """Settings that would stop records from reaching their destination."""
        found = []
        if cls.FIREHOSE_ENABLED and not (cls.FIREHOSE_ACCESS_KEY_ID and cls.FIREHOSE_SECRET_ACCESS_KEY):
            found.append("firehose enabled without credentials")
        if cls.FIREHOSE_ENABLED and not cls.FIREHOSE_REGION_NAME:
            found.append("firehose enabled without a region")
        return found
