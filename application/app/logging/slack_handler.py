import logging
from datetime import datetime, timezone

import requests

from app.config.settings import QuoteConfigs
configs = QuoteConfigs()


class SlackErrorHandler(logging.Handler):
    """Sends ERROR and CRITICAL logs to Slack"""
    def __init__(self):
        super().__init__(level=logging.ERROR)
        self.webhook = configs.SLACK_WEBHOOK_URL
        self.environment = configs.APPLICATION_ENVIRONMENT.upper()
        self.enabled = bool(self.webhook)

    def build_text(self, record) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat()
        lines = [
            f":mag: {self.environment} {configs.APP_NAME} error",
            "",
            f"- :clock1: Timestamp: {ts}",
            f"- :triangular_flag_on_post: Level: **{record.levelname}**",
            f"- :warning: Logger: {record.name}",
            f"- :file_folder: Module: {record.module}",
            f"- :pushpin: Function: {record.funcName}",
            f"- :straight_ruler: Line Number: {record.lineno}",
            "",
            "```" + str(record.getMessage()) + "```",
        ]
        return "\n".join(lines)

    def emit(self, record):
        if not self.enabled:
            return
        try:
            requests.post(self.webhook, json={"text": self.build_text(record)}, timeout=2)
        except requests.RequestException:
            self.handleError(record)


# Export a singleton handler instance for reuse
slack_handler = SlackErrorHandler()
