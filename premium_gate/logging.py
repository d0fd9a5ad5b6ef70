import json
import logging
from datetime import datetime, timezone


class JsonFormatter(logging.Formatter):
    """JSON log formatter with support for extra fields."""

    # Fields lifted from a record's extra dict
    EXTRA_FIELDS = (
        'resource_id', 'client_id', 'code_id', 'operation', 'reason',
        'ip_address', 'path', 'method', 'status_code', 'admin_id', 'username',
    )

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            'ts': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        for field in self.EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value

        if record.exc_info:
            payload['exception'] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)
