import logging
import re

import orjson

logger = logging.getLogger(__name__)

SENSITIVE_FIELDS = ('password', 'creditCardNum', 'ccNum', 'cvv2', 'accountNum')

_SENSITIVE_RE = re.compile(
    r'(<(?:\w+:)?(?P<tag>%s)(?:\s[^>]*)?>)([^<]*)(</(?:\w+:)?(?P=tag)>)' % '|'.join(SENSITIVE_FIELDS)
)


def mask_sensitive(content):
    """Replace card numbers, account numbers and passwords in an XML envelope."""
    if not content:
        return content

    if isinstance(content, bytes):
        content = content.decode()

    return _SENSITIVE_RE.sub(lambda m: f"{m.group(1)}{'*' * len(m.group(3))}{m.group(4)}", content)


class RequestLogger:
    """
    Logging of outgoing SOAP envelopes to the ``iats.requests`` logger.
    """

    request_logger = logging.getLogger('iats.requests')

    @classmethod
    def _dumps(cls, message, **kwargs) -> str:
        kwargs['message'] = mask_sensitive(message)
        return orjson.dumps(kwargs, default=str).decode()

    @classmethod
    def info(cls, message, **kwargs):
        try:
            cls.request_logger.info(cls._dumps(message, **kwargs))

        except Exception as exc:
            logger.error("RequestLogger.info write error %s", exc)

    @classmethod
    def warning(cls, message, **kwargs):
        cls.request_logger.warning(cls._dumps(message, **kwargs))

    @classmethod
    def error(cls, message, **kwargs):
        try:
            cls.request_logger.error(cls._dumps(message, **kwargs))

        except Exception as exc:
            logger.error("RequestLogger.error write error %s", exc)
