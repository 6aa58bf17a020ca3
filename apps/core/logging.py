"""
Custom logging formatters for structured JSON logging and security events.
"""
import json
import logging
import re
import traceback

import sentry_sdk
from django.utils import timezone


class PIIMasker:
    """
    Utility class to mask sensitive PII data in logs.
    """

    EMAIL_PATTERN = re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b')
    SECRET_PATTERN = re.compile(
        r'(token|secret|password|auth)["\']?\s*[:=]\s*["\']?([^"\'\s,}]+)',
        re.IGNORECASE
    )

    # Field names whose values are replaced wholesale
    SENSITIVE_FIELDS = {
        'password', 'password_hash', 'old_password', 'new_password',
        'token', 'access_token', 'bearer_token', 'authorization',
        'secret', 'secret_key', 'jwt_secret_key',
    }

    # Field names holding an email that should be partially masked
    EMAIL_FIELDS = {'email', 'user_email', 'actor', 'new_email'}

    @classmethod
    def mask_identifier(cls, value):
        """
        Mask a single email-like identifier for log lines.

        Keeps the first character of the local part and the full domain,
        e.g. 'alice@example.com' -> 'a***@example.com'.
        """
        if not value or not isinstance(value, str):
            return 'unknown'
        if '@' not in value:
            return value[0] + '***'
        local, domain = value.split('@', 1)
        if not local:
            return '***@' + domain
        return f"{local[0]}***@{domain}"

    @classmethod
    def mask_email(cls, text):
        """Mask email addresses in free text."""
        if not isinstance(text, str):
            return text
        return cls.EMAIL_PATTERN.sub(lambda m: cls.mask_identifier(m.group(0)), text)

    @classmethod
    def mask_secrets(cls, text):
        """Mask tokens, secrets and passwords in text."""
        if not isinstance(text, str):
            return text
        return cls.SECRET_PATTERN.sub(r'\1: ********', text)

    @classmethod
    def mask_text(cls, text):
        """Apply all masking patterns to text."""
        if not isinstance(text, str):
            return text
        text = cls.mask_email(text)
        text = cls.mask_secrets(text)
        return text

    @classmethod
    def mask_dict(cls, data):
        """Recursively mask sensitive data in dictionaries."""
        if not isinstance(data, dict):
            return data

        masked = {}
        for key, value in data.items():
            lowered = key.lower()
            if lowered in cls.SENSITIVE_FIELDS:
                masked[key] = '********' if value else value
            elif lowered in cls.EMAIL_FIELDS and isinstance(value, str):
                masked[key] = cls.mask_identifier(value)
            elif isinstance(value, dict):
                masked[key] = cls.mask_dict(value)
            elif isinstance(value, list):
                masked[key] = [
                    cls.mask_dict(item) if isinstance(item, dict)
                    else cls.mask_text(item) if isinstance(item, str)
                    else item
                    for item in value
                ]
            elif isinstance(value, str):
                masked[key] = cls.mask_text(value)
            else:
                masked[key] = value

        return masked


def mask(value):
    """Shorthand for PIIMasker.mask_identifier used in service log lines."""
    return PIIMasker.mask_identifier(value)


class JSONFormatter(logging.Formatter):
    """
    Format log records as JSON for structured logging.
    Includes request_id from extra fields if available.
    Automatically masks sensitive PII data.
    """

    RESERVED_ATTRS = {
        'name', 'msg', 'args', 'created', 'filename', 'funcName',
        'levelname', 'levelno', 'lineno', 'module', 'msecs', 'message',
        'pathname', 'process', 'processName', 'relativeCreated',
        'thread', 'threadName', 'exc_info', 'exc_text', 'stack_info',
        'taskName', 'request_id',
    }

    def format(self, record):
        log_data = {
            'timestamp': timezone.now().isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': PIIMasker.mask_text(record.getMessage()),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if hasattr(record, 'request_id'):
            log_data['request_id'] = record.request_id

        if record.exc_info:
            log_data['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': PIIMasker.mask_text(str(record.exc_info[1])),
                'traceback': [PIIMasker.mask_text(line) for line in traceback.format_exception(*record.exc_info)],
            }

        for key, value in record.__dict__.items():
            if key in self.RESERVED_ATTRS or key.startswith('_'):
                continue
            try:
                if isinstance(value, dict):
                    masked_value = PIIMasker.mask_dict(value)
                elif isinstance(value, str):
                    masked_value = PIIMasker.mask_dict({key: value})[key]
                else:
                    masked_value = value

                json.dumps(masked_value)  # Test if serializable
                log_data[key] = masked_value
            except (TypeError, ValueError):
                log_data[key] = PIIMasker.mask_text(str(value))

        return json.dumps(log_data)


class SecurityLogger:
    """
    Centralized security event logging.

    Logs security-related events with structured data to the 'security'
    logger and sends critical events to Sentry for alerting.
    """

    CRITICAL_EVENTS = {
        'suspicious_activity',
    }

    @staticmethod
    def log_event(event_type: str, level: str = 'warning', **context):
        """
        Log a security event with structured data.

        Args:
            event_type: Type of security event (e.g., 'failed_login')
            level: Log level ('info', 'warning', 'error', 'critical')
            **context: Additional context data (ip_address, user_email, etc.)
        """
        logger = logging.getLogger('security')

        log_data = {
            'event_type': event_type,
            'event_time': timezone.now().isoformat(),
        }
        log_data.update(context)
        log_data = PIIMasker.mask_dict(log_data)

        log_method = getattr(logger, level, logger.warning)
        log_method(
            f"Security event: {event_type}",
            extra=log_data
        )

        if event_type in SecurityLogger.CRITICAL_EVENTS:
            sentry_sdk.capture_message(
                f"Critical security event: {event_type}",
                level='error',
            )

    @staticmethod
    def log_failed_login(email: str, ip_address: str = None, reason: str = None):
        """
        Log a failed login attempt.

        Args:
            email: Email address used in login attempt
            ip_address: IP address of the request
            reason: Reason for failure (bad_password, unknown_user, disabled, no_roles)
        """
        SecurityLogger.log_event(
            'failed_login',
            level='warning',
            user_email=email,
            ip_address=ip_address,
            reason=reason
        )

    @staticmethod
    def log_user_registered(email: str, user_id, enabled: bool):
        """Log a self-service registration."""
        SecurityLogger.log_event(
            'user_registered',
            level='info',
            user_email=email,
            user_id=user_id,
            enabled=enabled
        )

    @staticmethod
    def log_permission_denied(user_email: str, required: set, path: str = None, ip_address: str = None):
        """
        Log a permission denial.

        Args:
            user_email: Email of the principal, if any
            required: Authorities that were missing
            path: Request path
            ip_address: IP address of the request
        """
        SecurityLogger.log_event(
            'permission_denied',
            level='warning',
            user_email=user_email,
            required_authorities=sorted(required),
            path=path,
            ip_address=ip_address
        )

    @staticmethod
    def log_rate_limit_exceeded(
        endpoint: str,
        ip_address: str,
        user_email: str = None,
        limit: str = None
    ):
        """
        Log a rate limit violation.

        Args:
            endpoint: API endpoint that was rate limited
            ip_address: IP address of the request
            user_email: Email submitted with the request, if any
            limit: Rate limit that was exceeded
        """
        SecurityLogger.log_event(
            'rate_limit_exceeded',
            level='warning',
            endpoint=endpoint,
            ip_address=ip_address,
            user_email=user_email,
            limit=limit
        )

    @staticmethod
    def log_suspicious_activity(activity_type: str, description: str, **additional_context):
        """
        Log suspicious activity such as tampered tokens.

        Args:
            activity_type: Type of suspicious activity
            description: Human-readable description
            **additional_context: Any additional context data
        """
        SecurityLogger.log_event(
            'suspicious_activity',
            level='error',
            activity_type=activity_type,
            description=description,
            **additional_context
        )
