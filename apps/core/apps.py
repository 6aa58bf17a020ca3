from django.apps import AppConfig
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
import logging

logger = logging.getLogger(__name__)

KEY_HINT = "Generate a strong key with: python -c \"import secrets; print(secrets.token_urlsafe(32))\""


class CoreConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.core'
    verbose_name = 'Core'

    def ready(self):
        """
        Perform startup validation checks when Django initializes.

        This ensures token signing and security settings are sane before
        the application starts accepting requests.
        """
        self._validate_jwt_configuration()
        self._validate_security_settings()

        logger.debug("Startup security validations passed")

    def _validate_jwt_configuration(self):
        """Validate JWT secret key configuration."""
        jwt_secret = getattr(settings, 'JWT_SECRET_KEY', None)
        secret_key = getattr(settings, 'SECRET_KEY', None)

        if not jwt_secret:
            raise ImproperlyConfigured(f"JWT_SECRET_KEY must be set. {KEY_HINT}")

        if len(jwt_secret) < 32:
            raise ImproperlyConfigured(
                f"JWT_SECRET_KEY must be at least 32 characters long. "
                f"Current length: {len(jwt_secret)}. {KEY_HINT}"
            )

        if jwt_secret == secret_key:
            raise ImproperlyConfigured(
                f"JWT_SECRET_KEY must be different from SECRET_KEY. {KEY_HINT}"
            )

        unique_chars = len(set(jwt_secret))
        if unique_chars < 16:
            raise ImproperlyConfigured(
                f"JWT_SECRET_KEY has insufficient entropy. "
                f"Found only {unique_chars} unique characters, need at least 16. {KEY_HINT}"
            )

        pattern = jwt_secret[:2]
        repeated = pattern * (len(jwt_secret) // 2) + pattern[:len(jwt_secret) % 2]
        if jwt_secret == repeated:
            raise ImproperlyConfigured(
                f"JWT_SECRET_KEY is a simple repeating pattern. {KEY_HINT}"
            )

        algorithm = getattr(settings, 'JWT_ALGORITHM', 'HS256')
        if not algorithm.startswith('HS'):
            raise ImproperlyConfigured(
                f"JWT_ALGORITHM must be an HMAC algorithm (HS256/HS384/HS512), got {algorithm}"
            )

    def _validate_security_settings(self):
        """Validate general security settings."""
        debug = getattr(settings, 'DEBUG', False)
        secret_key = getattr(settings, 'SECRET_KEY', None)

        if not secret_key:
            raise ImproperlyConfigured("SECRET_KEY must be set in environment variables.")

        if debug:
            return

        weak_patterns = [
            'your-secret-key',
            'change-me',
            'django-insecure',
            '12345',
        ]

        secret_lower = secret_key.lower()
        for pattern in weak_patterns:
            if pattern in secret_lower:
                raise ImproperlyConfigured(
                    f"SECRET_KEY appears to be a default or weak value (contains '{pattern}')."
                )

        if not getattr(settings, 'SECURE_SSL_REDIRECT', False):
            logger.warning(
                "SECURE_SSL_REDIRECT is not enabled in production. "
                "HTTPS should be enforced for security."
            )
