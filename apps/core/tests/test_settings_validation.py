"""
Tests for startup settings validation in CoreConfig.

Validates:
- JWT_SECRET_KEY length, entropy and separation from SECRET_KEY
- SECRET_KEY strength outside DEBUG
"""
import pytest
from django.apps import apps
from django.core.exceptions import ImproperlyConfigured

STRONG_JWT_KEY = 'Jw7-Qp2xLr9sVt4bNz8cMk1dHf6gYa3eRu5o'
STRONG_SECRET = 'Sk4-Bn8vCx1zLq7wEr3tYu6iOp9aSd2fGh0j'


@pytest.fixture
def core_config():
    return apps.get_app_config('core')


class TestJWTSecretKeyValidation:
    """Test JWT_SECRET_KEY validation requirements."""

    def test_valid_configuration_passes(self, core_config, settings):
        settings.JWT_SECRET_KEY = STRONG_JWT_KEY
        settings.SECRET_KEY = STRONG_SECRET

        core_config.ready()

    def test_missing_key(self, core_config, settings):
        settings.JWT_SECRET_KEY = ''

        with pytest.raises(ImproperlyConfigured, match='must be set'):
            core_config._validate_jwt_configuration()

    def test_short_key(self, core_config, settings):
        settings.JWT_SECRET_KEY = 'short_key_123'

        with pytest.raises(ImproperlyConfigured, match='at least 32 characters'):
            core_config._validate_jwt_configuration()

    def test_key_equal_to_secret_key(self, core_config, settings):
        settings.JWT_SECRET_KEY = STRONG_JWT_KEY
        settings.SECRET_KEY = STRONG_JWT_KEY

        with pytest.raises(ImproperlyConfigured, match='different from SECRET_KEY'):
            core_config._validate_jwt_configuration()

    def test_low_entropy_key(self, core_config, settings):
        settings.JWT_SECRET_KEY = 'abcabcabcabcabcabcabcabcabcabcabcabc'

        with pytest.raises(ImproperlyConfigured, match='insufficient entropy'):
            core_config._validate_jwt_configuration()

    def test_asymmetric_algorithm_rejected(self, core_config, settings):
        settings.JWT_SECRET_KEY = STRONG_JWT_KEY
        settings.JWT_ALGORITHM = 'RS256'

        with pytest.raises(ImproperlyConfigured, match='HMAC'):
            core_config._validate_jwt_configuration()


class TestSecurityValidation:

    @pytest.mark.parametrize('weak', ['django-insecure-abc', 'please-change-me-now', 'key12345xyz'])
    def test_weak_secret_key_rejected_in_production(self, core_config, settings, weak):
        settings.DEBUG = False
        settings.SECRET_KEY = weak

        with pytest.raises(ImproperlyConfigured, match='weak'):
            core_config._validate_security_settings()

    def test_weak_secret_key_tolerated_in_debug(self, core_config, settings):
        settings.DEBUG = True
        settings.SECRET_KEY = 'django-insecure-local'

        core_config._validate_security_settings()
