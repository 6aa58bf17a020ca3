"""
Test settings: in-memory SQLite, local-memory cache, fast hashing.
"""
import os

os.environ.setdefault('SECRET_KEY', 'test-secret-Qm7vX2pL9sK4wR8tY1zB6nC3dF5gH0jA')
os.environ.setdefault('JWT_SECRET_KEY', 'jwt-test-key-Zr4Tq8Wm2Xn6Vb1Lc9Kd3Hf7Gs5Pj0Ya')
os.environ.setdefault('DEBUG', 'False')
os.environ.setdefault('ALLOWED_HOSTS', 'testserver,localhost')
os.environ.setdefault('LOG_LEVEL', 'WARNING')
os.environ.setdefault('CORS_ALLOWED_ORIGINS', 'https://app.example.com')

from config.settings import *  # noqa: E402,F401,F403

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
        'ATOMIC_REQUESTS': False,
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'accesscontrol-tests',
    }
}
SILENCED_SYSTEM_CHECKS = ['auth.W004', 'django_ratelimit.E003', 'django_ratelimit.W001']

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

SECURE_SSL_REDIRECT = False
RATELIMIT_ENABLE = False
SEED_ON_MIGRATE = False
JWT_EXPIRATION_MINUTES = 60
RECONCILER_MAX_ATTEMPTS = 3
