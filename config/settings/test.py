"""Test settings for Roomgate.

File-backed SQLite in IMMEDIATE transaction mode and a local-memory
cache. Set ``DB_ENGINE`` to ``django.db.backends.postgresql`` (with the
usual ``DB_*`` variables) to run the concurrent admission tests against
real row locks.
"""

from .base import *  # noqa: F401,F403

DEBUG = False

if os.environ.get('DB_ENGINE', '').endswith('postgresql'):  # noqa: F405
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.postgresql',
            'NAME': os.environ.get('DB_NAME', 'roomgate_test'),  # noqa: F405
            'USER': os.environ.get('DB_USER', ''),  # noqa: F405
            'PASSWORD': os.environ.get('DB_PASSWORD', ''),  # noqa: F405
            'HOST': os.environ.get('DB_HOST', ''),  # noqa: F405
            'PORT': os.environ.get('DB_PORT', ''),  # noqa: F405
        }
    }
else:
    # A file database so threads in concurrency tests share one store
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': BASE_DIR / 'test_roomgate.sqlite3',  # noqa: F405
            'OPTIONS': dict(SQLITE_OPTIONS),  # noqa: F405
            'TEST': {
                'NAME': BASE_DIR / 'test_roomgate.sqlite3',  # noqa: F405
            },
        }
    }

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'roomgate-tests',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

# Rate limiting is switched on per test
RATELIMIT_ENABLE = False

CELERY_TASK_ALWAYS_EAGER = True
