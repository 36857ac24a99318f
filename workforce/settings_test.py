"""
Django Test Settings for the Workforce project.

Overrides the main settings for fast, isolated test runs.

Usage:
    pytest --ds=workforce.settings_test
"""

import tempfile

from .settings import *  # noqa: F401, F403

# =============================================================================
# TEST ENVIRONMENT CONFIGURATION
# =============================================================================

DEBUG = False
TESTING = True

# Use a faster password hasher for tests
PASSWORD_HASHERS = [
    'django.contrib.auth.hashers.MD5PasswordHasher',
]

# =============================================================================
# DATABASE CONFIGURATION
# =============================================================================

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

# =============================================================================
# CACHING CONFIGURATION
# =============================================================================

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'unique-snowflake',
    },
}

# =============================================================================
# MEDIA & BLOB STORAGE
# =============================================================================

MEDIA_ROOT = tempfile.mkdtemp()
STATIC_ROOT = tempfile.mkdtemp()
WORKFORCE_BLOB_STORAGE_LOCATION = tempfile.mkdtemp()

# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

# Minimal logging during tests
LOGGING = {
    'version': 1,
    'disable_existing_loggers': True,
    'handlers': {
        'null': {
            'class': 'logging.NullHandler',
        },
    },
    'root': {
        'handlers': ['null'],
        'level': 'CRITICAL',
    },
    'loggers': {
        'django': {
            'handlers': ['null'],
            'level': 'CRITICAL',
            'propagate': False,
        },
        'django.request': {
            'handlers': ['null'],
            'level': 'CRITICAL',
            'propagate': False,
        },
        'django.db.backends': {
            'handlers': ['null'],
            'level': 'CRITICAL',
            'propagate': False,
        },
    },
}
