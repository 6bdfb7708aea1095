"""Test settings for the glamping booking platform.

Used by pytest-django (see ``[tool.pytest.ini_options]`` in
pyproject.toml). Keeps everything in-process: in-memory SQLite unless
DB_ENGINE points somewhere else, local-memory email and eager Celery.
"""

from .base import *  # noqa: F401,F403
from .base import LOGGING, os

DEBUG = False

if os.environ.get('DB_ENGINE', 'django.db.backends.sqlite3') == 'django.db.backends.sqlite3':
    DATABASES = {
        'default': {
            'ENGINE': 'django.db.backends.sqlite3',
            'NAME': ':memory:',
        }
    }

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

CELERY_TASK_ALWAYS_EAGER = True
CELERY_TASK_EAGER_PROPAGATES = True
CELERY_BROKER_URL = 'memory://'
CELERY_RESULT_BACKEND = 'cache+memory://'

STORAGES = {
    'default': {'BACKEND': 'django.core.files.storage.FileSystemStorage'},
    'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
}

# Let pytest's caplog see application records.
for _name in ('apps', 'shared'):
    LOGGING['loggers'][_name]['propagate'] = True
