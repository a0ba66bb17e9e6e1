# config/settings/test.py
from .base import *  # noqa

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

LOGGING["loggers"]["carelog"]["level"] = "DEBUG"
# Let pytest's caplog see application records
LOGGING["loggers"]["carelog"]["handlers"] = []
LOGGING["loggers"]["carelog"]["propagate"] = True
