from .base import *

SECRET_KEY = "test-secret-key"

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'wingman-test',
    }
}

EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    'DEFAULT_THROTTLE_CLASSES': (),
}

MATCH_ORACLE_BACKEND = "match.oracle.PreferenceOverlapOracle"
MATCH_ADVICE_BACKEND = "match.advice.FeedbackHeuristicAdvisor"
MATCH_REQUIRE_CARD_OWNER = True
MATCH_ALLOW_SAME_MATCHER = True
OPENAI_API_KEY = ""
