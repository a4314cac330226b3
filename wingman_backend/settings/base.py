from pathlib import Path
import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()

# --------------------------------
# Paths
# --------------------------------
BASE_DIR = Path(__file__).resolve().parent.parent.parent
STATIC_URL = 'static/'

# --------------------------------
# Environment
# --------------------------------
SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
DEBUG = os.getenv("DJANGO_DEBUG", "0") == "1"
ALLOWED_HOSTS = [h.strip() for h in os.getenv("DJANGO_ALLOWED_HOSTS", "localhost,127.0.0.1").split(",") if h.strip()]

# --------------------------------
# Apps
# --------------------------------
INSTALLED_APPS = [
    # Django
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",

    # third party
    'rest_framework',
    'rest_framework_simplejwt',
    'rest_framework_simplejwt.token_blacklist',

    # project apps
    'accounts', 'cards', 'match',
]

AUTH_USER_MODEL = 'accounts.User'

# --------------------------------
# Middleware
# --------------------------------
MIDDLEWARE = [
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "wingman_backend.urls"
WSGI_APPLICATION = "wingman_backend.wsgi.application"
ASGI_APPLICATION = "wingman_backend.asgi.application"

# --------------------------------
# Templates
# --------------------------------
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.debug",
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    },
]

# --------------------------------
# DB (SQLite by default, overridden in prod)
# --------------------------------
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

# --------------------------------
# Password validators
# --------------------------------
AUTH_PASSWORD_VALIDATORS = [
    {"NAME": "django.contrib.auth.password_validation.UserAttributeSimilarityValidator"},
    {"NAME": "django.contrib.auth.password_validation.MinimumLengthValidator"},
    {"NAME": "django.contrib.auth.password_validation.CommonPasswordValidator"},
    {"NAME": "django.contrib.auth.password_validation.NumericPasswordValidator"},
]

# --------------------------------
# i18n
# --------------------------------
LANGUAGE_CODE = "en-us"
TIME_ZONE = "UTC"
USE_I18N = True
USE_TZ = True

DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

# --------------------------------
# REST Framework + JWT
# --------------------------------
REST_FRAMEWORK = {
    'EXCEPTION_HANDLER': 'wingman_backend.exception_handler.custom_exception_handler',
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'rest_framework_simplejwt.authentication.JWTAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAuthenticated',
    ),
    'DEFAULT_THROTTLE_CLASSES': (
        'rest_framework.throttling.UserRateThrottle',
    ),
    'DEFAULT_THROTTLE_RATES': {
        'user': os.getenv("API_USER_THROTTLE", "120/min"),
    },
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(minutes=60),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=1),
    'ROTATE_REFRESH_TOKENS': False,
    'BLACKLIST_AFTER_ROTATION': True,
    'AUTH_HEADER_TYPES': ('Bearer',),
}

# --------------------------------
# Cache (per-target search lock)
# --------------------------------
CACHES = {
    'default': {
        'BACKEND': 'django.core.cache.backends.locmem.LocMemCache',
        'LOCATION': 'wingman',
    }
}

# --------------------------------
# Email (introductions)
# --------------------------------
EMAIL_BACKEND = os.getenv("EMAIL_BACKEND", "django.core.mail.backends.console.EmailBackend")
DEFAULT_FROM_EMAIL = os.getenv("DEFAULT_FROM_EMAIL", "introductions@wingman.local")

# --------------------------------
# Match engine
# --------------------------------
MATCH_ORACLE_BACKEND = os.getenv("MATCH_ORACLE_BACKEND", "match.oracle.PreferenceOverlapOracle")
MATCH_SUGGESTION_LIMIT = int(os.getenv("MATCH_SUGGESTION_LIMIT", "5"))
MATCH_REQUIRE_CARD_OWNER = os.getenv("MATCH_REQUIRE_CARD_OWNER", "1") == "1"
MATCH_ALLOW_SAME_MATCHER = os.getenv("MATCH_ALLOW_SAME_MATCHER", "1") == "1"
MATCH_ADVICE_BACKEND = os.getenv("MATCH_ADVICE_BACKEND", "match.advice.FeedbackHeuristicAdvisor")
MATCH_ADVICE_TAG_LIMIT = int(os.getenv("MATCH_ADVICE_TAG_LIMIT", "8"))

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
OPENAI_MATCH_MODEL = os.getenv("OPENAI_MATCH_MODEL", "gpt-4o-mini")
OPENAI_TIMEOUT = float(os.getenv("OPENAI_TIMEOUT", "30"))
OPENAI_ADVICE_MODEL = os.getenv("OPENAI_ADVICE_MODEL", OPENAI_MATCH_MODEL)
OPENAI_MAX_RETRIES = int(os.getenv("OPENAI_MAX_RETRIES", "1"))

# must outlive every oracle attempt plus the record writes
MATCH_SEARCH_LOCK_TTL = int(os.getenv(
    "MATCH_SEARCH_LOCK_TTL", str(int(OPENAI_TIMEOUT * (OPENAI_MAX_RETRIES + 1)) + 30)
))

INTRODUCTION_DISPATCHER_BACKEND = os.getenv(
    "INTRODUCTION_DISPATCHER_BACKEND", "match.notifications.EmailIntroductionDispatcher"
)
INTRODUCTION_FROM_EMAIL = os.getenv("INTRODUCTION_FROM_EMAIL", DEFAULT_FROM_EMAIL)

# --------------------------------
# Logging
# --------------------------------
MATCH_LOG_LEVEL = os.getenv("MATCH_LOG_LEVEL", "INFO")

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'standard': {
            'format': '[%(asctime)s] %(levelname)s %(name)s: %(message)s'
        }
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'standard'
        }
    },
    'root': {
        'handlers': ['console'],
        'level': 'INFO'
    },
    'loggers': {
        'django.request': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False
        },
        'wingman_backend.exception_handler': {
            'handlers': ['console'],
            'level': 'INFO',
            'propagate': False
        },
        'match': {
            'level': MATCH_LOG_LEVEL,
        },
        'cards': {
            'level': MATCH_LOG_LEVEL,
        },
    }
}
