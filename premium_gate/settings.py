import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent


def env_bool(name, default=False):
    return os.getenv(name, str(int(default))).strip().lower() in ('1', 'true', 'yes', 'on')


def env_int(name, default):
    return int(os.getenv(name, str(default)))


SECRET_KEY = os.getenv('DJANGO_SECRET_KEY', 'replace-me-in-production')
DEBUG = env_bool('DJANGO_DEBUG', default=True)
ALLOWED_HOSTS = [h.strip() for h in os.getenv('DJANGO_ALLOWED_HOSTS', '*').split(',') if h.strip()]

INSTALLED_APPS = [
    'django.contrib.admin',
    'django.contrib.auth',
    'django.contrib.contenttypes',
    'django.contrib.sessions',
    'django.contrib.messages',
    'django.contrib.staticfiles',
    'accounts',
    'premium',
]

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
    'accounts.middleware.TokenSessionMiddleware',
]

ROOT_URLCONF = 'premium_gate.urls'

TEMPLATES = [
    {
        'BACKEND': 'django.template.backends.django.DjangoTemplates',
        'DIRS': [],
        'APP_DIRS': True,
        'OPTIONS': {
            'context_processors': [
                'django.template.context_processors.request',
                'django.contrib.auth.context_processors.auth',
                'django.contrib.messages.context_processors.messages',
            ],
        },
    },
]

WSGI_APPLICATION = 'premium_gate.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': os.getenv('DJANGO_DB_ENGINE', 'django.db.backends.sqlite3'),
        'NAME': os.getenv('DJANGO_DB_NAME', str(BASE_DIR / 'db.sqlite3')),
        'USER': os.getenv('DJANGO_DB_USER', ''),
        'PASSWORD': os.getenv('DJANGO_DB_PASSWORD', ''),
        'HOST': os.getenv('DJANGO_DB_HOST', ''),
        'PORT': os.getenv('DJANGO_DB_PORT', ''),
    }
}

if DATABASES['default']['ENGINE'] == 'django.db.backends.sqlite3':
    # File-backed test database so threads in the test suite share one schema.
    DATABASES['default']['OPTIONS'] = {'timeout': env_int('DJANGO_DB_TIMEOUT', 20)}
    DATABASES['default']['TEST'] = {'NAME': os.getenv('DJANGO_TEST_DB_NAME', str(BASE_DIR / 'test_db.sqlite3'))}

AUTH_PASSWORD_VALIDATORS = [
    {'NAME': 'django.contrib.auth.password_validation.UserAttributeSimilarityValidator'},
    {'NAME': 'django.contrib.auth.password_validation.MinimumLengthValidator', 'OPTIONS': {'min_length': 12}},
    {'NAME': 'django.contrib.auth.password_validation.CommonPasswordValidator'},
    {'NAME': 'django.contrib.auth.password_validation.NumericPasswordValidator'},
]

LANGUAGE_CODE = 'en-us'
TIME_ZONE = 'UTC'
USE_I18N = True
USE_TZ = True

STATIC_URL = 'static/'
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'
AUTH_USER_MODEL = 'accounts.User'

# HTTPS enforcement is opt-in to avoid local runserver redirect loops.
# Set DJANGO_FORCE_HTTPS=1 behind a TLS-terminating proxy.
FORCE_HTTPS = env_bool('DJANGO_FORCE_HTTPS', default=False)
if DEBUG and not env_bool('DJANGO_FORCE_HTTPS_IN_DEBUG', default=False):
    FORCE_HTTPS = False
SESSION_COOKIE_SECURE = FORCE_HTTPS
CSRF_COOKIE_SECURE = FORCE_HTTPS
SECURE_SSL_REDIRECT = FORCE_HTTPS
SECURE_HSTS_SECONDS = 31536000 if FORCE_HTTPS else 0
SECURE_HSTS_INCLUDE_SUBDOMAINS = FORCE_HTTPS
SECURE_HSTS_PRELOAD = FORCE_HTTPS
SECURE_PROXY_SSL_HEADER = ('HTTP_X_FORWARDED_PROTO', 'https')
SESSION_COOKIE_HTTPONLY = True

TOKEN_SESSION_IDLE_TIMEOUT_SECONDS = env_int('TOKEN_SESSION_IDLE_TIMEOUT_SECONDS', 1800)
LOGIN_RATE_LIMIT_ATTEMPTS = env_int('LOGIN_RATE_LIMIT_ATTEMPTS', 5)
LOGIN_RATE_LIMIT_WINDOW_SECONDS = env_int('LOGIN_RATE_LIMIT_WINDOW_SECONDS', 300)
LOGIN_RATE_LIMIT_LOCK_SECONDS = env_int('LOGIN_RATE_LIMIT_LOCK_SECONDS', 900)

CODE_RATE_LIMIT_ATTEMPTS = env_int('CODE_RATE_LIMIT_ATTEMPTS', 8)
CODE_RATE_LIMIT_WINDOW_SECONDS = env_int('CODE_RATE_LIMIT_WINDOW_SECONDS', 300)
CODE_RATE_LIMIT_LOCK_SECONDS = env_int('CODE_RATE_LIMIT_LOCK_SECONDS', 900)

PREMIUM_CODE_GENERATED_LENGTH = env_int('PREMIUM_CODE_GENERATED_LENGTH', 12)

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
LOG_FILE = os.getenv('LOG_FILE', '')
LOG_MAX_BYTES = env_int('LOG_MAX_BYTES', 10 * 1024 * 1024)
LOG_BACKUP_COUNT = env_int('LOG_BACKUP_COUNT', 5)

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'json': {'()': 'premium_gate.logging.JsonFormatter'},
    },
    'handlers': {
        'console': {'class': 'logging.StreamHandler', 'formatter': 'json'},
    },
    'root': {'handlers': ['console'], 'level': LOG_LEVEL},
    'loggers': {
        'django': {'handlers': ['console'], 'level': 'WARNING', 'propagate': False},
    },
}
if LOG_FILE:
    LOGGING['handlers']['file'] = {
        'class': 'logging.handlers.RotatingFileHandler',
        'filename': LOG_FILE,
        'maxBytes': LOG_MAX_BYTES,
        'backupCount': LOG_BACKUP_COUNT,
        'formatter': 'json',
    }
    LOGGING['root']['handlers'].append('file')
