from pathlib import Path
import os
import environ
from datetime import timedelta

BASE_DIR = Path(__file__).resolve().parent.parent
env = environ.Env()
environ.Env.read_env(os.path.join(BASE_DIR.parent, '.env'))

SECRET_KEY = env('DJANGO_SECRET_KEY', default='dev-secret')
DEBUG = env.bool('DJANGO_DEBUG', default=True)
ALLOWED_HOSTS = env.list('ALLOWED_HOSTS', default=['*'])

INSTALLED_APPS = [
    'django.contrib.admin','django.contrib.auth','django.contrib.contenttypes',
    'django.contrib.sessions','django.contrib.messages','django.contrib.staticfiles',
    'rest_framework','corsheaders','django_filters',
    'core','accounts','courses','bookings','giftcards','shop','payments','jobs',
]

USE_S3_MEDIA = env.bool("USE_S3_MEDIA", default=False)

if USE_S3_MEDIA:
    INSTALLED_APPS.append('storages')

MIDDLEWARE = [
    'django.middleware.security.SecurityMiddleware',
    'django.contrib.sessions.middleware.SessionMiddleware',
    'corsheaders.middleware.CorsMiddleware',
    'django.middleware.common.CommonMiddleware',
    'django.middleware.csrf.CsrfViewMiddleware',
    'django.contrib.auth.middleware.AuthenticationMiddleware',
    'django.contrib.messages.middleware.MessageMiddleware',
    'django.middleware.clickjacking.XFrameOptionsMiddleware',
]

ROOT_URLCONF = 'config.urls'

TEMPLATES = [{
    'BACKEND': 'django.template.backends.django.DjangoTemplates',
    'DIRS': [],
    'APP_DIRS': True,
    'OPTIONS': {
        'context_processors': [
            'django.template.context_processors.debug',
            'django.template.context_processors.request',
            'django.contrib.auth.context_processors.auth',
            'django.contrib.messages.context_processors.messages',
        ],
    },
}]

WSGI_APPLICATION = 'config.wsgi.application'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.postgresql',
        'NAME': env('POSTGRES_DB', default='studioclay'),
        'USER': env('POSTGRES_USER', default='studioclay'),
        'PASSWORD': env('POSTGRES_PASSWORD', default='studioclay'),
        'HOST': env('POSTGRES_HOST', default='localhost'),
        'PORT': env('POSTGRES_PORT', default='5432'),
    }
}

if env.bool('USE_SQLITE_DB', default=False):
    DATABASES['default'] = {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }

AUTH_USER_MODEL = 'accounts.User'

LANGUAGE_CODE = 'sv-se'
TIME_ZONE = 'Europe/Stockholm'
USE_TZ = True

REST_FRAMEWORK = {
    'DEFAULT_AUTHENTICATION_CLASSES': (
        'accounts.authentication.CookieJWTAuthentication',
    ),
    'DEFAULT_PERMISSION_CLASSES': (
        'rest_framework.permissions.IsAdminUser',
    ),
    'DEFAULT_FILTER_BACKENDS': (
        'django_filters.rest_framework.DjangoFilterBackend',
        'rest_framework.filters.SearchFilter',
        'rest_framework.filters.OrderingFilter',
    ),
}

SIMPLE_JWT = {
    'ACCESS_TOKEN_LIFETIME': timedelta(hours=8),
    'REFRESH_TOKEN_LIFETIME': timedelta(days=7),
    'AUTH_HEADER_TYPES': ('Bearer',),
}

ADMIN_SESSION_COOKIE = env('ADMIN_SESSION_COOKIE', default='admin-session')
ADMIN_REFRESH_COOKIE = env('ADMIN_REFRESH_COOKIE', default='admin-refresh')
ADMIN_SESSION_COOKIE_SECURE = env.bool('ADMIN_SESSION_COOKIE_SECURE', default=not DEBUG)

CORS_ALLOW_ALL_ORIGINS = env.bool('CORS_ALLOW_ALL_ORIGINS', default=DEBUG)
CORS_ALLOWED_ORIGINS = env.list('CORS_ALLOWED_ORIGINS', default=[])
CORS_ALLOW_CREDENTIALS = True

STATIC_URL = 'static/'
MEDIA_ROOT = Path(env("MEDIA_ROOT", default=BASE_DIR.parent / 'media'))
MEDIA_URL = env("MEDIA_URL", default="/media/")
if not MEDIA_URL.endswith('/'):
    MEDIA_URL = f"{MEDIA_URL}/"
DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

FRONTEND_URL = env('FRONTEND_URL', default='http://localhost:3000')
SITE_URL = env('SITE_URL', default='http://localhost:8000')
EMAIL_BACKEND = env('EMAIL_BACKEND', default='django.core.mail.backends.console.EmailBackend')
DEFAULT_FROM_EMAIL = env('DEFAULT_FROM_EMAIL', default='Studio Clay <eva@studioclay.se>')
ADMIN_NOTIFICATION_EMAIL = env('ADMIN_NOTIFICATION_EMAIL', default='eva@studioclay.se')

# Swish (mobile payments). Stub mode returns predictable ids without network calls.
SWISH_USE_STUB = env.bool('SWISH_USE_STUB', default=True)
SWISH_TEST_MODE = env.bool('SWISH_TEST_MODE', default=True)
SWISH_PAYEE_ALIAS = env('SWISH_PAYEE_ALIAS', default='')
SWISH_CERT_PATH = env('SWISH_CERT_PATH', default='')
SWISH_KEY_PATH = env('SWISH_KEY_PATH', default='')
SWISH_CA_PATH = env('SWISH_CA_PATH', default='')
SWISH_REQUEST_TIMEOUT = env.int('SWISH_REQUEST_TIMEOUT', default=15)
SWISH_CALLBACK_IP_ALLOWLIST = env.list('SWISH_CALLBACK_IP_ALLOWLIST', default=[])
# Reverse proxies in front of the app that append to X-Forwarded-For.
SWISH_TRUSTED_PROXY_COUNT = env.int('SWISH_TRUSTED_PROXY_COUNT', default=0)

JOB_PROCESSOR_TOKEN = env('JOB_PROCESSOR_TOKEN', default='')
CRON_SECRET = env('CRON_SECRET', default='')
JOBS_RUN_INLINE = env.bool('JOBS_RUN_INLINE', default=False)
JOBS_BATCH_SIZE = env.int('JOBS_BATCH_SIZE', default=10)

INVOICE_DUE_DAYS = env.int('INVOICE_DUE_DAYS', default=14)
GIFT_CARD_VALIDITY_DAYS = env.int('GIFT_CARD_VALIDITY_DAYS', default=365)

STUDIO_NAME = env('STUDIO_NAME', default='Studio Clay')
STUDIO_ADDRESS = env('STUDIO_ADDRESS', default='Norrtullsgatan 65')
STUDIO_POSTAL_CODE = env('STUDIO_POSTAL_CODE', default='113 45')
STUDIO_CITY = env('STUDIO_CITY', default='Stockholm')
STUDIO_EMAIL = env('STUDIO_EMAIL', default='eva@studioclay.se')
STUDIO_PHONE = env('STUDIO_PHONE', default='079-312 06 05')
STUDIO_ORG_NUMBER = env('STUDIO_ORG_NUMBER', default='559393-4234')
STUDIO_BANKGIRO = env('STUDIO_BANKGIRO', default='5938-4560')
STUDIO_VAT_NUMBER = env('STUDIO_VAT_NUMBER', default='SE559393423401')

LOG_LEVEL = env('LOG_LEVEL', default='INFO')

LOGGING = {
    'version': 1,
    'disable_existing_loggers': False,
    'formatters': {
        'simple': {
            'format': '%(asctime)s %(levelname)s %(name)s: %(message)s',
        },
    },
    'handlers': {
        'console': {
            'class': 'logging.StreamHandler',
            'formatter': 'simple',
        },
    },
    'root': {
        'handlers': ['console'],
        'level': LOG_LEVEL,
    },
    'loggers': {
        'django.db.backends': {
            'level': 'WARNING',
        },
    },
}

if USE_S3_MEDIA:
    AWS_STORAGE_BUCKET_NAME = env('AWS_STORAGE_BUCKET_NAME')
    AWS_S3_REGION_NAME = env('AWS_S3_REGION_NAME', default=None)
    AWS_S3_CUSTOM_DOMAIN = env('AWS_S3_CUSTOM_DOMAIN', default=None)
    AWS_S3_OBJECT_PARAMETERS = {'CacheControl': 'max-age=86400'}
    AWS_S3_FILE_OVERWRITE = False
    AWS_DEFAULT_ACL = None
    AWS_QUERYSTRING_AUTH = env.bool('AWS_QUERYSTRING_AUTH', default=True)
    STORAGES = {
        'default': {'BACKEND': 'storages.backends.s3boto3.S3Boto3Storage'},
        'staticfiles': {'BACKEND': 'django.contrib.staticfiles.storage.StaticFilesStorage'},
    }
    if AWS_S3_CUSTOM_DOMAIN:
        MEDIA_URL = f"https://{AWS_S3_CUSTOM_DOMAIN.rstrip('/')}/"
    elif AWS_S3_REGION_NAME:
        MEDIA_URL = f"https://{AWS_STORAGE_BUCKET_NAME}.s3.{AWS_S3_REGION_NAME}.amazonaws.com/"
    else:
        MEDIA_URL = f"https://{AWS_STORAGE_BUCKET_NAME}.s3.amazonaws.com/"
