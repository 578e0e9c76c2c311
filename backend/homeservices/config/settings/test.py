from .base import *  # noqa

DEBUG = False
SECRET_KEY = 'test-secret-key-not-for-production'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

SIMPLE_JWT['SIGNING_KEY'] = SECRET_KEY

SMS_ENABLED = False
BOOKING_SMS_NOTIFICATIONS = False
PROVIDER_MATCHING_FILTERS = True
RATING_AGGREGATE_RETRIES = 3
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100
AWS_S3_BUCKET = 'test-bucket'
AWS_REGION = 'ap-south-1'
AWS_ENDPOINT_URL = None
API_LOG = False

# Keep test output quiet
LOGGING['root']['level'] = 'CRITICAL'
for app_logger in ('django', 'common', 'accounts', 'services', 'bookings', 'providers', 'reviews'):
    LOGGING['loggers'][app_logger]['level'] = 'CRITICAL'
