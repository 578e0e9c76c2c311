from .base import *  # noqa

DEBUG = True

# Verbose service logging during development
for app_logger in ('common', 'accounts', 'services', 'bookings', 'providers', 'reviews'):
    LOGGING['loggers'][app_logger]['level'] = 'DEBUG'

LOGGING['handlers']['console']['formatter'] = 'verbose'
