from .base import *

DEBUG = False

SECRET_KEY = 'test-secret-key'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

ALLOWED_HOSTS = ['testserver']

TIME_ZONE = 'Asia/Dhaka'

STOREFRONT_URL = ''
IDENTITY_JWT_SECRET = 'test-jwt-secret-with-at-least-32-bytes'
IDENTITY_JWT_ALGORITHMS = ['HS256']
IDENTITY_JWT_AUDIENCE = 'authenticated'
IDENTITY_JWKS_URL = ''
NAGAD_ENVIRONMENT = ''
CREDENTIALS_ENCRYPTION_KEY = ''

LOGGING['loggers']['payments']['level'] = 'CRITICAL'
