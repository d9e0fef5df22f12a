"""Django settings for django-sponsorship tests."""

SECRET_KEY = 'test-secret-key-for-django-sponsorship'

DEBUG = True

INSTALLED_APPS = [
    'django.contrib.contenttypes',
    'django.contrib.auth',
    'django_sponsorship',
]

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}

DEFAULT_AUTO_FIELD = 'django.db.models.BigAutoField'

USE_TZ = True
TIME_ZONE = 'UTC'

SPONSORSHIP_VERIFIED_AUTHORITIES = ['ST1TEST']
