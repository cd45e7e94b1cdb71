from pathlib import Path

import environs

env = environs.Env()
env.read_env()

DEBUG = env.bool("DEBUG", default=True)
BASE_DIR = Path(__file__).resolve().parent.parent
# SECRET_KEY must be specified in production environments.
SECRET_KEY = env.str(
    "SECRET_KEY",
    default=(
        "django-insecure 9c$k2!v)q7t4m@x0w#r8e&u1z^p5n6b3y(h+j=a*s_d%f-g~l"
        if DEBUG
        else None
    ),
)
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])
LANGUAGE_CODE = env.str("LANGUAGE_CODE", default="en-us")
TIME_ZONE = env.str("TIME_ZONE", default="UTC")
USE_I18N = True
USE_TZ = True

# Locale used for date patterns when no Django language is active.
STAMP_DEFAULT_LOCALE = env.str("STAMP_DEFAULT_LOCALE", default="en_US")

INSTALLED_APPS = [
    "stamp.dates",
]

TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "APP_DIRS": True,
        "OPTIONS": {
            "debug": DEBUG,
        },
    },
]

DATABASES = {}
