"""
Settings for the test runs: the regular settings plus a second database
alias, so services can be exercised against a store other than ``default``.
"""
from .settings import *  # noqa: F401,F403
from .settings import BASE_DIR, DATABASES

DATABASES['other'] = {
    'ENGINE': 'django.db.backends.sqlite3',
    'NAME': str(BASE_DIR / 'db_other.sqlite3'),
}
