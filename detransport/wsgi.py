"""
WSGI config for DeTransport Ads.
"""

import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'detransport.settings')

application = get_wsgi_application()
