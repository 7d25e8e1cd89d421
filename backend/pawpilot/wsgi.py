"""
WSGI config for the pawpilot project.
"""
import os
from django.core.wsgi import get_wsgi_application

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'pawpilot.settings')
application = get_wsgi_application()
