"""
WSGI config for the Campus Connect project.
"""
import os

from django.core.wsgi import get_wsgi_application

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "campusconnect.settings")

application = get_wsgi_application()
