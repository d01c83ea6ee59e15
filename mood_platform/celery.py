"""
Celery configuration for the mood voting platform.

Sets up Celery for the periodic voting/invitation scans with a Redis broker.
"""

import os
from celery import Celery

# Set default Django settings module
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "mood_platform.settings")

app = Celery("mood_platform")

# Load config from Django settings with CELERY_ prefix
app.config_from_object("django.conf:settings", namespace="CELERY")

# Auto-discover tasks from all registered Django apps
app.autodiscover_tasks()
