"""
Celery configuration for the to-do service.

Only used with TASK_BACKEND=celery, where redelivered upload notifications
run on a worker (celery -A config worker) instead of SQS + Lambda.
"""
import os
from celery import Celery

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

app = Celery('config')
app.config_from_object('django.conf:settings', namespace='CELERY')
app.autodiscover_tasks()

# Ingestion tasks ack late; a lost worker must not drop the notification
app.conf.task_reject_on_worker_lost = True
