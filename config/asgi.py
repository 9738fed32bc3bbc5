"""
ASGI config for the to-do service.

Served by Mangum inside AWS Lambda (lambda_handlers.api_handler) and by any
ASGI server (Uvicorn, Daphne) locally.
"""
import os

os.environ.setdefault('DJANGO_SETTINGS_MODULE', 'config.settings')

# Initialize Django at module load time (container startup), not per request
from django.core.asgi import get_asgi_application

application = get_asgi_application()
