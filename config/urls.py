"""
URL configuration for the to-do service.
"""
from django.contrib import admin
from django.urls import path
from ninja import NinjaAPI

api = NinjaAPI(
    title="Serverless To-Do API",
    version="1.0.0",
    description="Tasks with image uploads annotated by label detection",
    docs_url="/docs",
)

from apps.identity.api import router as identity_router
from apps.todos.api import router as todos_router
from apps.uploads.api import router as uploads_router

api.add_router("/", identity_router)
api.add_router("/tasks", todos_router)
api.add_router("/", uploads_router)

urlpatterns = [
    path('admin/', admin.site.urls),
    path('', api.urls),
]
