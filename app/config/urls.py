"""
URL configuration for the gym directory backend.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/gyms/                  - Gym listings (list/create/retrieve/update)
    /api/v1/chat/                  - Chat endpoints
        messages/                  - Conversation history (GET), send (POST)
        partners/                  - Gym owner's chat partners
        rename-scope/              - Move an owner's chats to a new gym name
    /ws/chat/                      - Chat gateway WebSocket (see chat.routing)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

api_v1_patterns = [
    path("gyms/", include("gyms.urls")),
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check (Docker, Kubernetes, load balancers)
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

admin.site.site_header = "Gym Directory Admin"
admin.site.site_title = "Gym Directory"
admin.site.index_title = "Gym directory administration"
