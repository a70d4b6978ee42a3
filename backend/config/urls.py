"""
URL configuration for the document assistant backend.
"""
from django.urls import path, include
from django.http import JsonResponse
from django.views.decorators.http import require_GET

from apps.docs import views as docs_views
from apps.rag.views import SettingsView


@require_GET
def health_check(request):
    """Liveness endpoint. Does not touch the database or the provider."""
    return JsonResponse({'status': 'ok'})


urlpatterns = [
    path('api/health', health_check, name='health_check'),

    # API routes
    path('api/docs/', include('apps.docs.urls')),
    path('api/docs', docs_views.list_documents, name='docs-list'),
    path('api/rag/', include('apps.rag.urls')),
    path('api/settings', SettingsView.as_view(), name='settings'),
    path('api/', include('apps.conversations.urls')),
]
