"""
PawPilot URL Configuration
"""
from django.contrib import admin
from django.urls import path, include
from django.http import JsonResponse


def api_root(request):
    """Root endpoint with API information."""
    return JsonResponse({
        'message': 'PawPilot HQ API Server',
        'version': '1.0',
        'endpoints': {
            'profile': '/api/profile/',
            'pets': '/api/pets/',
            'feed': '/api/feed/',
            'posts': '/api/posts/<id>/',
            'groups': '/api/groups/',
            'events': '/api/events/',
            'notifications': '/api/notifications/',
            'auth': '/api/auth/whoami/',
        },
        'admin': '/admin/',
    })


urlpatterns = [
    path('', api_root, name='api-root'),
    path('admin/', admin.site.urls),
    path('api/', include('community.urls')),
]
