"""
URL configuration for the labdesk project.

Each dashboard section lives in its own app and is mounted under its own
prefix below.
"""
from django.contrib import admin
from django.urls import include, path
from django.shortcuts import render

# Custom error handlers
def custom_permission_denied_view(request, exception=None):
    return render(request, '403.html', status=403)

handler403 = custom_permission_denied_view

urlpatterns = [
    path('admin/', admin.site.urls),
    path('accounts/', include('django.contrib.auth.urls')),
    path('', include(('core.urls', 'core'), namespace='core')),
    path('action-items/', include('actionitems.urls')),
    path('calibration/', include('calibration.urls')),
    path('master-data/', include('masterdata.urls')),
    path('testing/', include('testing.urls')),
]
