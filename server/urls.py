"""
Main URL mapping configuration file.

Include other URLConfs from external apps using method `include()`.

It is also a good practice to keep a single URL to the root index page.
"""

from django.contrib import admin
from django.urls import include, path

from server.apps.files import urls as files_urls

admin.autodiscover()

urlpatterns = [
    # Apps:
    path('api/files/', include(files_urls, namespace='files')),

    # django-admin:
    path('admin/', admin.site.urls),
]
