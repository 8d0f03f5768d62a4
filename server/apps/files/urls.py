from django.urls import path

from server.apps.files import views

app_name = 'files'

urlpatterns = [
    path('upload/', views.upload_file, name='upload'),
    path('list/', views.list_files, name='list'),
    path('sync/compare/', views.sync_compare, name='sync-compare'),
    path('sync/remote-files/', views.remote_files, name='sync-remote-files'),
    path('<int:file_id>/', views.file_detail, name='detail'),
    path('<int:file_id>/replace/', views.replace_file, name='replace'),
    path('<int:file_id>/download/', views.download_file, name='download'),
]
