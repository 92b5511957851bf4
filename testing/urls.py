from django.urls import path
from . import views

app_name = 'testing'

urlpatterns = [
    path('trfs/', views.trf_list, name='trf_list'),
    path('trfs/delete/', views.trf_bulk_delete, name='trf_bulk_delete'),
    path('trfs/<int:pk>/delete/', views.trf_delete, name='trf_delete'),
    path('trfs/<int:pk>/feedback/', views.feedback, name='feedback'),
]
