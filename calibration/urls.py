from django.urls import path
from . import views

app_name = 'calibration'

urlpatterns = [
    path('prices/', views.price_lookup, name='price_lookup'),
    path('instruments/<int:instrument_id>/prices/', views.price_list, name='price_list'),
    path('instruments/<int:instrument_id>/prices/delete/', views.price_bulk_delete, name='price_bulk_delete'),
    path('instruments/<int:instrument_id>/prices/<int:pk>/delete/', views.price_delete, name='price_delete'),

    # Points are keyed on the price and its matrix
    path('points/<int:price_id>/<int:matrix_id>/', views.points_list, name='points_list'),
    path('points/<int:price_id>/<int:matrix_id>/add/', views.point_add, name='point_add'),
    path('points/<int:price_id>/<int:matrix_id>/<int:pk>/edit/', views.point_edit, name='point_edit'),
    path('points/<int:price_id>/<int:matrix_id>/<int:pk>/delete/', views.point_delete, name='point_delete'),
]
