from django.urls import path
from . import views

app_name = 'masterdata'

urlpatterns = [
    path('documents/', views.document_list, name='document_list'),
    path('documents/add/', views.document_add, name='document_add'),
    path('documents/delete/', views.document_bulk_delete, name='document_bulk_delete'),
    path('documents/<int:pk>/resume/', views.document_resume, name='document_resume'),
    path('documents/<int:pk>/delete/', views.document_delete, name='document_delete'),
    path('documents/<int:pk>/review/', views.document_review, name='document_review'),
    path('documents/<int:pk>/approve/', views.document_approve, name='document_approve'),

    # Training modules are keyed on the document they belong to
    path('training/', views.training_list, name='training_list'),
    path('training/<int:document_id>/', views.training_edit, name='training_edit'),
    path(
        'training/<int:document_id>/questions/<int:question_id>/delete/',
        views.training_question_delete,
        name='training_question_delete',
    ),
]
