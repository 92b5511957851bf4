from django.urls import path
from . import views

app_name = 'actionitems'

urlpatterns = [
    path('allot-sample/', views.allot_sample_list, name='allot_sample_list'),
    path('allot-sample/<int:pk>/', views.allot_sample_form, name='allot_sample_form'),
    path('trf-items/<int:pk>/remove/', views.remove_item, name='remove_item'),
    path('accept-sample/', views.accept_sample_list, name='accept_sample_list'),
    path('accept-sample/<int:pk>/accept/', views.accept_sample, name='accept_sample'),
    path('assign-chemist/', views.assign_chemist_list, name='assign_chemist_list'),
    path('assign-chemist/<int:pk>/', views.assign_chemist_form, name='assign_chemist_form'),
    path('perform-testing/', views.perform_testing_list, name='perform_testing_list'),
    path('perform-testing/<int:pk>/', views.perform_testing_detail, name='perform_testing_detail'),
    path('perform-testing/<int:tid>/events/<int:teid>/upload/', views.upload_documents, name='upload_documents'),
    path('test-events/<int:teid>/start/', views.start_test, name='start_test'),
    path('test-events/<int:teid>/start-on-date/', views.start_test_on_date, name='start_test_on_date'),
    path('review-by-hod/', views.hod_review_list, name='hod_review_list'),
    path('review-by-hod/<int:tid>/', views.test_report, name='test_report'),
    path('review-by-hod/<int:tid>/approve-ulr/', views.approve_ulr, name='approve_ulr'),
    path('review-by-hod/<int:tid>/events/<int:teid>/reset/', views.request_reset, name='request_reset'),
    path('draft-reports/', views.draft_report_list, name='draft_report_list'),
    path('draft-reports/<int:tid>/', views.draft_report_detail, name='draft_report_detail'),
    path('draft-reports/<int:tid>/events/<int:teid>/retest/', views.request_retest, name='request_retest'),
    path('draft-reports/<int:tid>/submit-hod/', views.submit_hod_request, name='submit_hod_request'),
]
