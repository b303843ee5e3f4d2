from django.urls import path

from . import views, auth_views

urlpatterns = [
    # Auth
    path('auth/login/', auth_views.auth_login, name='auth-login'),
    path('auth/logout/', auth_views.auth_logout, name='auth-logout'),
    path('token/refresh/', auth_views.LearnerTokenRefreshView.as_view(), name='token-refresh'),
    path('me/', views.me, name='me'),

    # Tests
    path('tests/kinds/', views.test_kinds, name='test-kinds'),
    path('tests/start/', views.start_test, name='start-test'),
    path('sessions/<uuid:session_id>/', views.session_detail, name='session-detail'),
    path('sessions/<uuid:session_id>/finalize/', views.finalize_session, name='finalize-session'),

    # Results
    path('results/', views.results_list, name='results-list'),
    path('results/<uuid:result_id>/', views.result_detail, name='result-detail'),
]
