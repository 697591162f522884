"""
URL mappings for the clinic front desk API.

Trailing slashes are deliberately omitted, matching the paths the front
end calls.
"""
from django.urls import path, include

from .auth_views import login_view, me_view, jwt_refresh_view, jwt_logout_view
from .views import health
from .views.accounts import account_list, account_detail
from .views.departments import departments
from .views.patients import (
    register_patient,
    next_coupon,
    list_patients,
    patient_detail,
    patient_annotations,
)
from .views.queues import (
    queue_list,
    missing_list,
    queue_add,
    queue_send_to_missing,
    queue_remove,
    missing_remove,
    missing_requeue,
)


urlpatterns = [
    path('metrics', include('django_prometheus.urls')),
    path('healthz', health.healthz),
    # Authentication
    path('api/auth/login', login_view, name='login_view'),
    path('api/auth/me', me_view, name='me_view'),
    path('api/auth/refresh', jwt_refresh_view, name='jwt_refresh_view'),
    path('api/auth/logout', jwt_logout_view, name='jwt_logout_view'),
    # Departments
    path('api/departments', departments, name='departments'),
    # Patients
    path('api/patients', list_patients, name='patient_list'),
    path('api/patients/register', register_patient, name='patient_register'),
    path('api/patients/next-coupon', next_coupon, name='patient_next_coupon'),
    path('api/patients/<int:coupon>', patient_detail, name='patient_detail'),
    path('api/patients/<int:coupon>/annotations', patient_annotations, name='patient_annotations'),
    # Department queues
    path('api/queue/<str:dept>', queue_list, name='queue_list'),
    path('api/queue/<str:dept>/missing', missing_list, name='queue_missing'),
    path('api/queue/<str:dept>/add', queue_add, name='queue_add'),
    path('api/queue/<str:dept>/send-to-missing', queue_send_to_missing, name='queue_send_to_missing'),
    path('api/queue/<str:dept>/remove', queue_remove, name='queue_remove'),
    path('api/queue/<str:dept>/remove-missing', missing_remove, name='queue_remove_missing'),
    path('api/queue/<str:dept>/requeue', missing_requeue, name='queue_requeue'),
    # Staff accounts
    path('api/accounts', account_list, name='account_list'),
    path('api/accounts/detail', account_detail, name='account_detail'),
]
