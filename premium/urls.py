from django.urls import path

from . import views

app_name = 'premium'

urlpatterns = [
    path('codes/redeem/', views.redeem_code, name='redeem_code'),
    path('access/', views.check_access, name='check_access'),
    path('resources/<str:resource_id>/codes/', views.list_codes, name='list_codes'),
    path('resources/<str:resource_id>/codes/issue/', views.issue_code, name='issue_code'),
    path('codes/<int:code_id>/delete/', views.delete_code, name='delete_code'),
]
