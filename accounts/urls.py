from django.urls import path

from . import views

app_name = 'accounts'

urlpatterns = [
    path('admin/login/', views.admin_login, name='admin_login'),
    path('admin/create/', views.create_admin, name='create_admin'),
    path('logout/', views.logout_view, name='logout'),
]
