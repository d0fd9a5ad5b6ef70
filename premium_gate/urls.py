from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path('django-admin/', admin.site.urls),
    path('auth/', include('accounts.urls')),
    path('premium/', include('premium.urls')),
]
