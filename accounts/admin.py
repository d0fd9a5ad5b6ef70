from django.contrib import admin

from .models import AdminAuditLog, User, UserSession


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ('username', 'role', 'is_active', 'is_staff', 'created_at')
    list_filter = ('role', 'is_active')
    search_fields = ('username',)
    exclude = ('password',)


@admin.register(UserSession)
class UserSessionAdmin(admin.ModelAdmin):
    list_display = ('user', 'ip_address', 'expires_at', 'created_at')
    exclude = ('session_token',)


@admin.register(AdminAuditLog)
class AdminAuditLogAdmin(admin.ModelAdmin):
    list_display = ('admin_user', 'event', 'ip_address', 'created_at')
    list_filter = ('event', 'created_at')
