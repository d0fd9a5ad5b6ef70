from django.contrib import admin

from .models import AccessGrant, FailedCodeAttempt, PremiumCode


@admin.register(PremiumCode)
class PremiumCodeAdmin(admin.ModelAdmin):
    list_display = ('value', 'resource_id', 'redeemed_by', 'redeemed_at', 'created_by_admin', 'created_at')
    list_filter = ('created_at', 'redeemed_at')
    search_fields = ('value', 'resource_id', 'redeemed_by')
    readonly_fields = ('redeemed_by', 'redeemed_at', 'created_at')

    # Issued codes only change through redemption.
    def get_readonly_fields(self, request, obj=None):
        if obj is not None:
            return [field.name for field in self.model._meta.fields]
        return self.readonly_fields


@admin.register(AccessGrant)
class AccessGrantAdmin(admin.ModelAdmin):
    list_display = ('client_id', 'resource_id', 'code_value_used', 'granted_at')
    list_filter = ('granted_at',)
    search_fields = ('client_id', 'resource_id', 'code_value_used')

    # Grants are written only by redemption.
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(FailedCodeAttempt)
class FailedCodeAttemptAdmin(admin.ModelAdmin):
    list_display = ('code_value', 'resource_id', 'client_id', 'ip_address', 'reason', 'created_at')
    list_filter = ('reason', 'created_at')
    search_fields = ('code_value', 'resource_id', 'client_id', 'ip_address')
