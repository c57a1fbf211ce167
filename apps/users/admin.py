from django.contrib import admin

from .models import Commission, Partner, Referral, User


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("email", "full_name", "role", "is_active", "created_at")
    list_filter = ("role", "is_active")
    search_fields = ("email", "full_name", "username")


admin.site.register(Partner)
admin.site.register(Referral)
admin.site.register(Commission)
