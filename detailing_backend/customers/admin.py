from django.contrib import admin

from .models import Customer, Vehicle


class VehicleInline(admin.TabularInline):
    model = Vehicle
    extra = 0


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("full_name", "phone", "email", "loyalty_points_balance", "created_at")
    search_fields = ("first_name", "last_name", "phone", "email")
    inlines = [VehicleInline]


@admin.register(Vehicle)
class VehicleAdmin(admin.ModelAdmin):
    list_display = ("description", "customer", "size_class", "color")
    list_filter = ("size_class",)
    search_fields = ("make", "model", "customer__last_name")
