from django.contrib import admin

from audit.admin import ReadOnlyAdmin
from .models import RefCounter, ModelRef


@admin.register(RefCounter)
class RefCounterAdmin(ReadOnlyAdmin):
    list_display = ['prefix', 'value', 'updated_at']
    search_fields = ['prefix']
    ordering = ['prefix']


@admin.register(ModelRef)
class ModelRefAdmin(ReadOnlyAdmin):
    list_display = ['ref', 'prefix', 'created_at']
    list_filter = ['prefix']
    search_fields = ['ref']
