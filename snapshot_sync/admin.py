from django.contrib import admin

from .models import JobClaim, PauseHold, SnapshotRun


@admin.register(SnapshotRun)
class SnapshotRunAdmin(admin.ModelAdmin):
    list_display = [
        "id",
        "operation",
        "trigger",
        "status",
        "error_kind",
        "snapshot_id",
        "created_snapshot",
        "started_at",
        "completed_at",
    ]
    list_filter = ["operation", "trigger", "status", "completed_at"]
    search_fields = ["snapshot_id", "message"]
    readonly_fields = ["started_at", "completed_at"]


@admin.register(PauseHold)
class PauseHoldAdmin(admin.ModelAdmin):
    list_display = ["holder", "reason", "created_at", "expires_at"]
    readonly_fields = ["holder", "created_at"]


@admin.register(JobClaim)
class JobClaimAdmin(admin.ModelAdmin):
    list_display = ["category", "owner", "claimed_at"]
