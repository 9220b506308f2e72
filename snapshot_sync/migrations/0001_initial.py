from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="SnapshotRun",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("operation", models.CharField(choices=[("backup", "Backup"), ("restore", "Restore")], max_length=10)),
                (
                    "trigger",
                    models.CharField(
                        choices=[("user", "User"), ("scheduler", "Scheduler"), ("host_job", "Host Job")],
                        max_length=10,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("success", "Success"),
                            ("skipped", "Skipped"),
                            ("retry", "Retry"),
                            ("failure", "Failure"),
                        ],
                        max_length=10,
                    ),
                ),
                ("error_kind", models.CharField(blank=True, max_length=20)),
                ("message", models.TextField(blank=True)),
                ("snapshot_id", models.CharField(blank=True, max_length=255)),
                ("created_snapshot", models.BooleanField(default=False)),
                ("started_at", models.DateTimeField()),
                ("completed_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-completed_at"],
                "indexes": [
                    models.Index(fields=["operation", "-completed_at"], name="snapshot_run_op_completed_idx"),
                    models.Index(fields=["status"], name="snapshot_run_status_idx"),
                ],
            },
        ),
    ]
