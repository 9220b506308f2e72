from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ("snapshot_sync", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="JobClaim",
            fields=[
                ("category", models.CharField(max_length=10, primary_key=True, serialize=False)),
                ("owner", models.CharField(max_length=32)),
                ("claimed_at", models.DateTimeField(auto_now=True)),
            ],
        ),
        migrations.CreateModel(
            name="PauseHold",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("holder", models.CharField(max_length=32, unique=True)),
                ("reason", models.CharField(blank=True, max_length=100)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("expires_at", models.DateTimeField(db_index=True)),
            ],
        ),
    ]
