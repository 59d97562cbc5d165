from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="ProProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("user_id", models.CharField(max_length=64, unique=True)),
                ("display_name", models.CharField(max_length=200)),
                ("hourly_rate_cents", models.PositiveIntegerField(default=0)),
                ("currency", models.CharField(default="UYU", max_length=3)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending approval"),
                            ("approved", "Approved"),
                            ("suspended", "Suspended"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("suspended_at", models.DateTimeField(blank=True, null=True)),
                ("payout_full_name", models.CharField(blank=True, default="", max_length=200)),
                ("payout_document_id", models.CharField(blank=True, default="", max_length=32)),
                ("payout_bank_name", models.CharField(blank=True, default="", max_length=100)),
                ("payout_account_number", models.CharField(blank=True, default="", max_length=64)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "indexes": [models.Index(fields=["status"], name="pro_status_idx")],
            },
        ),
    ]
