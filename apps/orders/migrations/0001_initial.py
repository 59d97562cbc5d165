import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("pros", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Order",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("client_user_id", models.CharField(db_index=True, max_length=64)),
                ("category", models.CharField(max_length=64)),
                ("title", models.CharField(blank=True, default="", max_length=200)),
                ("description", models.TextField(blank=True, default="")),
                ("address_text", models.CharField(blank=True, default="", max_length=255)),
                ("scheduled_window_start_at", models.DateTimeField()),
                ("scheduled_window_end_at", models.DateTimeField(blank=True, null=True)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("pending_pro_confirmation", "Pending pro confirmation"),
                            ("accepted", "Accepted"),
                            ("rejected", "Rejected"),
                            ("confirmed", "Confirmed"),
                            ("in_progress", "In progress"),
                            ("awaiting_client_approval", "Awaiting client approval"),
                            ("completed", "Completed"),
                            ("disputed", "Disputed"),
                            ("paid", "Paid"),
                            ("canceled", "Canceled"),
                        ],
                        default="draft",
                        max_length=32,
                    ),
                ),
                ("version", models.PositiveIntegerField(default=0)),
                (
                    "pricing_mode",
                    models.CharField(
                        choices=[("hourly", "Hourly"), ("fixed", "Fixed price")],
                        default="hourly",
                        max_length=10,
                    ),
                ),
                ("hourly_rate_cents", models.PositiveIntegerField(default=0)),
                ("quoted_amount_cents", models.PositiveIntegerField(blank=True, null=True)),
                ("estimated_hours", models.DecimalField(decimal_places=2, max_digits=6)),
                ("final_hours_submitted", models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ("approved_hours", models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True)),
                ("total_amount_cents", models.PositiveIntegerField(blank=True, null=True)),
                ("currency", models.CharField(default="UYU", max_length=3)),
                ("cancel_reason", models.TextField(blank=True, default="")),
                ("dispute_reason", models.TextField(blank=True, default="")),
                ("dispute_opened_by", models.CharField(blank=True, default="", max_length=64)),
                ("submitted_at", models.DateTimeField(blank=True, null=True)),
                ("accepted_at", models.DateTimeField(blank=True, null=True)),
                ("rejected_at", models.DateTimeField(blank=True, null=True)),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("started_at", models.DateTimeField(blank=True, null=True)),
                ("arrived_at", models.DateTimeField(blank=True, null=True)),
                ("work_submitted_at", models.DateTimeField(blank=True, null=True)),
                ("completed_at", models.DateTimeField(blank=True, null=True)),
                ("disputed_at", models.DateTimeField(blank=True, null=True)),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("canceled_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "pro",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="orders",
                        to="pros.proprofile",
                    ),
                ),
            ],
            options={
                "indexes": [
                    models.Index(fields=["status", "created_at"], name="order_status_time_idx"),
                    models.Index(fields=["pro", "status"], name="order_pro_status_idx"),
                ],
            },
        ),
    ]
