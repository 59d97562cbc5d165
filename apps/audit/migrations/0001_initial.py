from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="AuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "event_type",
                    models.CharField(
                        choices=[
                            ("ORDER_STATUS_CHANGED", "Order Status Changed"),
                            ("ORDER_STATUS_FORCED", "Order Status Forced"),
                            ("PAYMENT_FAILED", "Payment Failed"),
                            ("PAYMENT_SYNCED", "Payment Synced"),
                            ("PAYMENT_REFUNDED", "Payment Refunded"),
                            ("PAYMENT_HOLD_RELEASED", "Payment Hold Released"),
                            ("PAYOUT_CREATED", "Payout Created"),
                            ("PAYOUT_SENT", "Payout Sent"),
                            ("PAYOUT_RESENT", "Payout Resent"),
                            ("PAYOUT_SEND_DEFERRED", "Payout Send Deferred"),
                            ("PAYOUT_FAILED", "Payout Failed"),
                            ("PAYOUT_SETTLED", "Payout Settled"),
                            ("PRO_APPROVED", "Pro Approved"),
                            ("PRO_SUSPENDED", "Pro Suspended"),
                            ("PRO_UNSUSPENDED", "Pro Unsuspended"),
                        ],
                        max_length=40,
                    ),
                ),
                ("actor_id", models.CharField(max_length=64)),
                ("actor_role", models.CharField(max_length=16)),
                ("resource_type", models.CharField(max_length=32)),
                ("resource_id", models.CharField(max_length=64)),
                ("action", models.CharField(max_length=64)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ("created_at", "id"),
                "indexes": [
                    models.Index(fields=["resource_type", "resource_id", "created_at"], name="audit_resource_time_idx"),
                    models.Index(fields=["event_type", "created_at"], name="audit_event_time_idx"),
                    models.Index(fields=["actor_id", "created_at"], name="audit_actor_time_idx"),
                ],
            },
        ),
    ]
