from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("payouts", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="earning",
            name="available_at",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AlterField(
            model_name="earning",
            name="status",
            field=models.CharField(
                choices=[
                    ("pending", "Pending"),
                    ("payable", "Payable"),
                    ("claimed", "Claimed"),
                    ("paid", "Paid"),
                    ("reversed", "Reversed"),
                ],
                default="pending",
                max_length=20,
            ),
        ),
        migrations.AddIndex(
            model_name="earning",
            index=models.Index(fields=["status", "available_at"], name="earning_status_available_idx"),
        ),
    ]
