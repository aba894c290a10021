import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Gym",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                ("name", models.CharField(help_text="Gym name", max_length=200)),
                (
                    "city",
                    models.CharField(
                        blank=True,
                        db_index=True,
                        help_text="City the gym is in",
                        max_length=100,
                    ),
                ),
                (
                    "description",
                    models.TextField(blank=True, help_text="Listing description"),
                ),
                (
                    "amount_of_reviews",
                    models.PositiveIntegerField(default=0, help_text="Number of reviews"),
                ),
                (
                    "owner",
                    models.ForeignKey(
                        help_text="Owner of this gym",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="gyms",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "gyms_gym",
                "ordering": ["name"],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("owner", "name"),
                        name="unique_gym_name_per_owner",
                    ),
                ],
            },
        ),
    ]
