from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Studio staff account. Only staff users may sign in to the dashboard."""

    display_name = models.CharField(max_length=120, blank=True)

    def __str__(self):
        return self.display_name or self.email or self.username
