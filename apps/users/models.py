# apps/users/models.py
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin, BaseUserManager
from django.db import models


class CustomUserManager(BaseUserManager):
    def create_user(self, email, password=None, role='manager', **extra_fields):
        if not email:
            raise ValueError("Email must be provided")
        email = self.normalize_email(email)
        user = self.model(email=email, role=role, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        return self.create_user(email, password, role="owner", **extra_fields)


class CustomUser(AbstractBaseUser, PermissionsMixin):
    OWNER = 'owner'
    MANAGER = 'manager'
    ROLE_CHOICES = (
        (OWNER, 'Owner'),
        (MANAGER, 'Manager'),
    )

    email = models.EmailField(unique=True)
    first_name = models.CharField(max_length=30, blank=True)
    last_name = models.CharField(max_length=30, blank=True)
    role = models.CharField(max_length=15, choices=ROLE_CHOICES, default=MANAGER)
    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)
    date_joined = models.DateTimeField(auto_now_add=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = []

    objects = CustomUserManager()

    @property
    def is_owner(self):
        return self.role == self.OWNER

    def get_full_name(self):
        """
        Return the first_name plus last_name, separated by a space.
        Falls back to the local part of the email if names are missing.
        """
        full_name = f"{self.first_name} {self.last_name}".strip()
        if full_name:
            return full_name
        return self.email.split('@')[0] if self.email else "User"

    def get_short_name(self):
        return self.first_name or self.get_full_name()

    def save(self, *args, **kwargs):
        # Owners manage the Django admin as well
        if self.role == self.OWNER:
            self.is_staff = True
        super().save(*args, **kwargs)

    def __str__(self):
        return self.get_full_name() or self.email
