from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class ProfileRecord(TimestampMixin):
    id = fields.IntField(primary_key=True)
    user_id = fields.CharField(max_length=27, unique=True, default=generate_ksuid, db_index=True)
    email = fields.CharField(max_length=255, unique=True, db_index=True)
    full_name = fields.CharField(max_length=255)
    hashed_password = fields.CharField(max_length=255)
    role = fields.CharField(max_length=20, default="operator")  # "admin" or "operator"
    is_active = fields.BooleanField(default=True)

    def __str__(self):
        return f"{self.email} ({self.role})"

    class Meta:
        table = "profiles"
