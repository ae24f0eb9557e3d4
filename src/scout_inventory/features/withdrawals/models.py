from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class WithdrawalRecord(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    # Public id of the inventory item. Kept as plain text so the withdrawal
    # history survives deletion of the item.
    item_id = fields.CharField(max_length=64, db_index=True)
    user_id = fields.CharField(max_length=27, db_index=True)
    quantity = fields.IntField()
    notes = fields.TextField(null=True)
    status = fields.CharField(max_length=20, default="requested")

    def __str__(self):
        return f"Withdrawal {self.public_id} of {self.quantity} x {self.item_id} ({self.status})"

    class Meta:
        table = "material_withdrawals"
