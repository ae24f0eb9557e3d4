"""Relational records for the inventory_items table."""

from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class InventoryItemRecord(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    nivel = fields.CharField(max_length=20)
    tipo = fields.CharField(max_length=50)
    descricao = fields.CharField(max_length=255)
    quantidade = fields.IntField(default=0)
    valor_unitario = fields.DecimalField(max_digits=12, decimal_places=2)
    valor_total = fields.DecimalField(max_digits=14, decimal_places=2)
    ramo = fields.CharField(max_length=20)

    def __str__(self):
        return f"{self.descricao} (Stock: {self.quantidade}, Unit: {self.valor_unitario})"

    class Meta:
        table = "inventory_items"
