from tortoise import fields
from ...common.models import TimestampMixin, generate_ksuid


class ItemRequestRecord(TimestampMixin):
    id = fields.IntField(primary_key=True)
    public_id = fields.CharField(
        max_length=27, unique=True, default=generate_ksuid, db_index=True
    )
    nome = fields.CharField(max_length=255)
    grupo_escoteiro = fields.CharField(max_length=255)
    email = fields.CharField(max_length=255, db_index=True)
    telefone = fields.CharField(max_length=50)
    # Free text copied from the item description, deliberately not a foreign key.
    item_solicitado = fields.CharField(max_length=255)
    quantidade = fields.IntField()
    mensagem_adicional = fields.TextField(null=True)
    status = fields.CharField(max_length=20, default="pending", db_index=True)

    def __str__(self):
        return f"Request {self.public_id} - {self.item_solicitado} x{self.quantidade} ({self.status})"

    class Meta:
        table = "item_requests"
