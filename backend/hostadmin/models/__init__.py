# Import models here so Alembic can discover metadata.
from hostadmin.models.document import Document  # noqa: F401
from hostadmin.models.identity import Identity  # noqa: F401
