# Import models here so Alembic can discover metadata.
from app.models.user import User  # noqa: F401
from app.models.sale import Sale  # noqa: F401
