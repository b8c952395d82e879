from .sqlalchemy_kv_storage import SQLAlchemyKeyValueStorage

__all__ = ["SQLAlchemyKeyValueStorage"]
