from .catalog import Catalog
from .codec import deserialize_store, serialize_store

__all__ = ["Catalog", "deserialize_store", "serialize_store"]
