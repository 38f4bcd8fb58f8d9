from .database import Database
from .models import Base, DeliveryRecordModel

__all__ = ["Base", "Database", "DeliveryRecordModel"]
