from sqlalchemy import Column, Double, String
from .base import Base


class ActivityRecord(Base):
    __tablename__ = "t_activity"

    activity = Column(String(255), primary_key=True)  # name is the identity key
    priority = Column(Double, nullable=False, default=1.0)  # MySQL FLOAT is single precision
