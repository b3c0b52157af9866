from datetime import datetime
from sqlalchemy import Column, String, DateTime, text
from settings.database import Base


class BaseModel(Base):
    __abstract__ = True

    created_by = Column(String(255), nullable=True)
    modified_by = Column(String(255), nullable=True)
    created_on = Column(DateTime, server_default=text('now()'), nullable=False)
    modified_on = Column(DateTime, server_default=text('now()'), onupdate=datetime.utcnow, nullable=False)
