from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

SENT = "sent"
READ = "read"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(String, primary_key=True)
    user_id = Column(String, index=True, nullable=False)
    type = Column(String, index=True, nullable=False)
    message = Column(Text, nullable=False)
    order_id = Column(String, nullable=True)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    status = Column(String, nullable=False)          # sent | read
    created_at = Column(DateTime, nullable=False, index=True)
    read_at = Column(DateTime, nullable=True)
