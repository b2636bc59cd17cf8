from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.sql import func
from app.db.session import Base

class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=True)

    # preferred currency; balances are reported in it
    currency = Column(String(3), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
