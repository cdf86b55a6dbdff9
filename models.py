from sqlalchemy import Boolean, Column, Date, ForeignKey, Integer, String, Text, Time, false, true
from database import Base

class User(Base):
    __tablename__ = "marketing_users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    password = Column(String, nullable=False)  # bcrypt hash, legacy rows may be plaintext
    role = Column(String, nullable=False, default="editor")  # admin or editor
    active = Column(Boolean, nullable=False, default=True, server_default=true())

class Event(Base):
    __tablename__ = "marketing_events"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(Time, nullable=False)
    title = Column(String, nullable=False)
    channel = Column(String, nullable=True)
    platform = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, ForeignKey("marketing_users.id"), nullable=True)
    posted = Column(Boolean, nullable=False, server_default=false())
