"""
Netatmo Integration Models
Database models for storing Netatmo OAuth tokens and proxied call logs
"""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class NetatmoToken(Base):
    """Store Netatmo OAuth tokens per owner"""

    __tablename__ = "netatmo_tokens"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, unique=True)

    access_token = Column(Text, nullable=False)
    refresh_token = Column(Text, nullable=False)
    scope = Column(String(255), nullable=True)
    expires_at = Column(DateTime, nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    profile = relationship("Profile")


class NetatmoLog(Base):
    """Track calls proxied to the Netatmo API"""

    __tablename__ = "netatmo_logs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("profiles.id"), nullable=False, index=True)

    endpoint = Column(String(100), nullable=False)
    params = Column(JSON, nullable=True)
    response_status = Column(Integer, nullable=False)
    body_preview = Column(Text, nullable=True)
    error = Column(Text, nullable=True)
    count_points = Column(Integer, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
