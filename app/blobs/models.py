# app/blobs/models.py
from sqlalchemy import JSON, Column, LargeBinary, String
from app.core.database import Base


class Blob(Base):
    __tablename__ = "blobs"

    namespace = Column(String, primary_key=True)
    key = Column(String, primary_key=True)
    value = Column(LargeBinary, nullable=False)
    meta = Column("metadata", JSON, nullable=True)
