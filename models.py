from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from database import Base


class Post(Base):
    __tablename__ = "Post"

    idPost = Column(Integer, primary_key=True, index=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    createdAt = Column(DateTime, server_default=func.now(), index=True)
