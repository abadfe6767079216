from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Date, JSON
from sqlalchemy.orm import relationship


class User(BaseModel, Base):
    __tablename__ = "users"
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(20), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    image = Column(String(255), nullable=True)
    date_of_birth = Column(Date, nullable=False)
    preferences = Column(JSON, nullable=False, default=list)
    # The single live refresh token for this user; NULL means no session.
    refresh_token = Column(String(512), nullable=True)

    articles = relationship("Article", back_populates="author", passive_deletes=True)