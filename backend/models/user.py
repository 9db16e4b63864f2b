from sqlalchemy import Column, String, Boolean, DateTime
from core.database import BaseModel, CHAR_LENGTH


class UserRole:
    USER = "user"
    ADMIN = "admin"


class User(BaseModel):
    __tablename__ = "users"
    __table_args__ = {'extend_existing': True}

    email = Column(String(CHAR_LENGTH), unique=True,
                   index=True, nullable=False)
    name = Column(String(CHAR_LENGTH), nullable=False)
    hashed_password = Column(String(CHAR_LENGTH), nullable=False)
    role = Column(String(50), nullable=False, default=UserRole.USER)  # user, admin
    # Admin accounts must be approved before they can log in
    approved = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)
    company_name = Column(String(CHAR_LENGTH), nullable=True)
    phone = Column(String(20), nullable=True)
    last_login = Column(DateTime(timezone=True), nullable=True)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
