# app/models/department.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from sqlalchemy.orm import relationship
from app.database import Base
from app.utils.dates import utcnow


class Department(Base):
    __tablename__ = "departments"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    parent_id = Column(Integer, ForeignKey("departments.id"), nullable=True, index=True)
    manager_id = Column(Integer, ForeignKey("users.id", use_alter=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    parent = relationship("Department", remote_side=[id], back_populates="children")
    children = relationship("Department", back_populates="parent")
    manager = relationship("User", foreign_keys=[manager_id], post_update=True)
    members = relationship("User", back_populates="department", foreign_keys="User.department_id")

    def __repr__(self):
        return f"<Department(id={self.id}, name='{self.name}', parent_id={self.parent_id})>"
