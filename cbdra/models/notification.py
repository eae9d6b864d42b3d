from sqlalchemy import Boolean, Column, String, Integer, Enum, ForeignKey, Text
import enum

from cbdra.db.base_class import Base


class NotificationType(str, enum.Enum):
    ALERT = "alert"
    SUCCESS = "success"
    INFO = "info"


class Notification(Base):
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(Enum(NotificationType), default=NotificationType.INFO, nullable=False)
    read = Column(Boolean, default=False, nullable=False)

    # Optional links back to what triggered the notification
    incident_id = Column(Integer, ForeignKey("incident.id", ondelete="SET NULL"), nullable=True)
    allocation_id = Column(Integer, ForeignKey("resourceallocation.id", ondelete="SET NULL"), nullable=True)
