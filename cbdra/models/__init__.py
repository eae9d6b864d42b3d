from cbdra.models.user import User, UserRole, RESPONDER_ROLES
from cbdra.models.incident import Incident, IncidentStatus, IncidentType
from cbdra.models.allocation import ResourceAllocation, AllocationStatus
from cbdra.models.response import IncidentResponse, ResponseType
from cbdra.models.notification import Notification, NotificationType
