from .audit_log import AuditLog
from .course import Course
from .event import Event
from .lecture import Lecture
from .professor import Professor
from .project import Project
from .resource import Resource
from .user import User

__all__ = [
    "AuditLog",
    "Course",
    "Event",
    "Lecture",
    "Professor",
    "Project",
    "Resource",
    "User",
]
