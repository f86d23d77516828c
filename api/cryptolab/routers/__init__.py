from . import (
    auth,
    courses,
    events,
    health,
    lectures,
    professors,
    projects,
    resources,
    upload,
    users,
)
