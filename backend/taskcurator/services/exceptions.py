"""Domain errors raised by the curation and ordering services."""

from uuid import UUID


class ServiceError(Exception):
    """Base class for service-layer errors."""


class TaskNotFoundError(ServiceError):
    def __init__(self, task_id: UUID):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class InvalidPositionError(ServiceError):
    """Requested position lies outside the sibling group's 1..N range."""

    def __init__(self, position: int, size: int):
        self.position = position
        self.size = size
        super().__init__(f"Position {position} is outside 1..{size}")


class UserNotFoundError(ServiceError):
    def __init__(self, user_id: UUID):
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


class ProjectNotFoundError(ServiceError):
    def __init__(self, project_id: UUID):
        self.project_id = project_id
        super().__init__(f"Project {project_id} not found")
