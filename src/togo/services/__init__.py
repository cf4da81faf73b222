"""
Togo services
"""

from togo.services.authorization import AuthorizationGuard
from togo.services.quota_initializer import QuotaInitializer
from togo.services.task_service import TaskService
from togo.services.user_service import UserService

__all__ = [
    "AuthorizationGuard",
    "QuotaInitializer",
    "TaskService",
    "UserService",
]
