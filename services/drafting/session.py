"""
Workspace session context.

Carries the acting user through workflow commits and store calls. Built
once per request from the logged-in user (or the single workspace user in
direct mode) and discarded afterwards.
"""

from dataclasses import dataclass

from .types import UserRecord

LOGIN_MODE = 'login'
DIRECT_MODE = 'direct'
WORKSPACE_MODES = (LOGIN_MODE, DIRECT_MODE)


@dataclass(frozen=True)
class WorkspaceSession:
    user_id: str
    is_admin: bool = False
    can_create_template: bool = True
    mode: str = LOGIN_MODE

    @classmethod
    def for_user(cls, user: UserRecord, mode: str = LOGIN_MODE) -> 'WorkspaceSession':
        return cls(
            user_id=user.id,
            is_admin=user.is_admin,
            can_create_template=user.is_admin or user.can_create_template,
            mode=mode,
        )

    @property
    def is_direct(self) -> bool:
        return self.mode == DIRECT_MODE
