from dataclasses import dataclass
from typing import Optional


@dataclass
class SessionState:
    uid: Optional[str] = None
    email: Optional[str] = None
    token: Optional[str] = None
    regulation_id: Optional[int] = None
    department_id: Optional[int] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.token)

    def clear(self) -> None:
        self.uid = None
        self.email = None
        self.token = None
        self.regulation_id = None
        self.department_id = None
