"""
Board ownership and role checks
"""
import logging
from dataclasses import dataclass

from app.core.exceptions import InsufficientPermissionsError
from app.core.logging import log_security_event
from app.models.board import Board
from app.models.user import ROLE_ADMIN, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """The authenticated caller as resolved from its session token."""
    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(user_id=user.id, role=user.role)


def can_read_board(actor: Actor, board: Board) -> bool:
    return board.owner_id == actor.user_id or actor.is_admin


def can_modify_board(actor: Actor, board: Board) -> bool:
    return board.owner_id == actor.user_id


def ensure_board_reader(actor: Actor, board: Board) -> None:
    if not can_read_board(actor, board):
        log_security_event(logger, "board_read_denied", user_id=actor.user_id, board_id=board.id)
        raise InsufficientPermissionsError("You don't have permission to view this board")


def ensure_board_owner(actor: Actor, board: Board) -> None:
    if not can_modify_board(actor, board):
        log_security_event(logger, "board_write_denied", user_id=actor.user_id, board_id=board.id)
        raise InsufficientPermissionsError("You don't have permission to modify this board")


def ensure_admin(actor: Actor) -> None:
    if not actor.is_admin:
        log_security_event(logger, "admin_required", user_id=actor.user_id)
        raise InsufficientPermissionsError("Admin role required")
