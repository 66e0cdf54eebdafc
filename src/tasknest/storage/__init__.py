from .bootstrap import ensure_state_root, new_board, sample_board
from .container import TaskNestContainer
from .file_repo import CorruptStateError, FileBoardRepository, attach_repository

__all__ = [
    "CorruptStateError",
    "FileBoardRepository",
    "TaskNestContainer",
    "attach_repository",
    "ensure_state_root",
    "new_board",
    "sample_board",
]
