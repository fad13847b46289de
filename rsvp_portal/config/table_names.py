from enum import Enum


class TableNames(str, Enum):
    PERSISTED_STATE = "persisted_state"
