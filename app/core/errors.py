from __future__ import annotations


class QuestEngineError(Exception):
    pass


class InsufficientEnergyError(QuestEngineError):
    def __init__(self, *, required: int, available: int) -> None:
        super().__init__(f"insufficient energy: required={required} available={available}")
        self.required = required
        self.available = available


class InsufficientCoinsError(QuestEngineError):
    def __init__(self, *, required: int, available: int) -> None:
        super().__init__(f"insufficient coins: required={required} available={available}")
        self.required = required
        self.available = available


class InvalidArgumentError(QuestEngineError):
    pass


class NotFoundError(QuestEngineError):
    pass


class AccountNotFoundError(NotFoundError):
    pass


class QuestNotFoundError(NotFoundError):
    pass


class SessionNotFoundError(NotFoundError):
    pass


class CheckpointNotFoundError(NotFoundError):
    pass


class ConcurrencyConflictError(QuestEngineError):
    pass


class StorageUnavailableError(QuestEngineError):
    pass


class CheckpointOrderError(QuestEngineError):
    pass


class CheckpointOutOfRangeError(QuestEngineError):
    def __init__(self, *, distance_m: float, radius_m: float) -> None:
        super().__init__(f"checkpoint out of range: distance={distance_m:.1f}m radius={radius_m:.1f}m")
        self.distance_m = distance_m
        self.radius_m = radius_m


class SessionClosedError(RuntimeError):
    """Raised when a terminal quest session receives another transition."""
