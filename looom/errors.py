class LooomError(Exception):
    pass


class BackendError(LooomError):
    """A configured backend failed a write. Reads never raise this."""


class NotFound(LooomError):
    pass


class InvalidTransition(LooomError):
    def __init__(self, current: str, target: str, reason: str = ""):
        super().__init__(reason or f"Cannot move order from {current} to {target}")
        self.current = current
        self.target = target
