class DebugGateError(Exception):
    pass


class ConfigError(DebugGateError):
    pass


class UnitLoadError(DebugGateError):
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class CheckCancelled(DebugGateError):
    def __init__(self):
        super().__init__("The check was cancelled before it completed.")
