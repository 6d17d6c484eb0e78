class ScrambleError(ValueError):
    """Base class for bad input found while evaluating a single scramble."""


class InvalidMoveToken(ScrambleError):
    def __init__(self, token):
        self.token = token
        super().__init__(f"Invalid move notation: {token!r}")


class InvalidBufferLabel(ScrambleError):
    def __init__(self, label, kind):
        self.label = label
        self.kind = kind
        super().__init__(f"Unknown {kind} buffer: {label!r}")


class InvalidOrientationCount(ScrambleError):
    def __init__(self, count):
        self.count = count
        super().__init__(f"No orientation cost defined for {count} misoriented pieces")
