"""
Error classes raised by the bout engine.
Callers (API routes, CLI) turn these into user-facing messages.
"""


class BoutError(Exception):
    """Base class for recoverable engine errors"""
    pass


class InvalidChoice(BoutError):
    def __init__(self, phase: str, choice: str):
        super().__init__(f"'{choice}' is not a valid choice for the {phase} phase")
        self.phase = phase
        self.choice = choice


class NotInMatch(BoutError):
    def __init__(self, who: str, match_id: str):
        super().__init__(f"{who} is not part of match {match_id}")
        self.who = who
        self.match_id = match_id


class PhaseAlreadyResolved(BoutError):
    def __init__(self, phase: str, detail: str = "already resolved"):
        super().__init__(f"Phase {phase}: {detail}")
        self.phase = phase


class NoActiveMatch(BoutError):
    def __init__(self, detail: str = "No active match"):
        super().__init__(detail)


class InvalidBuild(BoutError):
    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


class BoutInProgress(BoutError):
    def __init__(self, match_id: str):
        super().__init__(f"Bout {match_id} is still in progress")
        self.match_id = match_id
