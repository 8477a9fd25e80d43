"""
Common exception definitions
"""


class LobbyError(Exception):
    """
    Base class for errors reported back to whoever triggered an event.

    The `message` is meant to be shown to the user.
    """
    def __init__(self, message, *args, **kwargs):
        super().__init__(message, *args, **kwargs)
        self.message = message


class CapacityExceeded(LobbyError):
    pass


class DuplicateEnrollment(LobbyError):
    """
    The participant is already a member. Callers usually ignore this.
    """


class NotAuthorized(LobbyError):
    pass


class SessionNotFound(LobbyError):
    pass


class SessionExists(LobbyError):
    pass


class InvalidTransition(LobbyError):
    """
    The action is not legal in the current state of the session.
    """


class InsufficientParticipants(LobbyError):
    pass


class NothingToUndo(LobbyError):
    pass


class PlayerNotFound(LobbyError):
    pass


class InvalidHandle(LobbyError):
    """
    An external game handle was not of the form `Name#TAG`.
    """


class PartialPersistenceFailure(LobbyError):
    """
    Writing a result to the player store failed for some of the participants.

    The in-memory state transition has already happened when this is raised.
    """
    def __init__(self, message, failed_identities, result, *args, **kwargs):
        super().__init__(message, *args, **kwargs)
        self.failed_identities = tuple(failed_identities)
        self.result = result
