"""Failure taxonomy for a single chat-turn operation.

Every error here is recovered at the operation boundary (the orchestrator)
and never leaves a Mod partially updated.
"""


class AutoCoderError(Exception):
    """Base class for recoverable operation failures."""

    user_message = "Something went wrong."

    def __str__(self) -> str:
        detail = super().__str__()
        return detail or self.user_message


class MalformedResponse(AutoCoderError):
    user_message = "The AI returned a response that could not be understood. Please try rephrasing your request."


class TransportError(AutoCoderError):
    user_message = "The AI service could not be reached."


class RequestTimeout(TransportError):
    user_message = "The AI service took too long to respond."


class InvalidName(AutoCoderError):
    user_message = "The suggested mod name is not a valid folder name."


class NoUnitToEdit(AutoCoderError):
    user_message = "There is no generated unit to edit yet."


class NoModYet(AutoCoderError):
    user_message = "Generate a unit first; the mod is created with the first unit."
