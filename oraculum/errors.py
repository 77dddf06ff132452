"""Failure taxonomy for the remote generation calls.

Every failure the generation client can produce is one of the kinds below;
the state machine never sees a raw SDK or network exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    CREDENTIAL_MISSING = "credential_missing"
    EMPTY_RESPONSE = "empty_response"
    MALFORMED_RESPONSE = "malformed_response"
    NO_IMAGE_PRODUCED = "no_image_produced"
    TRANSPORT = "transport"


GENERIC_MESSAGE = "Une erreur mystique est survenue."
EDIT_FAILURE_PREFIX = "Impossible de modifier l'image: "


class GenerationError(Exception):
    kind: ErrorKind = ErrorKind.TRANSPORT
    default_message: str = GENERIC_MESSAGE

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class CredentialMissing(GenerationError):
    kind = ErrorKind.CREDENTIAL_MISSING
    default_message = "La clé API n'est pas configurée. Veuillez vérifier votre environnement."


class EmptyResponse(GenerationError):
    kind = ErrorKind.EMPTY_RESPONSE
    default_message = "Réponse vide de l'oracle."


class MalformedResponse(GenerationError):
    kind = ErrorKind.MALFORMED_RESPONSE
    default_message = "Réponse illisible de l'oracle."


class NoImageProduced(GenerationError):
    kind = ErrorKind.NO_IMAGE_PRODUCED
    default_message = "Impossible de générer l'image de la carte."


class TransportError(GenerationError):
    kind = ErrorKind.TRANSPORT


@dataclass(frozen=True)
class StateError:
    """The error currently shown to the user."""

    kind: ErrorKind
    message: str

    @classmethod
    def from_exception(cls, exc: GenerationError, prefix: str = "") -> "StateError":
        return cls(kind=exc.kind, message=f"{prefix}{exc.message}")
