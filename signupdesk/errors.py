"""Hiérarchie des erreurs du client et type de résultat des opérations."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E", bound="SignupDeskError")


class SignupDeskError(RuntimeError):
    """Erreur de base du client SignupDesk."""


class ActivitiesApiError(SignupDeskError):
    """Échec de transport ou réponse illisible renvoyée par le service."""


class AuthError(SignupDeskError):
    """Identifiants refusés, jeton expiré ou invalide."""


class FetchError(SignupDeskError):
    """Impossible de récupérer la liste des activités."""


class MutationError(SignupDeskError):
    """Inscription ou désinscription refusée ou impossible."""


@dataclass(frozen=True, slots=True)
class Result(Generic[T, E]):
    """Valeur de retour des opérations qui ne doivent jamais lever d'exception."""

    value: T | None = None
    error: E | None = None

    @classmethod
    def success(cls, value: T) -> "Result[T, E]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: E) -> "Result[T, E]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None
