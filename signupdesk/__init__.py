"""Client de bureau pour le service d'inscription aux activités."""

__version__ = "0.1.0"
