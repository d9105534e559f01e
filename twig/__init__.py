"""Twig - a minimal content-addressed version control engine."""

__version__ = '0.1.0'

from twig.core.repository import Repository
from twig.core.objects import ObjectKind, TwigObject, Blob, Tree, Commit
from twig.core import errors

__all__ = [
    'Repository',
    'ObjectKind',
    'TwigObject',
    'Blob',
    'Tree',
    'Commit',
    'errors',
]
