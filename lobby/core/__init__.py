"""
Service framework

Small, self contained helpers for building the long lived singleton objects
that make up a lobby instance.
"""

from .dependency_injector import DependencyInjector
from .service import Service, create_services

__all__ = (
    "DependencyInjector",
    "Service",
    "create_services"
)
