"""Declarative base shared by all marketplace models."""

from sqlalchemy.orm import declarative_base

Base = declarative_base()
