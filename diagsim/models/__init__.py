"""
Models package - Data layer for diagsim.
Contains the diagram value handed to the compiler and exporters.
"""

from diagsim.models.diagram import Block, Connection, Diagram

__all__ = ['Block', 'Connection', 'Diagram']
