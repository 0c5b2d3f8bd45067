"""
FileService - File I/O operations for diagsim.
Handles saving and loading diagram files in JSON or YAML.
"""

import json
import logging
import os
from typing import Any, Dict

import yaml

from diagsim.exceptions import DiagramFileError, DiagramFormatError
from diagsim.models.diagram import Diagram

logger = logging.getLogger(__name__)

YAML_SUFFIXES = ('.yaml', '.yml')


class FileService:
    """
    Loads and saves diagrams.

    The format is picked from the file suffix: ``.yaml``/``.yml`` files go
    through PyYAML (``safe_load``/``safe_dump``), anything else is JSON.
    """

    @staticmethod
    def is_yaml(filepath: str) -> bool:
        return filepath.lower().endswith(YAML_SUFFIXES)

    @staticmethod
    def read_data(filepath: str) -> Dict[str, Any]:
        """
        Read the raw dict form of a diagram file.

        Raises:
            DiagramFileError: if the file cannot be read or parsed.
        """
        try:
            with open(filepath, 'r', encoding='utf-8') as fp:
                if FileService.is_yaml(filepath):
                    data = yaml.safe_load(fp)
                else:
                    data = json.load(fp)
        except OSError as e:
            raise DiagramFileError(filepath, f"cannot read file: {e}") from e
        except (yaml.YAMLError, ValueError) as e:
            raise DiagramFileError(filepath, f"cannot parse file: {e}") from e

        if not isinstance(data, dict):
            raise DiagramFileError(filepath, "top level must be a mapping")
        return data

    @staticmethod
    def load(filepath: str) -> Diagram:
        """
        Load a diagram from a JSON or YAML file.

        Args:
            filepath: Path to the diagram file

        Returns:
            The loaded Diagram

        Raises:
            DiagramFileError: if the file is unreadable or not a diagram.
        """
        data = FileService.read_data(filepath)
        try:
            diagram = Diagram.from_dict(data)
        except DiagramFormatError as e:
            raise DiagramFileError(filepath, str(e)) from e
        logger.info(f"LOADED FROM {filepath} ({len(diagram.blocks)} blocks, "
                    f"{len(diagram.connections)} connections)")
        return diagram

    @staticmethod
    def save(diagram: Diagram, filepath: str) -> None:
        """
        Write a diagram to ``filepath``, creating parent directories.

        Raises:
            DiagramFileError: if the file cannot be written.
        """
        data = diagram.to_dict()
        try:
            directory = os.path.dirname(filepath)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(filepath, 'w', encoding='utf-8') as fp:
                if FileService.is_yaml(filepath):
                    yaml.safe_dump(data, fp, sort_keys=False)
                else:
                    json.dump(data, fp, indent=4)
        except OSError as e:
            raise DiagramFileError(filepath, f"cannot write file: {e}") from e
        logger.info(f"SAVED AS {filepath}")
