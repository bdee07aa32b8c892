# econ_dp/io/file_utils.py
"""
File I/O utilities for loading and saving JSON data.

This module provides file operations with error logging for
configuration files and small metadata records.

Example:
    >>> from econ_dp.io.file_utils import load_json_file, save_json_file
    >>> data = load_json_file("config.json")
    >>> save_json_file(data, "backup/config.json")
"""

import json
import os
import logging
from typing import Dict, Any

logger = logging.getLogger(__name__)


def load_json_file(filename: str) -> Dict[str, Any]:
    """
    Load a JSON file, logging the cause of any failure.

    Args:
        filename: Path to the JSON file.

    Returns:
        Parsed JSON data as a dictionary.

    Raises:
        FileNotFoundError: If the file does not exist.
        json.JSONDecodeError: If the file is not valid JSON.
    """
    if not os.path.exists(filename):
        logger.error(f"File '{filename}' not found.")
        raise FileNotFoundError(filename)

    try:
        with open(filename, 'r') as f:
            return json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {filename}: {e}")
        raise


def save_json_file(data: Dict[str, Any], filename: str) -> None:
    """
    Save data to a JSON file with directory creation.

    Args:
        data: Dictionary to serialize to JSON.
        filename: Target file path.

    Raises:
        IOError: If write operation fails.
    """
    directory = os.path.dirname(filename)
    if directory:
        os.makedirs(directory, exist_ok=True)
    try:
        with open(filename, 'w') as f:
            json.dump(data, f, indent=4)
        logger.info(f"Saved data to {filename}")
    except IOError as e:
        logger.error(f"Failed to save to {filename}: {e}")
        raise
