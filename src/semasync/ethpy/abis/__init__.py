"""Load ABIs"""

from __future__ import annotations

import json
import os

# Minimal Semacaulk abi with only the entries the sync reads. Override it with the deployed contract's artifact.
DEFAULT_SEMACAULK_ABI_PATH = os.path.join(os.path.dirname(os.path.abspath(__file__)), "Semacaulk.abi.json")


def load_abi_from_file(file_name: str) -> list[dict]:
    """Load an ABI JSON given an ABI file.

    Arguments
    ---------
    file_name: str
        The file name of the abi json, e.g. a forge build artifact.

    Returns
    -------
    list[dict]
       The "abi" field of the JSON decoded file
    """
    with open(file_name, mode="r", encoding="UTF-8") as file:
        data = json.load(file)
    if isinstance(data, dict) and "abi" in data:
        return data["abi"]
    raise AssertionError(f"ABI for {file_name=} must contain an 'abi' field")
