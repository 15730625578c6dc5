"""
Version information for contact-relay
"""
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
import tomllib


def get_version() -> str:
    """Read the version from pyproject.toml, falling back to installed metadata.

    Returns:
        Version string, or "unknown"
    """
    pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
    try:
        with open(pyproject_path, "rb") as f:
            data = tomllib.load(f)
        return data["project"]["version"]
    except (OSError, tomllib.TOMLDecodeError, KeyError):
        pass

    try:
        return version("contact-relay")
    except PackageNotFoundError:
        return "unknown"


__version__ = get_version()
