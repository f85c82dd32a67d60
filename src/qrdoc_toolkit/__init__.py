"""Top-level package for the QR document toolkit.

Provides subpackages:
- qrdoc_toolkit.core – marker models, manifest schema and serialization
- qrdoc_toolkit.embedder – placement/pagination engine and PDF output
- qrdoc_toolkit.extractor – upstream hyperlink extraction
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"

    if pyproject.exists():
        for line in pyproject.read_text(encoding="utf-8").splitlines():
            if line.strip().startswith("version"):
                # Parse: version = "0.3.1"
                return line.split("=")[1].strip().strip('"').strip("'")

    from importlib.metadata import PackageNotFoundError, version as pkg_version
    try:
        return pkg_version("qrdoc_toolkit")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__copyright__ = "Copyright 2026 The qrdoc_toolkit Authors"
__all__: list[str] = ["__version__"]
