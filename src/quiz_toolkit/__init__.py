"""Top-level package for the quiz toolkit.

Provides subpackages:
- quiz_toolkit.core – data models, ids, errors, diagnostics, schemas
- quiz_toolkit.markup – source-markup lexer, parser and builder
- quiz_toolkit.exchange – exchange package (QTI / Common Cartridge) codec
- quiz_toolkit.numbering – figure/equation label numbering and references
- quiz_toolkit.pipeline – end-to-end markup <-> package conversions
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        try:
            content = pyproject.read_text(encoding="utf-8")
        except OSError:
            content = ""
        for line in content.splitlines():
            if line.strip().startswith("version"):
                # Parse: version = "0.3.0"
                return line.split("=")[1].strip().strip('"').strip("'")

    from importlib.metadata import PackageNotFoundError, version as pkg_version
    try:
        return pkg_version("quiz_toolkit")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__all__: list[str] = ["__version__"]
