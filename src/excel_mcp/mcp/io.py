from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field

from .errors import InvalidParamsError

SUPPORTED_EXTENSIONS = frozenset({".xlsx", ".xlsm", ".xltx", ".xltm"})


class PathPolicy(BaseModel):
    """Resolution policy for workbook paths supplied by tool callers."""

    root: Path = Field(..., description="Base directory for relative paths.")

    def normalize_root(self) -> Path:
        """Return the absolute root path.

        Returns:
            Resolved root directory path.
        """
        return self.root.resolve()

    def ensure_root(self) -> Path:
        """Create the root directory if missing.

        Returns:
            Resolved root directory path.
        """
        root = self.normalize_root()
        root.mkdir(parents=True, exist_ok=True)
        return root

    def resolve(self, file_path: str) -> Path:
        """Resolve a caller-supplied path against the root.

        Absolute paths are returned unchanged; relative paths are joined
        under the root.

        Args:
            file_path: Path text from the tool arguments.

        Returns:
            Canonical workbook path.

        Raises:
            InvalidParamsError: If the path is empty.
        """
        if not file_path or not file_path.strip():
            raise InvalidParamsError("filePath must not be empty.")
        candidate = Path(file_path)
        if candidate.is_absolute():
            return candidate
        return self.normalize_root() / candidate


def ensure_supported_extension(path: Path) -> None:
    """Validate that openpyxl can read and write the workbook format.

    Raises:
        InvalidParamsError: If the suffix is not a supported Excel format.
    """
    if path.suffix.lower() not in SUPPORTED_EXTENSIONS:
        supported = ", ".join(sorted(SUPPORTED_EXTENSIONS))
        raise InvalidParamsError(
            f"Unsupported file extension: {path.name}. Supported: {supported}"
        )
