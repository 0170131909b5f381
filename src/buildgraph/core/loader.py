"""Manifest loader - reads package declarations from YAML or JSON.

A manifest is a plain data document listing package declarations:

    packages:
      - name: unix
        type: library
        dirname: libs/unix
      - name: server
        type: program
        requires:
          - unix
          - name: ssl
            optional: true

JSON documents with the same shape are accepted as well, since YAML is a
superset of JSON. Every declaration is validated with Pydantic; entries
without an explicit location are attributed to the manifest, and entries
without defining files are defined by the manifest itself (not hashed).

Errors:
------
- DeclarationError: unreadable document, wrong top-level shape, or an entry
  failing validation (with the entry index)
- FileNotFoundError: manifest does not exist
"""

from pathlib import Path
from typing import Any

import structlog
import yaml
from pydantic import ValidationError

from ..models.declarations import DefiningFileDeclaration, PackageDeclaration
from ..models.package import SourceLocation
from ..utils.exceptions import DeclarationError

logger = structlog.get_logger(__name__)


class ManifestLoader:
    """
    Load and validate a manifest.

    Attributes:
        manifest_path: Path of the manifest
        errors: Errors collected in non-strict mode
    """

    def __init__(self, manifest_path: Path) -> None:
        self.manifest_path = Path(manifest_path)
        self.errors: list[DeclarationError] = []

    def load(self, strict: bool = True) -> list[PackageDeclaration]:
        """
        Read and validate every declaration.

        Args:
            strict: If True, raise on the first invalid entry. If False, collect
                errors in ``self.errors`` and skip the entry.

        Returns:
            Valid declarations in manifest order

        Raises:
            FileNotFoundError: If the manifest does not exist
            DeclarationError: If the document or an entry is invalid (strict mode)
        """
        if not self.manifest_path.exists():
            raise FileNotFoundError(f"Manifest not found: {self.manifest_path}")

        entries = self._read_entries()
        declarations: list[PackageDeclaration] = []

        for index, entry in enumerate(entries):
            try:
                declaration = PackageDeclaration.model_validate(entry)
            except ValidationError as e:
                error = DeclarationError(
                    self._format_validation_error(e),
                    entry_index=index,
                    original_error=e,
                )
                if strict:
                    raise error from e
                self.errors.append(error)
                continue

            declarations.append(self._with_defaults(declaration, index))

        if not declarations:
            logger.warning("Manifest declares no packages", manifest=str(self.manifest_path))

        logger.info(
            "Manifest loaded",
            manifest=str(self.manifest_path),
            packages=len(declarations),
            errors=len(self.errors),
        )

        return declarations

    def _read_entries(self) -> list[Any]:
        try:
            with open(self.manifest_path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise DeclarationError(
                f"Invalid YAML in manifest {self.manifest_path}: {e}", original_error=e
            ) from e

        if data is None:
            return []

        if isinstance(data, list):
            return data

        if not isinstance(data, dict) or not isinstance(data.get("packages", []), list):
            raise DeclarationError(
                f"Invalid manifest structure in {self.manifest_path}: "
                f"expected a 'packages' list, got {type(data).__name__}"
            )

        return data.get("packages") or []

    def _with_defaults(self, declaration: PackageDeclaration, index: int) -> PackageDeclaration:
        update: dict[str, Any] = {}
        if declaration.location is None:
            update["location"] = SourceLocation(filename=str(self.manifest_path))
        if not declaration.files:
            update["files"] = [DefiningFileDeclaration(path=str(self.manifest_path))]
        if not update:
            return declaration
        logger.debug("Applied manifest defaults", entry_index=index, fields=sorted(update))
        return declaration.model_copy(update=update)

    def _format_validation_error(self, error: ValidationError) -> str:
        """
        Format Pydantic validation error into human-readable message.

        Args:
            error: Pydantic ValidationError

        Returns:
            Formatted error message
        """
        errors = error.errors()
        if not errors:
            return str(error)

        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error["loc"]) or "entry"
        msg = first_error["msg"]

        if len(errors) > 1:
            return f"{field}: {msg} (and {len(errors) - 1} more errors)"
        return f"{field}: {msg}"

    def get_error_summary(self) -> str:
        """
        Summarize errors collected in non-strict mode.

        Returns:
            Human-readable error summary
        """
        if not self.errors:
            return "No errors"

        summary = [f"Found {len(self.errors)} errors:"]
        for error in self.errors[:10]:
            summary.append(f"  - {error}")

        if len(self.errors) > 10:
            summary.append(f"  ... and {len(self.errors) - 10} more errors")

        return "\n".join(summary)


def load_manifest(manifest_path: Path, strict: bool = True) -> list[PackageDeclaration]:
    """Load declarations from a manifest file."""
    return ManifestLoader(manifest_path).load(strict=strict)
