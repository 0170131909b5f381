"""Custom exceptions for buildgraph.

Exception Hierarchy:
-------------------
BuildGraphError (base)
├── DeclarationError            # Malformed manifest or package declaration
├── DuplicateDefinitionError    # Same (name, dirname) registered twice
├── AmbiguousProvidesError      # Several enabled packages provide one name
└── UnknownPackageError         # Registry lookup of an id that was never issued

Usage Guidelines:
----------------
1. Only contradictions the resolver cannot settle on its own are raised.
   They abort the whole pass before sorting begins.

2. Everything expressible as "this package cannot be built" is NOT an
   exception. Missing requirements and dependency cycles are recorded as
   diagnostics (see models/diagnostics.py) on the disabled package, and
   the pass continues with the remaining packages.

3. Use BuildGraphError as catch-all at the CLI boundary.
"""


class BuildGraphError(Exception):
    """Base exception for all buildgraph errors."""

    pass


class DeclarationError(BuildGraphError):
    """Raised when a package declaration cannot be validated."""

    def __init__(
        self,
        message: str,
        entry_index: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """
        Initialize DeclarationError.

        Args:
            message: Error message.
            entry_index: Optional position of the offending entry in the manifest.
            original_error: Optional original exception that caused this error.
        """
        super().__init__(message)
        self.entry_index = entry_index
        self.original_error = original_error

    def __str__(self) -> str:
        """
        Return string representation with the entry index if available.

        Returns:
            str: Error message prefixed with the entry index if set.
        """
        if self.entry_index is not None:
            return f"Package #{self.entry_index}: {self.args[0]}"
        return str(self.args[0]) if self.args else "Declaration error"


class DuplicateDefinitionError(BuildGraphError):
    """Raised when the same package is defined twice in the same directory."""

    def __init__(self, name: str, dirname: str, existing_id: int) -> None:
        """
        Initialize DuplicateDefinitionError.

        Args:
            name: Declared package name.
            dirname: Directory holding both definitions.
            existing_id: Registry id of the first definition.
        """
        super().__init__(f"Package {name!r} is already defined in {dirname!r} (id {existing_id})")
        self.name = name
        self.dirname = dirname
        self.existing_id = existing_id


class AmbiguousProvidesError(BuildGraphError):
    """
    Raised when a requirement matches several enabled providers.

    Resolution tolerates several packages providing the same name as long
    as at most one of them is enabled. Two enabled candidates cannot be
    told apart, so the build description must be fixed.
    """

    def __init__(self, required_name: str, requirer: str, candidates: list[str]) -> None:
        """
        Initialize AmbiguousProvidesError.

        Args:
            required_name: The logical name being resolved.
            requirer: Name of the package holding the requirement.
            candidates: Names of the enabled packages providing required_name.
        """
        super().__init__(
            f"Package {requirer!r} requires {required_name!r}, which is provided by "
            f"several enabled packages: {', '.join(candidates)}"
        )
        self.required_name = required_name
        self.requirer = requirer
        self.candidates = candidates


class UnknownPackageError(BuildGraphError):
    """Raised when looking up a package id the registry never issued."""

    def __init__(self, package_id: int) -> None:
        """
        Initialize UnknownPackageError.

        Args:
            package_id: The id that was looked up.
        """
        super().__init__(f"Unknown package id: {package_id}")
        self.package_id = package_id
