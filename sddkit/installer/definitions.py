"""Static metadata for every commandset the bundle ships."""

import logging
from collections.abc import Mapping

from sddkit import data_loader
from sddkit.errors import DefinitionError, Result
from sddkit.paths import settings_relative
from sddkit.versions import is_newer_version, is_valid_version

from .models import CommandsetCategory, CommandsetDefinition

_logging = logging.getLogger(__name__)

UNKNOWN_VERSION = "0.0.0"


class CommandsetDefinitionManager:
    """Registry of commandset definitions.

    Definitions default to the bundled data file. Tests pass their own
    mapping to exercise dependency graphs the bundle does not contain.
    """

    def __init__(self, definitions: Mapping[str, CommandsetDefinition] | None = None):
        if definitions is None:
            definitions = data_loader.get_commandset_definitions()
        self._definitions = dict(definitions)

    def get_definition(self, name: str) -> CommandsetDefinition:
        """Return the definition for ``name``, or a placeholder if unknown."""
        definition = self._definitions.get(name)
        if definition is not None:
            return definition
        _logging.debug(f"No definition for commandset '{name}', using placeholder")
        return CommandsetDefinition(
            name=name,
            description=f"Unknown commandset: {name}",
            category=CommandsetCategory.UTILITY.value,
            version=UNKNOWN_VERSION,
            files=(),
        )

    def is_known(self, name: str) -> bool:
        return name in self._definitions

    def get_available_commandsets(self) -> list[str]:
        return list(self._definitions)

    def load_all_definitions(self) -> Result[dict[str, CommandsetDefinition]]:
        """Return every definition after validating each one."""
        for definition in self._definitions.values():
            check = self.validate_definition(definition)
            if not check.ok:
                return Result.failure(check.error)
        return Result.success(dict(self._definitions))

    def validate_definition(self, definition: CommandsetDefinition) -> Result[None]:
        if not definition.name or not definition.name.strip():
            return Result.failure(DefinitionError("Commandset name must not be empty"))
        if not definition.description:
            return Result.failure(
                DefinitionError(f"Commandset '{definition.name}' is missing a description")
            )
        allowed = {c.value for c in CommandsetCategory}
        if definition.category not in allowed:
            return Result.failure(
                DefinitionError(
                    f"Commandset '{definition.name}' has invalid category "
                    f"'{definition.category}'. Must be one of: {', '.join(sorted(allowed))}"
                )
            )
        if not is_valid_version(definition.version):
            return Result.failure(
                DefinitionError(
                    f"Commandset '{definition.name}' has invalid version "
                    f"'{definition.version}'. Must be MAJOR.MINOR.PATCH"
                )
            )
        if not definition.files:
            return Result.failure(
                DefinitionError(f"Commandset '{definition.name}' declares no files")
            )
        return Result.success()

    def get_files(self, name: str) -> list[str]:
        return list(self.get_definition(name).files)

    def get_dependencies(self, name: str) -> list[str]:
        return list(self.get_definition(name).dependencies)

    def get_settings_files(self, name: str) -> list[str]:
        """Return declared ``settings/`` files with the prefix stripped."""
        files = []
        for declared in self.get_definition(name).files:
            relative = settings_relative(declared)
            if relative is not None:
                files.append(relative)
        return files

    def get_version(self, name: str) -> str:
        return self.get_definition(name).version

    def get_all_versions(self) -> dict[str, str]:
        return {name: d.version for name, d in self._definitions.items()}

    def is_newer_version(self, installed: str | None, bundle: str) -> bool:
        return is_newer_version(installed, bundle)


__all__ = [
    "UNKNOWN_VERSION",
    "CommandsetDefinitionManager",
]
