"""Built-in and project-local custom profiles."""

import logging
from pathlib import Path

from sddkit import data_loader
from sddkit.config import ConfigError, dump_json_document, load_json_document
from sddkit.errors import ProfileError, Result
from sddkit.paths import PROFILES_FILE, project_path
from sddkit.storage import Storage

from .definitions import CommandsetDefinitionManager
from .models import Profile
from .workflows import SPEC_WORKFLOWS

_logging = logging.getLogger(__name__)

DEFAULT_PROFILE = "minimal"


class ProfileManager:
    """Resolves profile names to commandset lists.

    Built-in profiles come from bundled data and never change. Custom
    profiles live per project in ``.kiro/settings/profiles.json`` as a map
    keyed by profile name.
    """

    def __init__(
        self,
        storage: Storage,
        definitions: CommandsetDefinitionManager,
        builtins: dict[str, Profile] | None = None,
    ):
        self.storage = storage
        self.definitions = definitions
        if builtins is None:
            builtins = data_loader.get_builtin_profiles()
        self._builtins = dict(builtins)

    def is_built_in_profile(self, name: str) -> bool:
        return name in self._builtins

    def get_all_profiles(self) -> list[Profile]:
        return list(self._builtins.values())

    def get_profile(self, name: str) -> Profile:
        """Return a built-in profile, falling back to minimal for unknown names."""
        profile = self._builtins.get(name)
        if profile is None:
            _logging.warning(f"Unknown profile '{name}', falling back to '{DEFAULT_PROFILE}'")
            profile = self._builtins[DEFAULT_PROFILE]
        return profile

    def get_commandsets_for_profile(self, name: str) -> list[str]:
        return list(self.get_profile(name).commandsets)

    def validate_profile(self, profile: Profile) -> Result[None]:
        if not profile.name or not profile.name.strip():
            return Result.failure(ProfileError("Profile name must not be empty"))
        if not profile.commandsets:
            return Result.failure(
                ProfileError(f"Profile '{profile.name}' must include at least one commandset")
            )
        for name in profile.commandsets:
            if not self.definitions.is_known(name):
                return Result.failure(
                    ProfileError(f"Profile '{profile.name}' references unknown commandset '{name}'")
                )
        # Spec workflow variants install to the same command targets
        variants = [name for name in dict.fromkeys(profile.commandsets) if name in SPEC_WORKFLOWS]
        if len(variants) > 1:
            return Result.failure(
                ProfileError(
                    f"Profile '{profile.name}' combines spec workflows {variants}; pick one"
                )
            )
        return Result.success()

    def _store_path(self, project: Path) -> Path:
        return project_path(project, PROFILES_FILE)

    def _read_store(self, project: Path) -> dict:
        """Return the raw profile map, or {} when missing or unparseable."""
        try:
            data = load_json_document(self.storage, self._store_path(project))
        except ConfigError as e:
            _logging.warning(f"Ignoring unreadable custom profiles: {e}")
            return {}
        return data or {}

    def load_custom_profiles(self, project: Path) -> dict[str, Profile]:
        profiles = {}
        for name, entry in self._read_store(project).items():
            if not isinstance(entry, dict):
                continue
            commandsets = entry.get("commandsets")
            if not isinstance(commandsets, list) or not all(
                isinstance(c, str) for c in commandsets
            ):
                continue
            description = entry.get("description")
            profile = Profile(
                name=name,
                description=description if isinstance(description, str) else "",
                commandsets=list(commandsets),
                is_custom=True,
            )
            if self.validate_profile(profile).ok:
                profiles[name] = profile
        return profiles

    def save_custom_profile(self, project: Path, profile: Profile) -> Result[None]:
        if self.is_built_in_profile(profile.name):
            return Result.failure(
                ProfileError(f"Cannot overwrite built-in profile '{profile.name}'")
            )
        check = self.validate_profile(profile)
        if not check.ok:
            return check

        store = self._read_store(project)
        store[profile.name] = profile.to_dict()
        try:
            dump_json_document(self.storage, self._store_path(project), store)
        except OSError as e:
            return Result.failure(ProfileError(f"Could not save profile '{profile.name}': {e}"))
        return Result.success()

    def delete_custom_profile(self, project: Path, name: str) -> Result[None]:
        if self.is_built_in_profile(name):
            return Result.failure(ProfileError(f"Cannot delete built-in profile '{name}'"))
        store = self._read_store(project)
        if name not in store:
            return Result.failure(ProfileError(f"Custom profile '{name}' not found"))
        del store[name]
        try:
            dump_json_document(self.storage, self._store_path(project), store)
        except OSError as e:
            return Result.failure(ProfileError(f"Could not delete profile '{name}': {e}"))
        return Result.success()

    def resolve_profile(self, project: Path, name: str) -> Profile:
        """Look up ``name`` as a built-in, then as a project custom profile.

        Unknown names fall back to the minimal profile.
        """
        if self.is_built_in_profile(name):
            return self._builtins[name]
        custom = self.load_custom_profiles(project).get(name)
        if custom is not None:
            return custom
        return self.get_profile(name)


__all__ = [
    "DEFAULT_PROFILE",
    "ProfileManager",
]
