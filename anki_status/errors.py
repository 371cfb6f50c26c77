from __future__ import annotations

from pathlib import Path


class AnkiStatusError(Exception):
    pass


class ConfigError(AnkiStatusError):
    pass


class ResolutionError(AnkiStatusError):
    hint = ""


class NoDataPathsError(ResolutionError):
    hint = "Is Anki installed? Pass --path to point at its data directory."

    def __init__(self, checked: list[Path]) -> None:
        self.checked = list(checked)
        listing = ", ".join(str(p) for p in self.checked)
        super().__init__(f"No Anki data paths found (checked: {listing})")


class MultipleInstallsError(ResolutionError):
    hint = "Do you have multiple Anki installs? Pass --path to pick one."

    def __init__(self, installs: list[Path]) -> None:
        self.installs = list(installs)
        listing = ", ".join(str(p) for p in self.installs)
        super().__init__(
            f"Multiple Anki data paths with collection files found: {listing}"
        )


class NoProfileMatchError(ResolutionError):
    hint = "Check the spelling of --profile; names are matched exactly."

    def __init__(self, profile: str, available: list[str]) -> None:
        self.profile = profile
        self.available = list(available)
        super().__init__(
            f"No Anki collection matched profile {profile!r} "
            f"(available: {', '.join(self.available) or 'none'})"
        )


class MultipleProfilesError(ResolutionError):
    hint = "Do you have multiple Anki profiles? Pass --profile to pick one."

    def __init__(self, paths: list[Path], profiles: list[str]) -> None:
        self.paths = list(paths)
        self.profiles = list(profiles)
        super().__init__(
            f"Multiple Anki collections found for profiles: {', '.join(self.profiles)}"
        )


class MalformedPathError(ResolutionError):
    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"Expected an Anki2 directory above {path}")


class TraversalError(ResolutionError):
    def __init__(self, path: Path, cause: OSError) -> None:
        self.path = path
        super().__init__(f"Cannot read {path}: {cause}")


class StoreError(AnkiStatusError):
    pass


class StoreLockedError(StoreError):
    pass
