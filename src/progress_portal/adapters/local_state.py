"""Per-device persisted state in a JSON file."""

from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field

from progress_portal.services.preferences import LanguagePreference
from progress_portal.services.unlocks import UnlockLedger


class DeviceState(BaseModel):
    """What one device keeps outside the content store."""

    unlocked_project_ids: list[str] = Field(default_factory=list)
    language: str | None = None


class LocalState(BaseModel):
    """Device states keyed by device id."""

    devices: dict[str, DeviceState] = Field(default_factory=dict)


@dataclass
class JsonFileLocalState(UnlockLedger, LanguagePreference):
    """Unlock ledger and language preference of one device.

    All devices share the JSON file; each only reads and writes its own entry.
    """

    path: Path
    device_id: str

    def get(self) -> set[str]:
        """Return the unlocked project ids."""
        return set(self._device(self._load()).unlocked_project_ids)

    def set(self, ids: set[str]) -> None:
        """Replace the unlocked project ids."""
        state = self._load()
        self._device(state).unlocked_project_ids = sorted(ids)
        self._save(state)

    def get_language(self) -> str | None:
        """Return the stored language code."""
        return self._device(self._load()).language

    def set_language(self, code: str) -> None:
        """Store the language code."""
        state = self._load()
        self._device(state).language = code
        self._save(state)

    def _device(self, state: LocalState) -> DeviceState:
        return state.devices.setdefault(self.device_id, DeviceState())

    def _load(self) -> LocalState:
        if not self.path.exists():
            return LocalState()
        return LocalState.model_validate_json(self.path.read_text(encoding="utf-8"))

    def _save(self, state: LocalState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(state.model_dump_json(indent=2), encoding="utf-8")


@dataclass
class MemoryLocalState(UnlockLedger, LanguagePreference):
    """State for a caller without a device id; lives for one request."""

    ids: set[str] = field(default_factory=set)
    language: str | None = None

    def get(self) -> set[str]:
        return set(self.ids)

    def set(self, ids: set[str]) -> None:
        self.ids = set(ids)

    def get_language(self) -> str | None:
        return self.language

    def set_language(self, code: str) -> None:
        self.language = code
