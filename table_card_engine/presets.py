"""
Preset store backed by a JSON file.

The file holds {"presets": [{"id", "name", "settings"}, ...]} with settings
in the stored camelCase layout.
"""

# Standard Library
import json
import pathlib

# local repo modules
import table_card_engine as tce
import table_card_engine.config


LayoutConfig = tce.config.LayoutConfig
Preset = tce.config.Preset
StoreUnavailable = tce.config.StoreUnavailable


#============================================
def preset_from_dict(data: dict) -> Preset:
	"""
	Build a Preset from a stored entry, filling missing settings.

	Args:
		data: Stored preset dict.

	Returns:
		Preset.
	"""
	return Preset(
		id=str(data.get("id") or tce.config.new_record_id()),
		name=str(data.get("name") or ""),
		settings=tce.config.layout_config_from_dict(data.get("settings")),
	)


#============================================
def preset_to_dict(preset: Preset) -> dict:
	"""
	Serialize a Preset for storage.

	Args:
		preset: Preset.

	Returns:
		JSON-ready dict.
	"""
	return {
		"id": preset.id,
		"name": preset.name,
		"settings": tce.config.layout_config_to_dict(preset.settings),
	}


class PresetStore:
	def __init__(self, path: pathlib.Path):
		self.path = pathlib.Path(path)

	def _read(self) -> dict:
		if not self.path.exists():
			return {"presets": []}
		try:
			with self.path.open("r", encoding="utf-8") as handle:
				data = json.load(handle)
		except (OSError, json.JSONDecodeError) as error:
			raise StoreUnavailable(f"Cannot read presets from {self.path}: {error}") from error
		if not isinstance(data, dict) or not isinstance(data.get("presets"), list):
			return {"presets": []}
		return data

	def _write(self, data: dict) -> None:
		temp_path = self.path.with_name(self.path.name + ".tmp")
		try:
			self.path.parent.mkdir(parents=True, exist_ok=True)
			with temp_path.open("w", encoding="utf-8") as handle:
				json.dump(data, handle, indent=2, ensure_ascii=False)
			temp_path.replace(self.path)
		except OSError as error:
			raise StoreUnavailable(f"Cannot write presets to {self.path}: {error}") from error

	def list(self) -> list[Preset]:
		"""
		Load every stored preset.

		Returns:
			Presets in stored order.
		"""
		data = self._read()
		return [preset_from_dict(entry) for entry in data["presets"] if isinstance(entry, dict)]

	def get(self, preset_id: str) -> Preset | None:
		for preset in self.list():
			if preset.id == preset_id:
				return preset
		return None

	def find_by_name(self, name: str) -> Preset | None:
		for preset in self.list():
			if preset.name == name:
				return preset
		return None

	def upsert(self, preset: Preset) -> None:
		"""
		Insert a preset or replace the one with the same id.

		Args:
			preset: Preset to store.
		"""
		data = self._read()
		entry = preset_to_dict(preset)
		entries = data["presets"]
		for index, existing in enumerate(entries):
			if isinstance(existing, dict) and existing.get("id") == preset.id:
				entries[index] = entry
				break
		else:
			entries.append(entry)
		self._write(data)

	def delete(self, preset_id: str) -> None:
		"""
		Remove a preset by id. Unknown ids are ignored.

		Args:
			preset_id: Preset id.
		"""
		data = self._read()
		data["presets"] = [
			entry for entry in data["presets"]
			if not (isinstance(entry, dict) and entry.get("id") == preset_id)
		]
		self._write(data)

	def save_named(self, name: str, settings: LayoutConfig) -> Preset:
		"""
		Save settings under a name, overwriting a preset with that name.

		Args:
			name: Preset name.
			settings: Layout configuration.

		Returns:
			The stored Preset.
		"""
		existing = self.find_by_name(name)
		preset_id = existing.id if existing is not None else tce.config.new_record_id()
		preset = Preset(id=preset_id, name=name, settings=settings)
		self.upsert(preset)
		return preset
