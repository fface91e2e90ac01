"""
Font store backed by a directory of font files.
"""

# Standard Library
import pathlib
import re

# local repo modules
import table_card_engine as tce
import table_card_engine.config
import table_card_engine.fonts


CustomFont = tce.config.CustomFont
StoreUnavailable = tce.config.StoreUnavailable

ACCEPTED_FONT_EXTENSIONS = (".ttf", ".otf", ".woff", ".woff2")
UNSAFE_FILENAME_PATTERN = re.compile(r"[^a-zA-Z0-9_\u4e00-\u9fa5.]")


class UnsupportedFontFormat(ValueError):
	"""
	The uploaded file does not have an accepted font extension.
	"""


#============================================
def sanitize_font_filename(original_name: str) -> str:
	"""
	Reduce an uploaded filename to a safe character set.

	Letters, digits, underscores, dots and common CJK ideographs are kept;
	everything else becomes an underscore.

	Args:
		original_name: Name supplied by the uploader.

	Returns:
		Sanitized base filename.
	"""
	base_name = original_name.replace("\\", "/").rsplit("/", 1)[-1]
	return UNSAFE_FILENAME_PATTERN.sub("_", base_name)


#============================================
def is_accepted_font(file_name: str) -> bool:
	"""
	Check a filename against the accepted font extensions.

	Args:
		file_name: Font filename.

	Returns:
		True if the extension is accepted.
	"""
	return file_name.lower().endswith(ACCEPTED_FONT_EXTENSIONS)


#============================================
def font_display_name(file_name: str) -> str:
	"""
	Derive the family name from a font filename.

	Args:
		file_name: Font filename.

	Returns:
		Filename up to its first dot.
	"""
	return file_name.split(".")[0]


class FontStore:
	def __init__(self, directory: pathlib.Path):
		self.directory = pathlib.Path(directory)

	def _entry(self, path: pathlib.Path) -> CustomFont:
		return CustomFont(
			name=font_display_name(path.name),
			fileName=path.name,
			url=path.resolve().as_uri(),
		)

	def _font_paths(self) -> list[pathlib.Path]:
		if not self.directory.exists():
			return []
		try:
			paths = [
				path for path in self.directory.iterdir()
				if path.is_file() and is_accepted_font(path.name)
			]
		except OSError as error:
			raise StoreUnavailable(f"Cannot list fonts in {self.directory}: {error}") from error
		return sorted(paths, key=lambda path: path.name)

	def path_for(self, file_name: str) -> pathlib.Path:
		return self.directory / pathlib.Path(file_name).name

	def superseded(self) -> list[CustomFont]:
		"""
		List font files hidden by a newer file with the same display name.

		Returns:
			CustomFont entries still on disk but no longer reachable by name.
		"""
		active = {font.fileName for font in self.catalog().values()}
		return [font for font in self.list() if font.fileName not in active]

	def list(self) -> list[CustomFont]:
		"""
		List stored font files.

		Returns:
			CustomFont entries sorted by filename.
		"""
		return [self._entry(path) for path in self._font_paths()]

	def upload(self, file_bytes: bytes, original_name: str) -> CustomFont:
		"""
		Store an uploaded font file.

		Args:
			file_bytes: Font file contents.
			original_name: Name supplied by the uploader.

		Returns:
			CustomFont for the stored file.

		Raises:
			UnsupportedFontFormat: Extension is not accepted; nothing is written.
			ValueError: No font data.
		"""
		if not is_accepted_font(original_name):
			raise UnsupportedFontFormat(
				f"{original_name}: accepted extensions are {', '.join(ACCEPTED_FONT_EXTENSIONS)}"
			)
		if not file_bytes:
			raise ValueError(f"{original_name}: no font data")
		file_name = sanitize_font_filename(original_name)
		target = self.path_for(file_name)
		temp_path = target.with_name(target.name + ".part")
		try:
			self.directory.mkdir(parents=True, exist_ok=True)
			temp_path.write_bytes(file_bytes)
			temp_path.replace(target)
		except OSError as error:
			raise StoreUnavailable(f"Cannot store font {file_name}: {error}") from error
		return self._entry(target)

	def delete(self, file_name: str) -> None:
		"""
		Delete a stored font file. Missing files are ignored.

		Args:
			file_name: Stored filename.
		"""
		path = self.path_for(file_name)
		try:
			if path.exists():
				path.unlink()
		except OSError as error:
			raise StoreUnavailable(f"Cannot delete font {file_name}: {error}") from error

	def catalog(self) -> dict[str, CustomFont]:
		"""
		Map display names to fonts, newest file winning on a name clash.

		Returns:
			Dict of family name to CustomFont.
		"""
		try:
			paths = sorted(self._font_paths(), key=lambda path: (path.stat().st_mtime, path.name))
		except OSError as error:
			raise StoreUnavailable(f"Cannot read fonts in {self.directory}: {error}") from error
		entries: dict[str, CustomFont] = {}
		for path in paths:
			entries[font_display_name(path.name)] = self._entry(path)
		return entries

	def load_ready_fonts(self, verbose: bool = False) -> frozenset[str]:
		"""
		Register catalog fonts with ReportLab.

		Fonts ReportLab cannot load stay pending and render with fallback
		metrics.

		Args:
			verbose: Print one line per font.

		Returns:
			Family names that are ready to draw.
		"""
		ready = set()
		for name, font in self.catalog().items():
			loaded = tce.fonts.register_font_file(name, self.path_for(font.fileName))
			if loaded:
				ready.add(name)
			if verbose:
				status = "ready" if loaded else "pending (fallback metrics)"
				print(f"Font {name} ({font.fileName}): {status}")
		return frozenset(ready)
