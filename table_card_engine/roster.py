"""
Roster import, export and editing.
"""

# Standard Library
import csv
import dataclasses
import pathlib

# PIP3 modules
import openpyxl

# local repo modules
import table_card_engine as tce
import table_card_engine.config


CardRecord = tce.config.CardRecord

FIELD_NAMES = tce.config.FIELD_NAMES
BLANK_CARD_TEXT = tce.config.BLANK_CARD_TEXT

# header aliases per field, first non-empty match wins
COLUMN_ALIASES = {
	"chineseName": ("中文名", "Name", "姓名"),
	"englishName": ("英文名", "English Name", "拼音"),
	"chineseCompany": ("中文公司", "Company", "单位"),
	"englishCompany": ("英文公司", "English Company"),
}
EXPORT_HEADERS = {
	"chineseName": "中文名",
	"englishName": "英文名",
	"chineseCompany": "中文公司",
	"englishCompany": "英文公司",
}
TEMPLATE_SHEET_TITLE = "模板"
TEMPLATE_ROW = {
	"chineseName": "示例姓名",
	"englishName": "SAMPLE NAME",
	"chineseCompany": "示例单位名称",
	"englishCompany": "Sample Organization Name",
}
SPREADSHEET_SUFFIXES = (".xlsx", ".xlsm")


#============================================
def cell_text(value) -> str:
	"""
	Convert a spreadsheet cell value to text.

	Args:
		value: Cell value.

	Returns:
		Text, with whole floats written without a decimal part.
	"""
	if value is None:
		return ""
	if isinstance(value, float) and value.is_integer():
		return str(int(value))
	return str(value)


#============================================
def records_from_rows(rows) -> list[CardRecord]:
	"""
	Map spreadsheet rows onto card records through the alias table.

	Unmapped columns are ignored. Every row with any cell text becomes a
	record, so a row carrying only unmapped columns yields an empty card;
	entirely blank rows are skipped.

	Args:
		rows: Iterable of header -> value dicts.

	Returns:
		New CardRecords in row order.
	"""
	records = []
	for row in rows:
		if not any(cell_text(value).strip() for value in row.values()):
			continue
		values = {}
		for field in FIELD_NAMES:
			text = ""
			for alias in COLUMN_ALIASES[field]:
				candidate = cell_text(row.get(alias)).strip()
				if candidate:
					text = candidate
					break
			values[field] = text
		records.append(CardRecord(id=tce.config.new_record_id(), **values))
	return records


#============================================
def read_spreadsheet_rows(path: pathlib.Path) -> list[dict]:
	"""
	Read the first worksheet of a workbook as header-keyed rows.

	Args:
		path: Workbook path.

	Returns:
		List of row dicts.
	"""
	workbook = openpyxl.load_workbook(str(path), read_only=True, data_only=True)
	try:
		sheet = workbook.worksheets[0]
		rows = sheet.iter_rows(values_only=True)
		header_row = next(rows, None)
		if header_row is None:
			return []
		headers = [cell_text(value).strip() for value in header_row]
		result = []
		for values in rows:
			result.append({header: value for header, value in zip(headers, values) if header})
		return result
	finally:
		workbook.close()


#============================================
def read_csv_rows(path: pathlib.Path) -> list[dict]:
	"""
	Read a CSV file as header-keyed rows.

	Args:
		path: CSV path.

	Returns:
		List of row dicts.
	"""
	with path.open("r", encoding="utf-8-sig", newline="") as handle:
		reader = csv.DictReader(handle)
		return [dict(row) for row in reader]


#============================================
def read_roster(path: pathlib.Path) -> list[CardRecord]:
	"""
	Import card records from a spreadsheet or CSV file.

	Args:
		path: Input path.

	Returns:
		CardRecords in file order.
	"""
	path = pathlib.Path(path)
	suffix = path.suffix.lower()
	if suffix in SPREADSHEET_SUFFIXES:
		rows = read_spreadsheet_rows(path)
	elif suffix == ".csv":
		rows = read_csv_rows(path)
	else:
		raise ValueError(f"Unsupported roster file type: {path.name}")
	return records_from_rows(rows)


#============================================
def _write_workbook(path: pathlib.Path, title: str, rows: list[dict]) -> None:
	workbook = openpyxl.Workbook()
	sheet = workbook.active
	sheet.title = title
	sheet.append([EXPORT_HEADERS[field] for field in FIELD_NAMES])
	for row in rows:
		sheet.append([row.get(field, "") for field in FIELD_NAMES])
	workbook.save(str(path))


#============================================
def write_template(path: pathlib.Path) -> None:
	"""
	Write an import template workbook with one sample row.

	Args:
		path: Output .xlsx path.
	"""
	_write_workbook(pathlib.Path(path), TEMPLATE_SHEET_TITLE, [TEMPLATE_ROW])


#============================================
def write_roster(path: pathlib.Path, records: list[CardRecord]) -> None:
	"""
	Export card records to a workbook or CSV file.

	Args:
		path: Output path (.xlsx or .csv).
		records: Records in page order.
	"""
	path = pathlib.Path(path)
	rows = [{field: record.text_for(field) for field in FIELD_NAMES} for record in records]
	if path.suffix.lower() == ".csv":
		with path.open("w", encoding="utf-8-sig", newline="") as handle:
			writer = csv.writer(handle)
			writer.writerow([EXPORT_HEADERS[field] for field in FIELD_NAMES])
			for row in rows:
				writer.writerow([row[field] for field in FIELD_NAMES])
		return
	_write_workbook(path, TEMPLATE_SHEET_TITLE, rows)


#============================================
def add_blank_record(records: list[CardRecord]) -> list[CardRecord]:
	"""
	Prepend a placeholder card.

	Args:
		records: Current roster.

	Returns:
		New roster with the blank card first.
	"""
	blank = CardRecord(id=tce.config.new_record_id(), **BLANK_CARD_TEXT)
	return [blank] + list(records)


#============================================
def update_record(records: list[CardRecord], record_id: str, field: str, value: str) -> list[CardRecord]:
	"""
	Replace one field of one record.

	Args:
		records: Current roster.
		record_id: Record to edit.
		field: Field name.
		value: New text.

	Returns:
		New roster.
	"""
	if field not in FIELD_NAMES:
		raise KeyError(field)
	return [
		dataclasses.replace(record, **{field: value}) if record.id == record_id else record
		for record in records
	]


#============================================
def remove_record(records: list[CardRecord], record_id: str) -> list[CardRecord]:
	return [record for record in records if record.id != record_id]


#============================================
def move_record(records: list[CardRecord], record_id: str, new_index: int) -> list[CardRecord]:
	"""
	Move one record to a new position.

	Args:
		records: Current roster.
		record_id: Record to move.
		new_index: Target index, clamped to the roster.

	Returns:
		New roster; unchanged if the id is unknown.
	"""
	reordered = list(records)
	for index, record in enumerate(reordered):
		if record.id == record_id:
			moved = reordered.pop(index)
			target = min(max(new_index, 0), len(reordered))
			reordered.insert(target, moved)
			break
	return reordered
