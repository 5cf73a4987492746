"""Named constants for the spreadsheet -> Firestore importer."""

from pathlib import Path

# Target collection. Fixed: every run refreshes the same inventory collection.
COLLECTION_NAME = "inventory"

# Documents per batched write. Firestore caps a batch at 500 writes; 400
# leaves headroom.
BATCH_SIZE = 400

# First sheet of the workbook.
DEFAULT_SHEET_INDEX = 0

DEFAULT_SERVICE_ACCOUNT_PATH = "./serviceAccount.json"
DEFAULT_EXCEL_PATH = "./INVENTARIO CESREN.xlsx"
DEFAULT_MAPPING_PATH = Path("config/import.yml")

# Canonical field names whose values are normalized to YYYY-MM-DD.
# Compared case-insensitively.
DEFAULT_DATE_FIELDS = ("fecharegistro", "caducidad")

# Spreadsheet serial of 1970-01-01. Serials count days from 1899-12-30
# (the 1900 system, including its phantom 1900-02-29).
UNIX_EPOCH_SERIAL = 25569
