"""
Excel/CSV processing service for guest list import
"""

import io
import zipfile
from typing import Dict, List, Optional, Tuple
import pandas as pd

from seatsync.schemas.guest import GuestImportRow

class ExcelService:
    """Service for handling guest list spreadsheets"""

    SUPPORTED_EXTENSIONS = ('.xlsx', '.xls', '.csv')

    # Normalized header -> GuestImportRow field
    COLUMN_ALIASES = {
        'name': 'name',
        'full name': 'name',
        'guest': 'name',
        'first name': 'first_name',
        'firstname': 'first_name',
        'last name': 'last_name',
        'lastname': 'last_name',
        'surname': 'last_name',
        'phone': 'phone_number',
        'phone number': 'phone_number',
        'mobile': 'phone_number',
        'email': 'email',
        'e-mail': 'email',
        'group': 'group',
        'notes': 'notes',
    }

    @staticmethod
    def create_template() -> bytes:
        """Create Excel template with the supported columns"""
        df = pd.DataFrame(columns=['First Name', 'Last Name', 'Phone', 'Email', 'Group'])

        # Add sample data for guidance
        sample_data = [
            ['Jane', 'Smith', '+1 555 0100', 'jane@example.com', 'Family'],
            ['John', 'Doe', '', '', 'Friends'],
        ]

        for row in sample_data:
            df.loc[len(df)] = row

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Guest List')

        return buffer.getvalue()

    @staticmethod
    def read_dataframe(file_content: bytes, filename: str) -> pd.DataFrame:
        if filename.lower().endswith('.csv'):
            return pd.read_csv(io.BytesIO(file_content), dtype=str, keep_default_na=False)
        return pd.read_excel(io.BytesIO(file_content), dtype=str, keep_default_na=False)

    @staticmethod
    def map_columns(df: pd.DataFrame) -> Dict[str, str]:
        """Map GuestImportRow fields to the spreadsheet's own headers"""
        column_mapping = {}
        for col in df.columns:
            field = ExcelService.COLUMN_ALIASES.get(str(col).lower().strip())
            if field and field not in column_mapping:
                column_mapping[field] = col
        return column_mapping

    @staticmethod
    def validate_structure(column_mapping: Dict[str, str]) -> Tuple[bool, List[str]]:
        """A name column, or first and last name columns, must be present"""
        errors = []
        has_split_name = 'first_name' in column_mapping or 'last_name' in column_mapping
        if 'name' not in column_mapping and not has_split_name:
            errors.append("Missing required columns: name (or first name / last name)")
        return len(errors) == 0, errors

    @staticmethod
    def _cell(row: pd.Series, column: Optional[str]) -> Optional[str]:
        if column is None:
            return None
        value = str(row[column]).strip()
        return value if value and value.lower() != 'nan' else None

    @staticmethod
    def parse_guest_rows(file_content: bytes, filename: str) -> Tuple[List[GuestImportRow], List[str]]:
        """Parse an uploaded guest list.

        Returns the parsed rows and a list of errors; rows are empty whenever
        errors are reported. Rows without any name are skipped silently.
        """
        try:
            df = ExcelService.read_dataframe(file_content, filename)
        except (ValueError, OSError, zipfile.BadZipFile, pd.errors.ParserError) as e:
            return [], [f"Error reading file: {str(e)}"]

        column_mapping = ExcelService.map_columns(df)
        valid, errors = ExcelService.validate_structure(column_mapping)
        if not valid:
            return [], errors

        rows: List[GuestImportRow] = []
        for _, row in df.iterrows():
            name = ExcelService._cell(row, column_mapping.get('name'))
            first_name = ExcelService._cell(row, column_mapping.get('first_name'))
            last_name = ExcelService._cell(row, column_mapping.get('last_name'))

            # Skip empty rows
            if not (name or first_name or last_name):
                continue

            notes = ExcelService._cell(row, column_mapping.get('notes'))
            group = ExcelService._cell(row, column_mapping.get('group'))
            if group:
                notes = f"Group: {group}" if not notes else f"Group: {group}; {notes}"

            rows.append(GuestImportRow(
                name=name,
                first_name=first_name,
                last_name=last_name,
                phone_number=ExcelService._cell(row, column_mapping.get('phone_number')),
                email=ExcelService._cell(row, column_mapping.get('email')),
                notes=notes,
            ))

        if not rows:
            return [], ["No valid guests to import"]

        return rows, []
