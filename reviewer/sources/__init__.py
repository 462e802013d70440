from reviewer.sources.google_sheets import GoogleSheetsSource, extract_spreadsheet_key

__all__ = ['GoogleSheetsSource', 'extract_spreadsheet_key']
