"""Vehicle-rental pricing rollup and reservation conversion service."""
