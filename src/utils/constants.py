"""
Constants for the Bar Catalog application.

This module defines system-wide constants including:
- Application metadata
- Portable recipe document format
- Catalog defaults (category types, bottles, units)
"""

from typing import Dict, List, Optional

# ============================================================================
# Application Metadata
# ============================================================================

APP_NAME = "Bar Catalog"
APP_VERSION = "0.1.0"
DATABASE_FILENAME = "bar_catalog.db"
DATABASE_VERSION = "1.0"

# ============================================================================
# Portable Recipe Document
# ============================================================================

# Only version 1 documents are produced and accepted
PORTABLE_FORMAT_VERSION = 1

# Export file naming
EXPORT_FILE_PREFIX = "cocktail"
EXPORT_ARCHIVE_PREFIX = "cocktails-export"

# Separator used for the stored tag column
TAG_SEPARATOR = ","

# ============================================================================
# Catalog Defaults
# ============================================================================

# Color assigned to category types created as a side effect of category creation
DEFAULT_CATEGORY_TYPE_COLOR = "gray"

# Applied when an import creates a category without an explicit type
DEFAULT_CATEGORY_TYPE = "SPIRIT"
DEFAULT_DESIRED_STOCK = 1

# Applied when an import creates a bottle without explicit stock data
DEFAULT_BOTTLE_CAPACITY_ML = 700
DEFAULT_REMAINING_PERCENT = 100

# Units seeded into an empty catalog
DEFAULT_UNITS: List[Dict[str, Optional[object]]] = [
    {"name": "Centilitre", "abbreviation": "cl", "conversion_factor_to_ml": 10.0},
    {"name": "Millilitre", "abbreviation": "ml", "conversion_factor_to_ml": 1.0},
    {"name": "Piece", "abbreviation": "pce", "conversion_factor_to_ml": None},
    {"name": "Dash", "abbreviation": "dash", "conversion_factor_to_ml": 0.6},
    {"name": "Teaspoon", "abbreviation": "tsp", "conversion_factor_to_ml": 5.0},
    {"name": "Tablespoon", "abbreviation": "tbsp", "conversion_factor_to_ml": 15.0},
    {"name": "Leaf", "abbreviation": "leaf", "conversion_factor_to_ml": None},
    {"name": "Slice", "abbreviation": "slice", "conversion_factor_to_ml": None},
    {"name": "Zest", "abbreviation": "zest", "conversion_factor_to_ml": None},
]
