"""Export feature: current fiscal year's orders as CSV."""

from order_api.features.export.formatting import format_record, records_to_csv
from order_api.features.export.routes import router
from order_api.features.export.service import (
    FiscalYearExport,
    export_current_fiscal_year,
    fiscal_year_label,
)

__all__ = [
    "FiscalYearExport",
    "export_current_fiscal_year",
    "fiscal_year_label",
    "format_record",
    "records_to_csv",
    "router",
]
