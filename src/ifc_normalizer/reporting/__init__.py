from ifc_normalizer.reporting.reporter import (
    Reporter,
    ReportConfig,
    changes_by_property,
    entries_to_dataframe,
)

__all__ = ["Reporter", "ReportConfig", "changes_by_property", "entries_to_dataframe"]
