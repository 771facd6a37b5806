"""
Reporter for change logs.

Generates a JSON report (metadata, analysis, changes) and a color-coded
Excel workbook of the change-log entries.
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils.dataframe import dataframe_to_rows

from ifc_normalizer.models import ChangeLogEntry
from ifc_normalizer.normalizer.processing import NormalizationResult


COLUMNS = [
    "Element ID", "Property Set", "Property", "Old Value", "New Value",
    "Catalog GUID", "Version", "Data Type", "Units", "Status",
]


@dataclass
class ReportConfig:
    """Configuration for report generation."""

    # Colors (RGB hex)
    color_new: str = "FFFF99"  # Yellow - property missing in the model
    color_retained: str = "99FF99"  # Green - value kept
    color_changed: str = "FF9999"  # Red - value replaced
    color_header: str = "4472C4"  # Dark blue

    max_rows: int = 10000


def entry_status(entry: ChangeLogEntry) -> str:
    if entry.is_new:
        return "new"
    if entry.is_changed:
        return "changed"
    return "retained"


def entries_to_dataframe(report: list[ChangeLogEntry]) -> pd.DataFrame:
    """Tabulate change-log entries, one row per entry."""
    rows = [
        [
            e.element_id, e.group_name, e.attribute_name,
            e.old_value, e.new_value, e.catalog_guid, e.version,
            e.data_type, e.units, entry_status(e),
        ]
        for e in report
    ]
    return pd.DataFrame(rows, columns=COLUMNS)


def changes_by_property(report: list[ChangeLogEntry]) -> dict[str, int]:
    """Number of entries per property name."""
    if not report:
        return {}
    df = entries_to_dataframe(report)
    return {str(k): int(v) for k, v in df["Property"].value_counts(sort=False).items()}


class Reporter:
    """Generates JSON and Excel reports for normalization results."""

    def __init__(self, config: Optional[ReportConfig] = None):
        self.config = config or ReportConfig()

    def generate_json_report(
        self,
        result: NormalizationResult,
        metadata: Optional[dict] = None
    ) -> dict:
        """
        Generate a JSON-serializable report.

        Args:
            result: Result of process_ifc
            metadata: Extra metadata (file names, timings)

        Returns:
            Dictionary with metadata, analysis and changes
        """
        return {
            "metadata": {
                "processedAt": datetime.now().isoformat(),
                "schema": result.schema,
                **(metadata or {}),
            },
            "analysis": {
                "targetClass": result.target_class,
                "elementsAnalyzed": result.elements_analyzed,
                "propertiesChecked": result.properties_checked,
                "totalChanges": len(result.report),
                "changesByProperty": changes_by_property(result.report),
            },
            "changes": [entry.to_dict() for entry in result.report],
        }

    def generate_report(
        self,
        result: NormalizationResult,
        output_path: str | Path,
        include_summary: bool = True
    ) -> Path:
        """
        Generate an Excel report.

        Args:
            result: Result of process_ifc
            output_path: Path for the output Excel file
            include_summary: Whether to include a summary sheet

        Returns:
            Path to the generated report
        """
        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)

        wb = Workbook()

        # Remove default sheet
        if "Sheet" in wb.sheetnames:
            del wb["Sheet"]

        if include_summary:
            self._create_summary_sheet(wb, result)
        self._create_changes_sheet(wb, result.report)

        wb.save(output_path)
        return output_path

    def _create_summary_sheet(self, wb: Workbook, result: NormalizationResult) -> None:
        """Create the summary sheet."""
        ws = wb.create_sheet("Summary", 0)

        ws["A1"] = "IFC Property Normalization Report"
        ws["A1"].font = Font(bold=True, size=16)
        ws.merge_cells("A1:D1")

        row = 3
        ws[f"A{row}"] = "Analysis"
        ws[f"A{row}"].font = Font(bold=True, size=12)

        statuses = [entry_status(e) for e in result.report]
        stats = [
            ("Schema", result.schema),
            ("Target Class", result.target_class),
            ("Elements Analyzed", result.elements_analyzed),
            ("Properties Checked", result.properties_checked),
            ("Total Entries", len(result.report)),
            ("New Properties", statuses.count("new")),
            ("Retained Values", statuses.count("retained")),
            ("Changed Values", statuses.count("changed")),
        ]

        row += 1
        for label, value in stats:
            ws[f"A{row}"] = label
            ws[f"B{row}"] = value
            row += 1

        row += 1
        ws[f"A{row}"] = "Entries per Property"
        ws[f"A{row}"].font = Font(bold=True, size=12)
        row += 1
        for name, count in changes_by_property(result.report).items():
            ws[f"A{row}"] = name
            ws[f"B{row}"] = count
            row += 1

        ws.column_dimensions["A"].width = 30
        ws.column_dimensions["B"].width = 15

    def _create_changes_sheet(self, wb: Workbook, report: list[ChangeLogEntry]) -> None:
        """Create the change-log detail sheet."""
        ws = wb.create_sheet("Changes")
        df = entries_to_dataframe(report[:self.config.max_rows])

        for row in dataframe_to_rows(df, index=False, header=True):
            ws.append([self._cell_value(v) for v in row])

        for cell in ws[1]:
            cell.font = Font(bold=True, color="FFFFFF")
            cell.fill = self._fill(self.config.color_header)
            cell.alignment = Alignment(horizontal="center")

        colors = {
            "new": self.config.color_new,
            "retained": self.config.color_retained,
            "changed": self.config.color_changed,
        }
        for row_num, status in enumerate(df["Status"], 2):
            fill = self._fill(colors[status])
            for col in range(1, len(COLUMNS) + 1):
                ws.cell(row=row_num, column=col).fill = fill

        self._auto_width_columns(ws)

    @staticmethod
    def _cell_value(value):
        # numpy scalars from the DataFrame
        if hasattr(value, "item") and not isinstance(value, (str, bytes)):
            value = value.item()
        # Missing values (None/NaN) become empty cells
        if value is None or (isinstance(value, float) and pd.isna(value)):
            return None
        if isinstance(value, (bool, int, float, str)):
            return value
        return str(value)

    @staticmethod
    def _fill(color: str) -> PatternFill:
        return PatternFill(start_color=color, end_color=color, fill_type="solid")

    def _auto_width_columns(self, ws) -> None:
        """Auto-adjust column widths based on content."""
        for column in ws.columns:
            max_length = max((len(str(cell.value)) for cell in column if cell.value is not None),
                             default=0)
            ws.column_dimensions[column[0].column_letter].width = min(max_length + 2, 50)
